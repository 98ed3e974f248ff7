"""
whisker.engine
==============

The Whisker coordinator: owns the token cache and runs
tokenize -> resolve partials -> render, with the lexer, renderer and
resolver wired to it.

Concurrency: a Whisker instance is not thread-safe. The cache is shared
mutable state (last write wins) and pragma instances remember the renderer
that last activated them. Give concurrent renders their own instances.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from numbers import Number
from os import PathLike
from pathlib import Path
from typing import Any, TypeAlias

from whisker.config import EngineConfig
from whisker.errors import (
    InvalidPartialsError,
    InvalidTemplateReferenceError,
    TemplateNotFoundError,
)
from whisker.lexer import DEFAULT_OPEN, Lexer
from whisker.pragma import ImplicitIterator, Pragma, SubViews
from whisker.renderer import Renderer
from whisker.resolver import FileSystemResolver, Resolver
from whisker.snapshot import decode_tokens, encode_tokens
from whisker.source import Source
from whisker.tokens import Token, TokenSequence


@dataclass(frozen=True, slots=True)
class Raw:
    """Template content read from storage but not tokenized yet."""
    content: str


@dataclass(frozen=True, slots=True)
class Compiled:
    tokens: TokenSequence


CacheEntry: TypeAlias = Raw | Compiled


def is_literal(template: str) -> bool:
    """Literal template text is recognised by the tag-opening delimiter."""
    return DEFAULT_OPEN in template


def _slot_names(obj: object) -> list[str]:
    names: list[str] = []
    for cls in type(obj).__mro__:
        slots = cls.__dict__.get("__slots__", ())
        for name in (slots,) if isinstance(slots, str) else slots:
            if name not in ("__dict__", "__weakref__") and name not in names:
                names.append(name)
    return names


def _partial_items(partials: object) -> Iterable[tuple[Any, Any]]:
    if isinstance(partials, Mapping):
        return partials.items()
    if isinstance(partials, (str, bytes, bytearray, Sequence, Number)):
        raise InvalidPartialsError(
            f"partials must be a mapping or an object, got {type(partials).__name__}"
        )
    items: dict[str, Any] = dict(vars(partials)) if hasattr(partials, "__dict__") else {}
    for name in _slot_names(partials):
        if name not in items and hasattr(partials, name):
            items[name] = getattr(partials, name)
    return items.items()


class Whisker:
    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        lexer: Lexer | None = None,
        renderer: Renderer | None = None,
        resolver: Resolver | None = None,
        pragmas: Iterable[Pragma] = (),
    ):
        self.config = config or EngineConfig()
        self._cache: dict[str, CacheEntry] = {}
        self._lexer: Lexer | None = None
        self._renderer: Renderer | None = None
        self._resolver: Resolver | None = None

        if lexer is not None:
            self.lexer = lexer
        if renderer is not None:
            self.renderer = renderer
        if resolver is not None:
            self.resolver = resolver
        for pragma in pragmas:
            self.add_pragma(pragma)

    # -- wiring ----------------------------------------------------------------

    @property
    def lexer(self) -> Lexer:
        if self._lexer is None:
            self.lexer = Lexer(self.config)
        assert self._lexer is not None
        return self._lexer

    @lexer.setter
    def lexer(self, lexer: Lexer) -> None:
        self._lexer = lexer
        lexer.bind(self)

    @property
    def renderer(self) -> Renderer:
        if self._renderer is None:
            self.renderer = Renderer(self.config, pragmas=(SubViews(), ImplicitIterator()))
        assert self._renderer is not None
        return self._renderer

    @renderer.setter
    def renderer(self, renderer: Renderer) -> None:
        self._renderer = renderer
        renderer.bind(self)

    @property
    def resolver(self) -> Resolver:
        if self._resolver is None:
            self._resolver = FileSystemResolver(self.config.template_paths, self.config.suffix)
        return self._resolver

    @resolver.setter
    def resolver(self, resolver: Resolver) -> None:
        if not isinstance(resolver, Resolver):
            raise TypeError(f"{type(resolver).__name__} does not implement resolve(name)")
        self._resolver = resolver

    def set_lexer(self, lexer: Lexer) -> Whisker:
        self.lexer = lexer
        return self

    def set_renderer(self, renderer: Renderer) -> Whisker:
        self.renderer = renderer
        return self

    def set_resolver(self, resolver: Resolver) -> Whisker:
        self.resolver = resolver
        return self

    def _fs_resolver(self) -> FileSystemResolver:
        resolver = self.resolver
        if not isinstance(resolver, FileSystemResolver):
            raise TypeError(
                f"{type(resolver).__name__} has no search path or suffix to configure"
            )
        return resolver

    def add_template_path(self, path: str | Path | PathLike[str]) -> Whisker:
        self._fs_resolver().add_template_path(path)
        return self

    set_template_path = add_template_path

    @property
    def template_paths(self) -> tuple[Path, ...]:
        return self._fs_resolver().template_paths

    @property
    def suffix(self) -> str:
        return self._fs_resolver().suffix

    @suffix.setter
    def suffix(self, suffix: str) -> None:
        self._fs_resolver().suffix = suffix

    def set_suffix(self, suffix: str) -> Whisker:
        self.suffix = suffix
        return self

    def add_pragma(self, pragma: Pragma) -> Whisker:
        self.renderer.add_pragma(pragma)
        return self

    # -- rendering -------------------------------------------------------------

    def render(self, template: str, view: Any, partials: object | None = None) -> str:
        """Render a template name or literal template text against `view`.

        String-valued `partials` are tokenized and cached under their alias
        (shadowing any stored template of that name from now on); other
        values are skipped.
        """
        tokenized: dict[str, TokenSequence] = {}
        if partials is not None:
            for alias, partial in _partial_items(partials):
                if not isinstance(partial, str):
                    continue
                tokens = self.tokenize(partial)
                self._cache[str(alias)] = Compiled(tokens)
                tokenized[str(alias)] = tokens

        tokens = self.tokenize(template)
        name = None if is_literal(template) else template
        return self.renderer.render(tokens, view, tokenized, name=name)

    def tokenize(self, template: str) -> TokenSequence:
        if not isinstance(template, str):
            raise InvalidTemplateReferenceError(
                f"Template reference must be a string, got {type(template).__name__}"
            )

        # literal text has no stable identity; never cached
        if is_literal(template):
            return self.lexer.compile(template)

        entry = self._cache.get(template)
        if isinstance(entry, Compiled):
            return entry.tokens

        content = entry.content if isinstance(entry, Raw) else self._fetch_template(template)
        tokens = self.lexer.compile(content, template)
        self._cache[template] = Compiled(tokens)
        return tokens

    def _fetch_template(self, name: str) -> str:
        path = self.resolver.resolve(name)
        if not path:
            raise TemplateNotFoundError(f'Template by name "{name}" not found')
        content = Source.from_file(path, name=name).contents
        self._cache[name] = Raw(content)
        return content

    # -- cache snapshot ----------------------------------------------------------

    def get_all_tokens(self) -> dict[str, TokenSequence]:
        """Name -> tokens for every template compiled by this instance."""
        return {
            name: entry.tokens
            for name, entry in self._cache.items()
            if isinstance(entry, Compiled)
        }

    def restore_tokens(self, tokens: Mapping[str, TokenSequence]) -> Whisker:
        """Replace the whole cache, e.g. with another instance's get_all_tokens()."""
        cache: dict[str, CacheEntry] = {}
        for name, seq in tokens.items():
            if not isinstance(seq, (tuple, list)):
                raise TypeError(f"Tokens for {name!r} must be a sequence, got {type(seq).__name__}")
            bad = next((t for t in seq if not isinstance(t, Token)), None)
            if bad is not None:
                raise TypeError(f"Tokens for {name!r} must be Token instances, got {type(bad).__name__}")
            cache[name] = Compiled(tuple(seq))
        self._cache = cache
        return self

    def dump_tokens(self) -> bytes:
        return encode_tokens(self.get_all_tokens())

    def load_tokens(self, data: bytes) -> Whisker:
        return self.restore_tokens(decode_tokens(data))

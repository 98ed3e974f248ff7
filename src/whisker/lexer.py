"""
whisker.lexer
=============

Default lexer: a delimiter-aware scanner finds tags in the raw text and a
small lark grammar parses the tag bodies. The result is a nested tuple of
Tokens (section bodies live in `Token.children`).
"""

from __future__ import annotations

import warnings
from ast import literal_eval
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from lark import Lark, Token as LarkToken, Transformer, v_args
from lark.exceptions import LarkError

from whisker.config import EngineConfig
from whisker.errors import (
    InvalidPragmaNameError,
    TemplateNotFoundError,
    TemplateSyntaxError,
    UnbalancedTagError,
)
from whisker.grammar import TAG_GRAMMAR
from whisker.pragma.base import PRAGMA_NAME_RE
from whisker.reporting.diagnostics import Diagnostic, Related, Severity
from whisker.reporting.warnings_bridge import DiagnosticWarning
from whisker.source import Source, SourceSpan
from whisker.tokens import Token, TokenKind, TokenSequence, iter_partial_names

if TYPE_CHECKING:
    from whisker.engine import Whisker

DEFAULT_OPEN = "{{"
DEFAULT_CLOSE = "}}"

_SECTION_KINDS = {"#": TokenKind.SECTION, "^": TokenKind.INVERTED}
_NAME_KINDS = {"&": TokenKind.UNESCAPED, "{": TokenKind.UNESCAPED, "": TokenKind.VARIABLE}


class _TagTransformer(Transformer[LarkToken, Any]):
    def NAME(self, tok: LarkToken) -> str:
        return str(tok.value)

    def ESCAPED_STRING(self, tok: LarkToken) -> str:
        return str(literal_eval(tok.value))

    def implicit(self, _: list[Any]) -> str:
        return "."

    def dotted(self, names: list[str]) -> str:
        return ".".join(names)

    @v_args(inline=True)
    def option(self, key: str, value: str | None) -> tuple[str, str]:
        return (key, "" if value is None else value)

    @v_args(inline=True)
    def pragma(self, name: str, *options: tuple[str, str]) -> tuple[str, list[tuple[str, str]]]:
        return (name, list(options))


_PARSER = Lark(
    TAG_GRAMMAR,
    start=["reference", "pragma"],
    parser="lalr",
    lexer="contextual",
    maybe_placeholders=True,
    cache=False,
)


@dataclass(slots=True)
class _Frame:
    kind: TokenKind
    name: str
    span: SourceSpan
    children: list[Token] = field(default_factory=list)


class _Scanner:
    def __init__(self, source: Source):
        self.source = source
        self.otag = DEFAULT_OPEN
        self.ctag = DEFAULT_CLOSE

    # -- diagnostics -----------------------------------------------------------

    def _diag(
        self,
        message: str,
        span: SourceSpan,
        code: str,
        severity: Severity = Severity.ERROR,
        **kw: Any,
    ) -> Diagnostic:
        return Diagnostic(
            message=message,
            severity=severity,
            span=span,
            source=self.source,
            code=code,
            **kw,
        )

    def _syntax(self, message: str, span: SourceSpan, **kw: Any) -> TemplateSyntaxError:
        return TemplateSyntaxError(message, self._diag(message, span, "syntax", **kw))

    def _unbalanced(self, message: str, span: SourceSpan, **kw: Any) -> UnbalancedTagError:
        return UnbalancedTagError(message, self._diag(message, span, "unbalanced", **kw))

    # -- tag bodies ------------------------------------------------------------

    def _parse_reference(self, body: str, span: SourceSpan) -> str:
        if not body.strip():
            raise self._syntax("Empty tag name", span)
        try:
            return _TagTransformer().transform(_PARSER.parse(body, start="reference"))
        except LarkError as e:
            raise self._syntax(
                f"Malformed tag name {body.strip()!r}", span, notes=[str(e).strip()]
            ) from e

    def _parse_pragma(self, body: str, span: SourceSpan) -> Token:
        words = body[1:].split(None, 1)
        name = words[0] if words else ""
        if not PRAGMA_NAME_RE.match(name):
            message = f"Invalid pragma name {name!r}"
            raise InvalidPragmaNameError(
                message,
                self._diag(
                    message,
                    span,
                    "pragma-name",
                    hint="Pragma names start with a letter and use letters, digits, '_' or '-'.",
                ),
            )
        try:
            _, pairs = _TagTransformer().transform(_PARSER.parse(body, start="pragma"))
        except LarkError as e:
            raise self._syntax(
                f"Malformed options for pragma {name!r}", span, notes=[str(e).strip()]
            ) from e

        options: dict[str, str] = {}
        for key, value in pairs:
            if key in options:
                warnings.warn(
                    DiagnosticWarning(
                        self._diag(
                            f"Duplicate option {key!r} for pragma {name!r}; last value wins",
                            span,
                            "pragma-option",
                            severity=Severity.WARN,
                        )
                    ),
                    stacklevel=4,
                )
            options[key] = value
        return Token(TokenKind.PRAGMA, name, options=options, position=span.start)

    def _set_delimiters(self, body: str, span: SourceSpan) -> None:
        parts = body.split()
        if len(parts) != 2 or any("=" in p for p in parts):
            raise self._syntax(
                f"Invalid delimiter change {body.strip()!r}",
                span,
                hint="Use two whitespace-separated delimiters, e.g. {{=<% %>=}}.",
            )
        self.otag, self.ctag = parts

    # -- main loop -------------------------------------------------------------

    def _find_close(self, marker: str, from_pos: int, tag_start: int) -> int:
        end = self.source.contents.find(marker, from_pos)
        if end == -1:
            raise self._unbalanced(
                f"Unclosed tag; expected {marker!r}",
                SourceSpan(tag_start, len(self.source.contents)),
            )
        return end

    def scan(self) -> TokenSequence:
        text = self.source.contents
        root: list[Token] = []
        stack: list[_Frame] = []
        pos = 0

        def out() -> list[Token]:
            return stack[-1].children if stack else root

        while True:
            start = text.find(self.otag, pos)
            if start == -1:
                if pos < len(text):
                    out().append(Token(TokenKind.TEXT, text[pos:], position=pos))
                break
            if start > pos:
                out().append(Token(TokenKind.TEXT, text[pos:start], position=pos))

            inner = start + len(self.otag)
            sigil = text[inner:inner + 1]

            if sigil == "{" and self.otag == DEFAULT_OPEN and self.ctag == DEFAULT_CLOSE:
                end = self._find_close("}" + self.ctag, inner + 1, start)
                body = text[inner + 1:end]
                pos = end + 1 + len(self.ctag)
            elif sigil == "=":
                end = self._find_close("=" + self.ctag, inner + 1, start)
                body = text[inner + 1:end]
                pos = end + 1 + len(self.ctag)
            else:
                end = self._find_close(self.ctag, inner, start)
                body = text[inner:end]
                if sigil in {"#", "^", "/", ">", "&", "!"}:
                    body = body[1:]
                elif sigil != "%":
                    sigil = ""
                pos = end + len(self.ctag)

            span = SourceSpan(start, pos)

            if sigil == "!":
                continue
            if sigil == "=":
                self._set_delimiters(body, span)
                continue
            if sigil == "%":
                out().append(self._parse_pragma(body, span))
                continue
            if sigil == ">":
                name = body.strip()
                if not name:
                    raise self._syntax("Empty partial name", span)
                out().append(Token(TokenKind.PARTIAL, name, position=start))
                continue
            if sigil in _SECTION_KINDS:
                stack.append(_Frame(_SECTION_KINDS[sigil], self._parse_reference(body, span), span))
                continue
            if sigil == "/":
                name = self._parse_reference(body, span)
                if not stack:
                    raise self._unbalanced(f"Close tag {name!r} has no matching open tag", span)
                frame = stack.pop()
                if frame.name != name:
                    raise self._unbalanced(
                        f"Close tag {name!r} does not match open section {frame.name!r}",
                        span,
                        related=[Related("section opened here", frame.span, self.source)],
                    )
                out().append(
                    Token(frame.kind, frame.name, children=tuple(frame.children), position=frame.span.start)
                )
                continue

            name = self._parse_reference(body, span)
            out().append(Token(_NAME_KINDS[sigil], name, position=start))

        if stack:
            frame = stack[-1]
            raise self._unbalanced(f"Unclosed section {frame.name!r}", frame.span)

        return tuple(root)


class Lexer:
    """Turns template text into a TokenSequence.

    When bound to a coordinator and `eager_partials` is set, partials found
    while lexing a named template are tokenized through that coordinator so
    they land in its cache.
    """

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()
        self._manager: Whisker | None = None
        self._compiling: set[str] = set()

    def bind(self, manager: Whisker) -> None:
        self._manager = manager

    @property
    def manager(self) -> Whisker | None:
        return self._manager

    def compile(self, text: str, name: str | None = None) -> TokenSequence:
        tokens = _Scanner(Source(text, name=name)).scan()
        if self.config.eager_partials and name is not None and self._manager is not None:
            self._prefetch_partials(tokens, name)
        return tokens

    def _prefetch_partials(self, tokens: TokenSequence, name: str) -> None:
        assert self._manager is not None
        self._compiling.add(name)
        try:
            for partial in iter_partial_names(tokens):
                if partial in self._compiling:
                    continue
                try:
                    self._manager.tokenize(partial)
                except TemplateNotFoundError:
                    # may still be supplied as a partial alias at render time
                    continue
        finally:
            self._compiling.discard(name)

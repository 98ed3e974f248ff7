"""
whisker.renderer
================

Default token-interpretation loop. For every token the active pragmas of
the current template scope are asked first (last activated first); a token
nobody claims, or every claimant declines, gets built-in handling.
"""

from __future__ import annotations

import html
import warnings
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from whisker.config import EngineConfig
from whisker.context import ContextStack
from whisker.errors import TemplateNotFoundError, TemplateRecursionError, WhiskerError
from whisker.pragma.base import Pragma, PragmaStack, validate_pragma_name
from whisker.reporting.warnings_bridge import PragmaWarning
from whisker.tokens import Token, TokenKind, TokenSequence

if TYPE_CHECKING:
    from whisker.engine import Whisker

PartialMap = Mapping[str, TokenSequence]
GuardKey = tuple[str, tuple[int, ...]]


@dataclass(frozen=True, slots=True)
class RenderContext:
    """Everything a token handler may use during one render call.

    Passed explicitly to every pragma call; it is only valid for the
    duration of that call.
    """

    renderer: Renderer
    stack: ContextStack
    partials: PartialMap
    pragmas: PragmaStack
    guard: list[GuardKey]  # in-progress (template, frame chain) pairs, shared per call
    depth: int = 0

    def lookup(self, name: str, default: Any = None) -> Any:
        return self.stack.lookup(name, default)

    def options(self, pragma_name: str) -> Mapping[str, str]:
        return self.pragmas.options(pragma_name)

    def with_stack(self, stack: ContextStack) -> RenderContext:
        return replace(self, stack=stack)

    def render(self, template: str, view: Any = None) -> str:
        """Render a nested template reference (name or literal text)."""
        return self.renderer.render_template(template, ContextStack.of(view), self)


class Renderer:
    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        pragmas: Iterable[Pragma] = (),
        escape: Callable[[str], str] | None = None,
    ):
        self.config = config or EngineConfig()
        if escape is None:
            escape = html.escape if self.config.escape_html else str
        self._escape = escape
        self._pragmas: dict[str, Pragma] = {}
        self._manager: Whisker | None = None
        for p in pragmas:
            self.add_pragma(p)

    # -- wiring ----------------------------------------------------------------

    def bind(self, manager: Whisker) -> None:
        self._manager = manager

    @property
    def manager(self) -> Whisker | None:
        return self._manager

    def add_pragma(self, pragma: Pragma) -> Renderer:
        validate_pragma_name(getattr(pragma, "name", None))
        self._pragmas[pragma.name] = pragma
        return self

    def get_pragma(self, name: str) -> Pragma | None:
        return self._pragmas.get(name)

    def has_pragma(self, name: str) -> bool:
        return name in self._pragmas

    @property
    def pragmas(self) -> Mapping[str, Pragma]:
        return MappingProxyType(self._pragmas)

    # -- text helpers ----------------------------------------------------------

    def escape(self, text: str) -> str:
        return self._escape(text)

    @staticmethod
    def stringify(value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    # -- public API ------------------------------------------------------------

    def render(
        self,
        tokens: TokenSequence,
        view: Any,
        partials: PartialMap | None = None,
        *,
        name: str | None = None,
    ) -> str:
        ctx = RenderContext(
            renderer=self,
            stack=ContextStack.of(view),
            partials=MappingProxyType(dict(partials or {})),
            pragmas=PragmaStack(),
            guard=[],
        )
        if name is None:
            return self.render_tokens(tokens, ctx)
        return self._render_scope(name, tokens, ctx.stack, ctx)

    def render_tokens(self, tokens: TokenSequence, ctx: RenderContext) -> str:
        # output is only returned once every token rendered
        return "".join([self.render_token(tok, ctx) for tok in tokens])

    def render_token(self, token: Token, ctx: RenderContext) -> str:
        if token.kind is TokenKind.PRAGMA:
            self._activate(token, ctx)
            return ""
        for pragma in ctx.pragmas.claimants(token.kind):
            out = pragma.handle(token, ctx)
            if out is not None:
                return out
        return self.render_builtin(token, ctx)

    def render_builtin(self, token: Token, ctx: RenderContext) -> str:
        match token.kind:
            case TokenKind.TEXT:
                return token.value
            case TokenKind.VARIABLE:
                return self.escape(self.stringify(ctx.lookup(token.value)))
            case TokenKind.UNESCAPED:
                return self.stringify(ctx.lookup(token.value))
            case TokenKind.SECTION:
                return self._render_section(token, ctx)
            case TokenKind.INVERTED:
                value = ctx.lookup(token.value)
                if _is_empty(value):
                    return self.render_tokens(token.children, ctx)
                return ""
            case TokenKind.PARTIAL:
                return self._render_partial(token.value, ctx)
            case _:
                raise WhiskerError(f"Renderer cannot handle token kind {token.kind!r}")

    def render_template(self, template: str, stack: ContextStack, ctx: RenderContext) -> str:
        """Tokenize `template` through the bound coordinator and render it
        in a nested scope. Used for sub-views and other pragma-driven
        composition."""
        return self._render_scope(template, self._tokenize(template), stack, ctx)

    # -- internals -------------------------------------------------------------

    def _activate(self, token: Token, ctx: RenderContext) -> None:
        pragma = self._pragmas.get(token.value)
        if pragma is None:
            warnings.warn(
                f"Unknown pragma {token.value!r} at offset {token.position} ignored; "
                f"registered: {sorted(self._pragmas)}",
                PragmaWarning,
            )
            return
        pragma.attach(self)
        ctx.pragmas.activate(pragma, token.options)

    def _render_section(self, token: Token, ctx: RenderContext) -> str:
        value = ctx.lookup(token.value)
        if _is_empty(value):
            return ""
        if isinstance(value, (Mapping, str, bytes)) or not isinstance(value, Iterable):
            return self.render_tokens(token.children, ctx.with_stack(ctx.stack.push(value)))
        return "".join(
            [
                self.render_tokens(token.children, ctx.with_stack(ctx.stack.push(item)))
                for item in value
            ]
        )

    def _render_partial(self, name: str, ctx: RenderContext) -> str:
        tokens = ctx.partials.get(name)
        if tokens is None:
            if self._manager is None:
                raise TemplateNotFoundError(f'Partial by name "{name}" not found')
            tokens = self._manager.tokenize(name)
        return self._render_scope(name, tokens, ctx.stack, ctx)

    def _tokenize(self, template: str) -> TokenSequence:
        if self._manager is None:
            raise WhiskerError("Renderer is not bound to a Whisker instance; cannot tokenize")
        return self._manager.tokenize(template)

    def _render_scope(
        self, name: str, tokens: TokenSequence, stack: ContextStack, ctx: RenderContext
    ) -> str:
        # a fresh pragma scope; partials and sub-views do not inherit activations
        key = (name, stack.identity)
        if key in ctx.guard:
            chain = " -> ".join(n for n, _ in ctx.guard)
            raise TemplateRecursionError(
                f"Template {name!r} re-entered with the same context ({chain} -> {name})"
            )
        if ctx.depth >= self.config.max_depth:
            raise TemplateRecursionError(
                f"Template nesting exceeded max_depth={self.config.max_depth} at {name!r}"
            )
        nested = replace(ctx, stack=stack, pragmas=PragmaStack(), depth=ctx.depth + 1)
        ctx.guard.append(key)
        try:
            return self.render_tokens(tokens, nested)
        finally:
            ctx.guard.pop()


def _is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (str, bytes, Mapping)):
        return len(value) == 0
    if isinstance(value, (list, tuple, set, frozenset, range)):
        return len(value) == 0
    return not value

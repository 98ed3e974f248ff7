from __future__ import annotations

from typing import TYPE_CHECKING

from whisker.tokens import Token, TokenKind

if TYPE_CHECKING:
    from whisker.renderer import RenderContext, Renderer

DEFAULT_ITERATOR = "."


class ImplicitIterator:
    """The IMPLICIT-ITERATOR pragma.

    `{{%IMPLICIT-ITERATOR iterator=item}}` lets `{{item}}` stand for the
    current section element, the same way `{{.}}` does.
    """

    name = "IMPLICIT-ITERATOR"

    def __init__(self) -> None:
        self._renderer: Renderer | None = None

    def handles_token_kind(self, kind: TokenKind) -> bool:
        return kind in (TokenKind.VARIABLE, TokenKind.UNESCAPED)

    def attach(self, renderer: Renderer) -> None:
        self._renderer = renderer

    def current_renderer(self) -> Renderer | None:
        return self._renderer

    def handle(self, token: Token, context: RenderContext) -> str | None:
        iterator = context.options(self.name).get("iterator") or DEFAULT_ITERATOR
        if token.value != iterator:
            return None
        text = context.renderer.stringify(context.lookup("."))
        if token.kind is TokenKind.UNESCAPED:
            return text
        return context.renderer.escape(text)

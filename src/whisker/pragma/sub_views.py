"""
Data-driven composition: a view value may be a SubView, asking for another
template to be rendered in place of the variable.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from numbers import Number
from typing import TYPE_CHECKING, Any

from whisker.context import ContextStack
from whisker.errors import InvalidSubViewArgumentError, InvalidTemplateReferenceError
from whisker.tokens import Token, TokenKind

if TYPE_CHECKING:
    from whisker.renderer import RenderContext, Renderer

__all__ = ["SubView", "SubViews"]


@dataclass(frozen=True, slots=True)
class SubView:
    """A template reference (name or literal text) paired with an optional view.

    With `view=None` the nested template is rendered against the context
    the variable was found in.
    """

    template: str
    view: Mapping[str, Any] | object | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.template, str):
            raise InvalidTemplateReferenceError(
                f"SubView template must be a string, got {type(self.template).__name__}"
            )
        if self.view is not None and isinstance(self.view, (str, bytes, bytearray, Number)):
            raise InvalidSubViewArgumentError(
                f"SubView view must be a mapping, sequence or object, got {type(self.view).__name__}"
            )


class SubViews:
    """The SUB-VIEWS pragma.

    Claims variable tokens; when the looked-up value is a SubView, renders
    it through the active renderer and splices the result unescaped.
    Any other value is left to the next claimant.
    """

    name = "SUB-VIEWS"
    tokens_handled: frozenset[TokenKind] = frozenset({TokenKind.VARIABLE, TokenKind.UNESCAPED})

    def __init__(self) -> None:
        self._renderer: Renderer | None = None

    def handles_token_kind(self, kind: TokenKind) -> bool:
        return kind in self.tokens_handled

    def attach(self, renderer: Renderer) -> None:
        self._renderer = renderer

    def current_renderer(self) -> Renderer | None:
        return self._renderer

    def handle(self, token: Token, context: RenderContext) -> str | None:
        value = context.lookup(token.value)
        if not isinstance(value, SubView):
            return None
        stack = context.stack if value.view is None else ContextStack.of(value.view)
        return context.render(value.template, stack)

"""
whisker.pragma.base
===================

The capability contract for pragmas and the ordered list of pragmas active
in one template scope.

Any object with `name`, `handles_token_kind`, `attach`, `current_renderer`
and `handle` is a pragma; there is no base class to inherit from.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from whisker.errors import InvalidPragmaNameError
from whisker.tokens import Token, TokenKind

if TYPE_CHECKING:
    from whisker.renderer import RenderContext, Renderer

PRAGMA_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*\Z")


def validate_pragma_name(name: object) -> str:
    if not isinstance(name, str) or not PRAGMA_NAME_RE.match(name):
        raise InvalidPragmaNameError(
            f"Invalid pragma name {name!r}: must match {PRAGMA_NAME_RE.pattern!r}"
        )
    return name


@runtime_checkable
class Pragma(Protocol):
    name: str

    def handles_token_kind(self, kind: TokenKind) -> bool: ...

    # The renderer calls attach() each time it activates the pragma.
    # current_renderer() reflects only the latest attachment, so one
    # instance must not serve two renders running at the same time.
    def attach(self, renderer: Renderer) -> None: ...
    def current_renderer(self) -> Renderer | None: ...

    def handle(self, token: Token, context: RenderContext) -> str | None:
        """Render `token`, or return None to let the next claimant have it."""
        ...


class PragmaStack:
    """Pragmas active in one template scope, in activation order.

    Claims are resolved last-activated-first; re-activating a pragma moves
    it back to the top.
    """

    def __init__(self) -> None:
        self._active: list[Pragma] = []
        self._options: dict[str, Mapping[str, str]] = {}

    def activate(self, pragma: Pragma, options: Mapping[str, str] | None = None) -> None:
        self.deactivate(pragma.name)
        self._active.append(pragma)
        self._options[pragma.name] = MappingProxyType(dict(options or {}))

    def deactivate(self, name: str) -> Pragma | None:
        for i, pragma in enumerate(self._active):
            if pragma.name == name:
                del self._active[i]
                self._options.pop(name, None)
                return pragma
        return None

    def is_active(self, name: str) -> bool:
        return any(p.name == name for p in self._active)

    def options(self, name: str) -> Mapping[str, str]:
        return self._options.get(name, MappingProxyType({}))

    def claimants(self, kind: TokenKind) -> Iterator[Pragma]:
        for pragma in reversed(tuple(self._active)):
            if pragma.handles_token_kind(kind):
                yield pragma

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self._active)

    def __len__(self) -> int:
        return len(self._active)

    def __iter__(self) -> Iterator[Pragma]:
        return iter(tuple(self._active))

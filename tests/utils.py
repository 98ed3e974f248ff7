from __future__ import annotations

from pathlib import Path

from whisker.pragma.base import Pragma
from whisker.renderer import RenderContext, Renderer
from whisker.tokens import Token, TokenKind


def write_templates(directory: Path, suffix: str = ".mustache", **templates: str) -> Path:
    for name, text in templates.items():
        path = directory / f"{name}{suffix}"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return directory


class FixedPragma:
    """Claims variable tokens and always answers with the same text."""

    def __init__(self, name: str, out: str | None):
        self.name = name
        self.out = out
        self.calls = 0
        self._renderer: Renderer | None = None

    def handles_token_kind(self, kind: TokenKind) -> bool:
        return kind is TokenKind.VARIABLE

    def attach(self, renderer: Renderer) -> None:
        self._renderer = renderer

    def current_renderer(self) -> Renderer | None:
        return self._renderer

    def handle(self, token: Token, context: RenderContext) -> str | None:
        self.calls += 1
        return self.out


class OncePragma(FixedPragma):
    """Answers once, then deactivates itself for the rest of the scope."""

    def handle(self, token: Token, context: RenderContext) -> str | None:
        context.pragmas.deactivate(self.name)
        return super().handle(token, context)


def as_pragma(p: object) -> Pragma:
    assert isinstance(p, Pragma)
    return p

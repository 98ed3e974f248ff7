from __future__ import annotations

from enum import StrEnum
from typing import TypeAlias

import msgspec


class TokenKind(StrEnum):
    TEXT = "text"
    VARIABLE = "variable"      # {{name}}, escaped
    UNESCAPED = "unescaped"    # {{{name}}} / {{&name}}
    SECTION = "section"        # {{#name}}...{{/name}}
    INVERTED = "inverted"      # {{^name}}...{{/name}}
    PARTIAL = "partial"        # {{>name}}
    PRAGMA = "pragma"          # {{%NAME key=value}}


class Token(msgspec.Struct, frozen=True, omit_defaults=True):
    """One lexed unit.

    `value` holds literal text for TEXT tokens, the dotted name for
    variables and sections, the partial name or the pragma name. Sections
    own their body in `children`.
    """

    kind: TokenKind
    value: str = ""
    children: tuple[Token, ...] = ()
    options: dict[str, str] = msgspec.field(default_factory=dict)
    position: int = 0


TokenSequence: TypeAlias = tuple[Token, ...]


def iter_partial_names(tokens: TokenSequence) -> list[str]:
    """Partial names referenced anywhere in `tokens`, in first-seen order."""
    seen: dict[str, None] = {}
    stack = [iter(tokens)]
    while stack:
        tok = next(stack[-1], None)
        if tok is None:
            stack.pop()
            continue
        if tok.kind is TokenKind.PARTIAL:
            seen.setdefault(tok.value, None)
        elif tok.children:
            stack.append(iter(tok.children))
    return list(seen)

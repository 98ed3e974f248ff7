"""
JSON snapshots of a coordinator's token cache, so templates compiled in one
process can seed another (`whisker compile` / `whisker render --cache`).
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import msgspec
import msgspec.json

from whisker.errors import SnapshotError
from whisker.tokens import Token, TokenSequence
from whisker.utils.fs_utils import write_bytes_atomic

SNAPSHOT_SCHEMA = 1


class TokenSnapshot(msgspec.Struct, frozen=True):
    templates: dict[str, tuple[Token, ...]]
    schema: int = SNAPSHOT_SCHEMA


def encode_tokens(tokens: Mapping[str, TokenSequence]) -> bytes:
    snapshot = TokenSnapshot(templates={name: tuple(seq) for name, seq in tokens.items()})
    return msgspec.json.encode(snapshot) + b"\n"


def decode_tokens(data: bytes | str) -> dict[str, TokenSequence]:
    try:
        snapshot = msgspec.json.decode(data, type=TokenSnapshot)
    except msgspec.DecodeError as e:
        raise SnapshotError(f"Invalid token snapshot: {e}") from e
    if snapshot.schema != SNAPSHOT_SCHEMA:
        raise SnapshotError(
            f"Unsupported token snapshot schema {snapshot.schema} (expected {SNAPSHOT_SCHEMA})"
        )
    return dict(snapshot.templates)


def save_tokens(path: Path, tokens: Mapping[str, TokenSequence]) -> None:
    write_bytes_atomic(path, encode_tokens(tokens))


def load_tokens(path: Path) -> dict[str, TokenSequence]:
    return decode_tokens(path.read_bytes())

"""
whisker.config
==============

Engine-wide settings in one immutable bag. The coordinator hands it to the
default resolver, lexer and renderer it constructs.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

DEFAULT_SUFFIX = ".mustache"
DEFAULT_MAX_DEPTH = 64

# ---- environment variables ---------------------------------------------------

ENV_TEMPLATE_PATH = "WHISKER_TEMPLATE_PATH"
ENV_SUFFIX = "WHISKER_SUFFIX"
ENV_MAX_DEPTH = "WHISKER_MAX_DEPTH"


@dataclass(frozen=True, slots=True)
class EngineConfig:
    # --- resolution ---
    template_paths: tuple[Path, ...] = ()
    suffix: str = DEFAULT_SUFFIX

    # --- rendering ---
    max_depth: int = DEFAULT_MAX_DEPTH  # nesting limit for partials and sub-views
    escape_html: bool = True

    # --- lexing ---
    eager_partials: bool = False  # pre-tokenize partials found while lexing

    def __post_init__(self) -> None:
        if self.max_depth <= 0:
            raise ValueError(f"EngineConfig.max_depth must be positive (got {self.max_depth})")
        object.__setattr__(self, "template_paths", tuple(Path(p) for p in self.template_paths))

    def evolve(self, **overrides: Any) -> EngineConfig:
        _validate_override_keys(overrides)
        return replace(self, **overrides)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineConfig:
        """Build a config from WHISKER_* variables; unset variables keep defaults."""
        env = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}

        raw_paths = env.get(ENV_TEMPLATE_PATH)
        if raw_paths:
            overrides["template_paths"] = tuple(
                Path(p) for p in raw_paths.split(os.pathsep) if p
            )

        suffix = env.get(ENV_SUFFIX)
        if suffix is not None:
            overrides["suffix"] = suffix

        raw_depth = env.get(ENV_MAX_DEPTH)
        if raw_depth:
            try:
                overrides["max_depth"] = int(raw_depth)
            except ValueError as e:
                raise ValueError(f"{ENV_MAX_DEPTH} must be an integer (got {raw_depth!r})") from e

        return cls(**overrides)


def _validate_override_keys(overrides: Mapping[str, Any] | None) -> None:
    if not overrides:
        return
    allowed = {f.name for f in fields(EngineConfig)}
    unknown = [k for k in overrides.keys() if k not in allowed]
    if unknown:
        raise KeyError("Unknown EngineConfig override keys: " + ", ".join(sorted(unknown)))

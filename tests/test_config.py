from __future__ import annotations

import os
from pathlib import Path

import pytest

from whisker.config import DEFAULT_MAX_DEPTH, DEFAULT_SUFFIX, EngineConfig


def test_defaults() -> None:
    cfg = EngineConfig()
    assert cfg.template_paths == ()
    assert cfg.suffix == DEFAULT_SUFFIX == ".mustache"
    assert cfg.max_depth == DEFAULT_MAX_DEPTH
    assert cfg.escape_html
    assert not cfg.eager_partials


def test_paths_are_coerced() -> None:
    cfg = EngineConfig(template_paths=("a", Path("b")))  # type: ignore[arg-type]
    assert cfg.template_paths == (Path("a"), Path("b"))


@pytest.mark.parametrize("depth", [0, -1])
def test_max_depth_must_be_positive(depth: int) -> None:
    with pytest.raises(ValueError):
        EngineConfig(max_depth=depth)


def test_evolve() -> None:
    base = EngineConfig()
    cfg = base.evolve(suffix=".html", max_depth=5)
    assert (cfg.suffix, cfg.max_depth) == (".html", 5)
    assert base.suffix == DEFAULT_SUFFIX
    assert base.evolve() == base


def test_evolve_rejects_unknown_keys() -> None:
    with pytest.raises(KeyError, match="colour"):
        EngineConfig().evolve(colour="red")


def test_from_env() -> None:
    env = {
        "WHISKER_TEMPLATE_PATH": os.pathsep.join(["one", "", "two"]),
        "WHISKER_SUFFIX": ".tpl",
        "WHISKER_MAX_DEPTH": "8",
    }
    cfg = EngineConfig.from_env(env)
    assert cfg.template_paths == (Path("one"), Path("two"))
    assert cfg.suffix == ".tpl"
    assert cfg.max_depth == 8


def test_from_env_empty() -> None:
    assert EngineConfig.from_env({}) == EngineConfig()


def test_from_env_bad_depth() -> None:
    with pytest.raises(ValueError, match="WHISKER_MAX_DEPTH"):
        EngineConfig.from_env({"WHISKER_MAX_DEPTH": "deep"})


def test_config_is_frozen() -> None:
    with pytest.raises(AttributeError):
        EngineConfig().suffix = ".x"  # type: ignore[misc]

from __future__ import annotations

from pathlib import Path

import pytest

from whisker import Whisker


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    d = tmp_path / "templates"
    d.mkdir()
    return d


@pytest.fixture
def engine(template_dir: Path) -> Whisker:
    return Whisker().add_template_path(template_dir)

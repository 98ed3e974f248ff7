from __future__ import annotations

from pathlib import Path

import pytest

from whisker.resolver import FileSystemResolver, Resolver

from tests.utils import write_templates


def test_is_a_resolver() -> None:
    assert isinstance(FileSystemResolver(), Resolver)


def test_resolves_with_suffix(template_dir: Path) -> None:
    write_templates(template_dir, page="x")
    r = FileSystemResolver([template_dir])
    assert r.resolve("page") == template_dir / "page.mustache"
    assert r.resolve("page.mustache") == template_dir / "page.mustache"
    assert r.resolve("other") is None
    assert r.resolve("") is None


def test_nested_names(template_dir: Path) -> None:
    write_templates(template_dir, **{"partials/nav": "n"})
    r = FileSystemResolver([template_dir])
    assert r.resolve("partials/nav") == template_dir / "partials" / "nav.mustache"


def test_suffix_gets_leading_dot(template_dir: Path) -> None:
    write_templates(template_dir, suffix=".html", page="x")
    r = FileSystemResolver([template_dir], suffix="html")
    assert r.suffix == ".html"
    assert r.resolve("page") == template_dir / "page.html"


def test_empty_suffix_uses_name_as_is(template_dir: Path) -> None:
    write_templates(template_dir, suffix="", page="x")
    r = FileSystemResolver([template_dir], suffix="")
    assert r.resolve("page") == template_dir / "page"


def test_last_added_path_wins(tmp_path: Path) -> None:
    a, b = tmp_path / "a", tmp_path / "b"
    for d in (a, b):
        d.mkdir()
        write_templates(d, page=d.name)
    r = FileSystemResolver([a, b])
    assert r.template_paths == (b, a)
    assert r.resolve("page") == b / "page.mustache"

    r.add_template_path(a)
    assert r.template_paths == (a, b)
    assert r.resolve("page") == a / "page.mustache"


def test_falls_through_to_older_paths(tmp_path: Path) -> None:
    a, b = tmp_path / "a", tmp_path / "b"
    a.mkdir()
    b.mkdir()
    write_templates(a, only_a="x")
    r = FileSystemResolver([a, b])
    assert r.resolve("only_a") == a / "only_a.mustache"


def test_rejects_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(NotADirectoryError):
        FileSystemResolver([tmp_path / "nope"])


def test_rejects_traversal(tmp_path: Path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    write_templates(tmp_path, secret="s")
    r = FileSystemResolver([root])
    assert r.resolve("../secret") is None

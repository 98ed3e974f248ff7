"""
whisker.resolver
================

Name -> path lookup for templates. The coordinator only depends on the
`Resolver` protocol; `FileSystemResolver` is the default strategy.
"""

from __future__ import annotations

from collections.abc import Iterable
from os import PathLike
from pathlib import Path
from typing import Protocol, runtime_checkable

from whisker.config import DEFAULT_SUFFIX


@runtime_checkable
class Resolver(Protocol):
    """Capability surface for mapping a template name to readable content."""

    def resolve(self, name: str) -> Path | None: ...


def _is_within(child: Path, root: Path) -> bool:
    """Return True if 'child' is inside 'root' (after resolving symlinks)."""
    try:
        child.resolve().relative_to(root.resolve())
        return True
    except ValueError:
        return False


class FileSystemResolver:
    """Looks templates up in a stack of directories.

    Directories added last are searched first, so a later
    `add_template_path()` can override templates of the same name. The
    suffix is appended to names that do not already end with it.
    """

    def __init__(
        self,
        paths: Iterable[str | Path | PathLike[str]] = (),
        suffix: str = DEFAULT_SUFFIX,
    ):
        self._paths: list[Path] = []
        self.suffix = suffix
        for p in paths:
            self.add_template_path(p)

    @property
    def suffix(self) -> str:
        return self._suffix

    @suffix.setter
    def suffix(self, value: str) -> None:
        if value and not value.startswith("."):
            value = "." + value
        self._suffix = value

    @property
    def template_paths(self) -> tuple[Path, ...]:
        """Search order: most recently added first."""
        return tuple(reversed(self._paths))

    def add_template_path(self, path: str | Path | PathLike[str]) -> None:
        p = Path(path)
        if not p.is_dir():
            raise NotADirectoryError(f"Template path is not a directory: {p}")
        if p in self._paths:
            self._paths.remove(p)
        self._paths.append(p)

    def _filename(self, name: str) -> str:
        if self._suffix and not name.endswith(self._suffix):
            return name + self._suffix
        return name

    def resolve(self, name: str) -> Path | None:
        if not name:
            return None
        filename = self._filename(name)
        for directory in self.template_paths:
            candidate = directory / filename
            if candidate.is_file() and _is_within(candidate, directory):
                return candidate
        return None

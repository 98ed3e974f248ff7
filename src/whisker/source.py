from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path


@dataclass(frozen=True, order=True, slots=True)
class SourceSpan:
    '''0-indexed, [start, end) half-open interval into Source.contents.'''
    start: int  # inclusive
    end: int    # exclusive

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"SourceSpan.start cannot be negative (got {self.start})")
        if self.end < self.start:
            raise ValueError(f"SourceSpan.end ({self.end}) < start ({self.start})")

    def __len__(self) -> int:
        return self.end - self.start


def _compute_line_starts(s: str) -> tuple[int, ...]:
    # Start of each line (1st line starts at 0). Handles \n, \r\n, \r via splitlines.
    starts = [0]
    pos = 0
    for part in s.splitlines(keepends=True):
        pos += len(part)
        starts.append(pos)
    return tuple(starts)


@dataclass(frozen=True, slots=True)
class Source:
    """Template text plus where it came from.

    `name` is the template identifier used for lookups (None for literal
    templates), `file` the path it was read from, if any.
    """

    contents: str
    name: str | None = None
    file: Path | None = None

    _line_starts: tuple[int, ...] | None = field(
        default=None, init=False, repr=False, compare=False
    )

    @classmethod
    def from_file(
        cls,
        path_rep: str | Path | PathLike[str],
        name: str | None = None,
        encoding: str = "utf-8",
    ) -> Source:
        path = Path(path_rep)

        if not path.exists():
            raise FileNotFoundError(f"No such file: {path}")
        elif path.is_dir():
            raise IsADirectoryError(f"Expected a file but found a directory: {path}")

        try:
            return cls(path.read_text(encoding=encoding), name=name, file=path)
        except UnicodeDecodeError:
            raise
        except OSError as e:
            raise OSError(f"Failed to read file {path}: {e}") from e

    @property
    def label(self) -> str:
        if self.file is not None:
            return str(self.file)
        if self.name is not None:
            return self.name
        return "<string>"

    def full_span(self) -> SourceSpan:
        return SourceSpan(0, len(self.contents))

    def slice(self, span: SourceSpan) -> str:
        if not (0 <= span.start <= span.end <= len(self.contents)):
            raise ValueError("SourceSpan out of bounds for this Source")
        return self.contents[span.start:span.end]

    @property
    def line_starts(self) -> tuple[int, ...]:
        ls = self._line_starts
        if ls is None:
            ls = _compute_line_starts(self.contents)
            object.__setattr__(self, "_line_starts", ls)
        return ls

    def pos_to_line_col(self, pos: int) -> tuple[int, int]:
        '''returns 1-indexed (line, col), editor-style; accepts pos==len(contents).'''
        if not (0 <= pos <= len(self.contents)):
            raise ValueError(f"pos {pos} out of range [0, {len(self.contents)}]")
        ls = self.line_starts
        line_idx = bisect.bisect_right(ls, pos) - 1
        return (line_idx + 1, pos - ls[line_idx] + 1)

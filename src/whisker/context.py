from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any

_MISSING: Any = object()


def _is_invocable(value: Any) -> bool:
    return callable(value) and not isinstance(value, type)


def _get_member(frame: Any, key: str) -> Any:
    if isinstance(frame, Mapping):
        return frame.get(key, _MISSING)
    if isinstance(frame, Sequence) and not isinstance(frame, (str, bytes)) and key.isdigit():
        idx = int(key)
        return frame[idx] if idx < len(frame) else _MISSING
    if frame is None or isinstance(frame, (str, bytes, int, float, bool)):
        return _MISSING
    return getattr(frame, key, _MISSING)


def _realize(value: Any) -> Any:
    # methods and zero-argument callables stand for their result
    return value() if _is_invocable(value) else value


class ContextStack:
    """The chain of views a name is looked up in, innermost last.

    Pushing returns a new stack, so an outer scope never sees the frames
    a section pushed.
    """

    __slots__ = ("_frames",)

    def __init__(self, frames: Iterable[Any] = ()):
        self._frames: tuple[Any, ...] = tuple(frames)

    @classmethod
    def of(cls, view: Any) -> ContextStack:
        if isinstance(view, ContextStack):
            return view
        if view is None:
            return cls()
        return cls((view,))

    def push(self, frame: Any) -> ContextStack:
        return ContextStack((*self._frames, frame))

    @property
    def top(self) -> Any:
        return self._frames[-1] if self._frames else None

    @property
    def identity(self) -> tuple[int, ...]:
        """Ids of every frame, outermost first."""
        return tuple(id(f) for f in self._frames)

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[Any]:
        """Frames from innermost to outermost."""
        return reversed(self._frames)

    def lookup(self, name: str, default: Any = None) -> Any:
        """Resolve a dotted name.

        The first segment is searched from the innermost frame outwards;
        the remaining segments are resolved on that value only.
        """
        if name == ".":
            return _realize(self.top)

        head, *rest = name.split(".")
        value = _MISSING
        for frame in self:
            value = _get_member(frame, head)
            if value is not _MISSING:
                break
        if value is _MISSING:
            return default

        value = _realize(value)
        for part in rest:
            value = _get_member(value, part)
            if value is _MISSING:
                return default
            value = _realize(value)
        return value

    def __repr__(self) -> str:
        return f"ContextStack({list(self._frames)!r})"

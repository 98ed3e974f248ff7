"""
Script-friendly helpers for enabling diagnostics:
- `use_diagnostics(...)`: context manager that installs the warnings bridge
  (opt-in) and configures Rich color behaviour with 'auto' defaults.
- `run_with_diagnostics(...)`: decorator wrapping a function in the same
  context and pretty-printing WhiskerError on the way out.
"""

from __future__ import annotations

import contextvars
import functools
import os
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from rich.console import Console

from whisker.errors import WhiskerError
from whisker.reporting.diagnostics import Emitter
from whisker.reporting.warnings_bridge import install_warnings_bridge

__all__ = ["use_diagnostics", "print_exception", "run_with_diagnostics"]

P = ParamSpec("P")
R = TypeVar("R")

# The active Console, so print_exception() reuses the same settings.
_active_console: contextvars.ContextVar[Console | None] = contextvars.ContextVar(
    "_active_console", default=None
)


@contextmanager
def use_diagnostics(
    *,
    color: str | None = None,
    pretty: bool | str | None = None,
    only_diagnostics: bool = True,
) -> Iterator[Console]:
    """
    Enable Rich diagnostics for the current script.

    Args:
      color: 'auto' | 'always' | 'never' | None (env WHISKER_COLOR or 'auto')
      pretty: True | False | 'auto' | None (env WHISKER_PRETTY_WARNINGS or 'auto')
      only_diagnostics: passed to install_warnings_bridge().

    pretty='auto' installs the bridge only when a TTY is attached.
    """
    color = (color or os.getenv("WHISKER_COLOR") or "auto").lower()
    pretty_val = pretty if pretty is not None else os.getenv("WHISKER_PRETTY_WARNINGS", "auto")
    pretty_str = str(pretty_val).lower()
    is_tty = sys.stderr.isatty() or sys.stdout.isatty()
    enable_pretty = (pretty_str in {"true", "1"}) or (pretty_str == "auto" and is_tty)

    console = Console(
        stderr=True,
        force_terminal=(color == "always"),
        no_color=(color == "never"),
    )
    token = _active_console.set(console)

    uninstall = None
    try:
        if enable_pretty:
            uninstall = install_warnings_bridge(
                emitter=Emitter(console=console),
                only_diagnostics=only_diagnostics,
            )
        yield console
    finally:
        if uninstall:
            uninstall()
        _active_console.reset(token)


def print_exception(e: WhiskerError) -> None:
    """Pretty-print a WhiskerError; uses the active Console if there is one."""
    (_active_console.get() or Console(stderr=True)).print(e)


def run_with_diagnostics(
    *,
    color: str | None = None,
    pretty: bool | str | None = None,
    exit_on_exception: bool = True,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator: runs the function inside `use_diagnostics(...)`.
    If a WhiskerError escapes, pretty-print it and (by default) exit 2.
    """
    def deco(fn: Callable[P, R]) -> Callable[P, R]:
        @functools.wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            with use_diagnostics(color=color, pretty=pretty):
                try:
                    return fn(*args, **kwargs)
                except WhiskerError as e:
                    print_exception(e)
                    if exit_on_exception:
                        raise SystemExit(2)
                    raise
        return wrapper
    return deco

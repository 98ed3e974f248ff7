"""
Opt-in bridge that routes Whisker warnings to rich code-frame rendering.
Python's warnings semantics and filtering are preserved.

Nothing here is installed at import time; scripts and the CLI opt in.
"""

from __future__ import annotations

import warnings
from collections.abc import Callable
from dataclasses import dataclass
from typing import TextIO

from rich.console import Console

from whisker.reporting.diagnostics import Diagnostic, Emitter, format_diagnostic

__all__ = [
    "WhiskerWarning",
    "TemplateWarning",
    "PragmaWarning",
    "DiagnosticWarning",
    "install_warnings_bridge",
]


# ─────────── Warning categories ───────────


class WhiskerWarning(Warning):
    """Base Whisker warning category."""


class TemplateWarning(WhiskerWarning):
    """Warnings about template structure that still compiles."""


class PragmaWarning(WhiskerWarning):
    """Warnings about pragma activation (unknown names, ignored options)."""


@dataclass(eq=False)
class DiagnosticWarning(TemplateWarning):
    """
    A warning carrying a Diagnostic. Prints as plain text without the bridge
    and as a code frame once the bridge is installed.
    """

    diagnostic: Diagnostic

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return format_diagnostic(self.diagnostic)


# ─────────── Opt-in bridge ───────────


def install_warnings_bridge(
    *,
    emitter: Emitter | None = None,
    only_diagnostics: bool = True,
) -> Callable[[], None]:
    """
    Route Python's warnings display for Whisker warnings through Rich frames.

    - Returns an `uninstall()` function restoring the previous handler.
    - With `only_diagnostics=True` (default) only DiagnosticWarning gets a frame;
      otherwise plain Whisker warnings are printed on the same console too.
      Non-Whisker warnings always pass through unchanged.
    """
    em = emitter or Emitter(Console(stderr=True))

    prev_showwarning = warnings.showwarning

    def _showwarning(
        message: Warning | str,
        category: type[Warning],
        filename: str,
        lineno: int,
        file: TextIO | None = None,
        line: str | None = None,
    ) -> None:
        if isinstance(message, DiagnosticWarning):
            em.emit(message.diagnostic)
            return
        if only_diagnostics or not issubclass(category, WhiskerWarning):
            return prev_showwarning(message, category, filename, lineno, file=file, line=line)
        em.console.print(f"{category.__name__}: {message} ({filename}:{lineno})")

    warnings.showwarning = _showwarning

    def uninstall() -> None:
        warnings.showwarning = prev_showwarning

    return uninstall

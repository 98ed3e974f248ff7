"""
Whisker exceptions: a base WhiskerError that optionally wraps a Diagnostic and
renders with the same rich code-frame formatting as warnings.
"""

from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console, ConsoleOptions, RenderResult
from rich.text import Text

from whisker.reporting.diagnostics import Diagnostic, format_diagnostic, render_diagnostic

__all__ = [
    "WhiskerError",
    "InvalidPartialsError",
    "TemplateNotFoundError",
    "InvalidPragmaNameError",
    "TemplateSyntaxError",
    "UnbalancedTagError",
    "InvalidTemplateReferenceError",
    "InvalidSubViewArgumentError",
    "TemplateRecursionError",
    "SnapshotError",
]


@dataclass(eq=False)
class WhiskerError(Exception):
    """
    Base Whisker exception. Lexer errors carry a Diagnostic pointing into the
    offending template; lookup and argument errors only carry a message.
    """

    message: str
    diagnostic: Diagnostic | None = None

    # Plain-text fallback (CI/log files; or if no Console is used)
    def __str__(self) -> str:
        if self.diagnostic is None:
            return self.message
        return format_diagnostic(self.diagnostic)

    # Pretty rendering when printed via Rich Console
    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        _ = console
        _ = options
        if self.diagnostic is None:
            yield Text(f"ERROR: {self.message}", style="bold red")
        else:
            yield render_diagnostic(self.diagnostic)


class InvalidPartialsError(WhiskerError):
    """The partials argument is neither a mapping nor an object with attributes."""


class TemplateNotFoundError(WhiskerError):
    """A named template could not be resolved to retrievable content."""


class InvalidPragmaNameError(WhiskerError):
    """A pragma name is empty or contains disallowed characters."""


class TemplateSyntaxError(WhiskerError):
    """A tag is structurally valid but its contents are not."""


class UnbalancedTagError(TemplateSyntaxError):
    """An unclosed tag, an unclosed section, or a close tag with no matching open."""


class InvalidTemplateReferenceError(WhiskerError):
    """A sub-view was given a template reference that is not text."""


class InvalidSubViewArgumentError(WhiskerError):
    """A sub-view was given a scalar view."""


class TemplateRecursionError(WhiskerError):
    """A template re-entered itself with the same view, or nesting got too deep."""


class SnapshotError(WhiskerError):
    """A token-cache snapshot could not be decoded."""

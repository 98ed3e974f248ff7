"""
Template diagnostics: one data model shared by exceptions and warnings, a
rich renderer drawing the offending template lines with carets under the
tag, and an Emitter bound to a Console.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

from whisker.source import Source, SourceSpan

__all__ = [
    "Severity",
    "Related",
    "Diagnostic",
    "FrameStyle",
    "Emitter",
    "render_diagnostic",
    "format_diagnostic",
]


class Severity(StrEnum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Related:
    """A secondary location, e.g. where an unclosed section was opened."""

    label: str
    span: SourceSpan
    source: Source


@dataclass(frozen=True, slots=True)
class Diagnostic:
    message: str
    severity: Severity
    span: SourceSpan
    source: Source
    code: str | None = None
    notes: list[str] = field(default_factory=list)
    hint: str | None = None
    related: list[Related] = field(default_factory=list)

    @property
    def headline(self) -> str:
        code = f" [{self.code}]" if self.code else ""
        return f"{self.severity.upper()}{code}: {self.message}"


def format_diagnostic(d: Diagnostic) -> str:
    """Single line for logs and `str()` of errors and warnings."""
    ln, col = d.source.pos_to_line_col(d.span.start)
    return f"{d.headline} at {d.source.label}:{ln}:{col}"


@dataclass(frozen=True, slots=True)
class FrameStyle:
    context_lines: int = 1
    tab_width: int = 4
    max_related: int = 4
    severity_styles: dict[Severity, str] = field(
        default_factory=lambda: {
            Severity.INFO: "bold cyan",
            Severity.WARN: "bold yellow",
            Severity.ERROR: "bold red",
        }
    )
    dim: str = "dim"
    caret: str = "bold red"

    def for_severity(self, sev: Severity) -> str:
        return self.severity_styles.get(sev, "bold")


def _line_text(source: Source, line_no: int) -> str:
    starts = source.line_starts
    lo = starts[line_no - 1]
    hi = starts[line_no] if line_no < len(starts) else len(source.contents)
    return source.contents[lo:hi].rstrip("\r\n")


def _caret_line(raw: str, first_col: int, last_col: int, indent: int, style: FrameStyle) -> Text:
    # columns are 1-indexed into the raw line; tabs expand before measuring
    left = len(raw[: first_col - 1].expandtabs(style.tab_width))
    right = len(raw[: max(first_col, last_col) - 1].expandtabs(style.tab_width))
    caret = Text(" " * (indent + left))
    caret.append("^" * max(1, right - left), style=style.caret)
    return caret


def _frame(source: Source, span: SourceSpan, sev: Severity, style: FrameStyle) -> RenderableType:
    first_line, first_col = source.pos_to_line_col(span.start)
    last_line, last_col = source.pos_to_line_col(span.end)
    line_count = max(1, len(source.line_starts) - 1)
    if last_line > line_count:
        last_line = line_count
        last_col = len(_line_text(source, last_line)) + 1

    lo = max(1, first_line - style.context_lines)
    hi = min(line_count, last_line + style.context_lines)
    width = len(str(hi))

    rows: list[Text] = []
    for n in range(lo, hi + 1):
        raw = _line_text(source, n)
        rows.append(
            Text.assemble((f"{n:>{width}}", style.dim), " | ", raw.expandtabs(style.tab_width))
        )
        if first_line <= n <= last_line:
            start = first_col if n == first_line else 1
            stop = last_col if n == last_line else len(raw) + 1
            rows.append(_caret_line(raw, start, stop, width + 3, style))

    title = Text.assemble((source.label, "italic"), f":{first_line}:{first_col}")
    return Panel.fit(
        Text("\n").join(rows),
        title=title,
        border_style=style.for_severity(sev),
        padding=(0, 1),
    )


def render_diagnostic(d: Diagnostic, *, style: FrameStyle | None = None) -> RenderableType:
    """Headline, rule, the main frame, related frames (capped) and notes/hint."""
    style = style or FrameStyle()
    sev_style = style.for_severity(d.severity)

    parts: list[RenderableType] = [
        Text(d.headline, style=sev_style),
        Rule(style=sev_style),
        _frame(d.source, d.span, d.severity, style),
    ]
    for rel in d.related[: style.max_related]:
        parts.append(Text(rel.label, style=style.dim))
        parts.append(_frame(rel.source, rel.span, d.severity, style))
    hidden = len(d.related) - style.max_related
    if hidden > 0:
        parts.append(Text(f"... {hidden} more", style=style.dim))

    for note in d.notes:
        parts.append(Text.assemble(("  • ", style.dim), note))
    if d.hint:
        parts.append(Text.assemble(("Hint: ", "italic"), d.hint))
    return Group(*parts)


class Emitter:
    """Prints diagnostics on one Console."""

    def __init__(self, console: Console | None = None, style: FrameStyle | None = None):
        self.console = console or Console(stderr=True)
        self.style = style or FrameStyle()

    def emit(self, d: Diagnostic) -> None:
        self.console.print(render_diagnostic(d, style=self.style))

    def report(
        self,
        severity: Severity,
        message: str,
        source: Source,
        span: SourceSpan,
        *,
        code: str | None = None,
        hint: str | None = None,
        notes: Iterable[str] = (),
        related: Iterable[Related] = (),
    ) -> None:
        self.emit(
            Diagnostic(
                message,
                severity,
                span,
                source,
                code=code,
                notes=list(notes),
                hint=hint,
                related=list(related),
            )
        )

    def warn(self, message: str, source: Source, span: SourceSpan, **kw: Any) -> None:
        self.report(Severity.WARN, message, source, span, **kw)

    def error(self, message: str, source: Source, span: SourceSpan, **kw: Any) -> None:
        self.report(Severity.ERROR, message, source, span, **kw)

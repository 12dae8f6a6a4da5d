# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Human-readable report rendering backed by Rich."""

from __future__ import annotations

from collections import Counter
from pathlib import Path

from rich import box
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..logging import get_console_manager
from ..models import AnalysisResult, DuplicationClone, FileError, FileMetrics, Issue, Report
from ..tools.base import ToolResult
from .json_formatter import ordered_findings


def format_finding(finding: ToolResult) -> str:
    """Return a one-line description of ``finding``."""

    match finding:
        case Issue():
            return f"{finding.file}:{finding.line} [{finding.tool}] {finding.pattern_id} {finding.message}"
        case FileError():
            return f"{finding.file} [{finding.tool}] error: {finding.message}"
        case FileMetrics():
            return (
                f"{finding.file} [{finding.tool}] loc={finding.loc if finding.loc is not None else '-'} "
                f"complexity={finding.complexity if finding.complexity is not None else '-'}"
            )
        case DuplicationClone():
            locations = ", ".join(f"{item.file}:{item.start_line}-{item.end_line}" for item in finding.files)
            return f"[{finding.tool}] duplicated {finding.nr_lines} lines: {locations}"
    return str(finding)


def render_text_lines(report: Report) -> list[str]:
    """Return the report as plain text lines in presentation order."""

    return [format_finding(finding) for finding in ordered_findings(report)]


class TextFormatter:
    """Print findings to the console or write them to a text file."""

    def __init__(self, destination: Path | None = None, *, color: bool = True, emoji: bool = True) -> None:
        self._destination = destination
        self._color = color
        self._emoji = emoji

    def __call__(self, report: Report) -> None:
        self.write(report, self._destination)

    def write(self, report: Report, destination: Path | None = None) -> None:
        """Render ``report`` to ``destination`` or to standard output."""

        lines = render_text_lines(report)
        if destination is not None:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
            return
        console = get_console_manager().get(color=self._color, emoji=self._emoji)
        for finding, line in zip(ordered_findings(report), lines, strict=True):
            style = "red" if isinstance(finding, FileError) else None
            console.print(Text(line, style=style) if style and self._color else Text(line))


def create_summary_panel(result: AnalysisResult, *, color: bool) -> Panel:
    """Return a Rich panel summarising ``result``."""

    table = Table(show_header=False, box=box.SIMPLE, pad_edge=False, expand=False)
    label_style = "yellow" if color else None
    value_style = "orange1" if color else None
    table.add_column(style=label_style, justify="left", no_wrap=True)
    table.add_column(style=value_style, justify="right", no_wrap=True)

    kinds = Counter(finding.kind for finding in result.report)
    table.add_row("Files", str(len(result.files)))
    table.add_row("Tools", str(len(result.tools)))
    skipped = result.not_enabled
    table.add_row("- failed", str(len({failure.tool for failure in result.failures if failure not in skipped})))
    if skipped:
        table.add_row("- not enabled", str(len(skipped)))
    table.add_row("Issues", str(kinds.get("issue", 0)))
    table.add_row("File errors", str(kinds.get("file_error", 0)))
    if kinds.get("metrics"):
        table.add_row("Metrics", str(kinds["metrics"]))
    if kinds.get("clone"):
        table.add_row("Clones", str(kinds["clone"]))
    return Panel(table, title="qaflow", border_style="cyan" if color else "none", expand=False)


def emit_summary(result: AnalysisResult, *, color: bool, emoji: bool) -> None:
    """Print the summary panel for ``result`` to standard error."""

    console = get_console_manager().get(color=color, emoji=emoji, stderr=True)
    console.print(create_summary_panel(result, color=color))


__all__ = [
    "TextFormatter",
    "create_summary_panel",
    "emit_summary",
    "format_finding",
    "render_text_lines",
]

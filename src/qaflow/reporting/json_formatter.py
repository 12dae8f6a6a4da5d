# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Serialise reports as deterministic JSON documents."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TextIO

from ..models import FINDINGS_ADAPTER, DuplicationClone, Report
from ..tools.base import ToolResult


def _sort_key(finding: ToolResult) -> tuple[str, str, int, str, str]:
    if isinstance(finding, DuplicationClone):
        first = finding.files[0] if finding.files else None
        return (
            first.file if first else "",
            finding.kind,
            first.start_line if first else 0,
            finding.clone_lines,
            finding.tool,
        )
    line = getattr(finding, "line", 0)
    detail = getattr(finding, "pattern_id", "") or getattr(finding, "message", "")
    return (finding.file, finding.kind, line, detail, finding.tool)


def ordered_findings(report: Report) -> list[ToolResult]:
    """Return the findings of ``report`` in a stable presentation order."""

    return sorted(report.findings, key=_sort_key)


def render_report_json(report: Report) -> str:
    """Return ``report`` as an indented JSON array of findings."""

    payload = FINDINGS_ADAPTER.dump_python(ordered_findings(report), mode="json")
    return json.dumps(payload, indent=2)


class JsonFormatter:
    """Write reports as a JSON array, one object per finding."""

    def __init__(self, destination: Path | TextIO | None = None) -> None:
        self._destination = destination

    def __call__(self, report: Report) -> None:
        self.write(report, self._destination)

    def write(self, report: Report, destination: Path | TextIO | None = None) -> None:
        """Write ``report`` to ``destination``.

        Args:
            report: Report to serialise.
            destination: File path or text stream; standard output when ``None``.
        """

        document = render_report_json(report) + "\n"
        if isinstance(destination, Path):
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text(document, encoding="utf-8")
            return
        stream = destination if destination is not None else sys.stdout
        stream.write(document)
        stream.flush()


__all__ = ["JsonFormatter", "ordered_findings", "render_report_json"]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Report formatters."""

from __future__ import annotations

from .json_formatter import JsonFormatter, ordered_findings, render_report_json
from .text import TextFormatter, create_summary_panel, emit_summary, format_finding, render_text_lines

__all__ = [
    "JsonFormatter",
    "TextFormatter",
    "create_summary_panel",
    "emit_summary",
    "format_finding",
    "ordered_findings",
    "render_report_json",
    "render_text_lines",
]

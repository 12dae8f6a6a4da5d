# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for finding, report and run-outcome models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from qaflow.models import (
    FINDING_ADAPTER,
    AnalysisResult,
    FileMetrics,
    Issue,
    IssueLevel,
    Report,
    ToolFailure,
    ToolFailureKind,
)


def test_findings_are_immutable_and_hashable() -> None:
    issue = Issue(tool="pylint", file="a.py", pattern_id="C0111", message="m")

    with pytest.raises(ValidationError):
        issue.line = 3  # type: ignore[misc]
    assert len({issue, Issue(tool="pylint", file="a.py", pattern_id="C0111", message="m")}) == 1


def test_finding_adapter_dispatches_on_kind() -> None:
    finding = FINDING_ADAPTER.validate_python({"kind": "metrics", "tool": "radon", "file": "a.py", "loc": 3})

    assert isinstance(finding, FileMetrics)
    with pytest.raises(ValidationError):
        FINDING_ADAPTER.validate_python({"kind": "mystery", "tool": "x"})


def test_report_orders_issues_by_location() -> None:
    report = Report.from_findings(
        [
            Issue(tool="b", file="z.py", pattern_id="X", message="m", level=IssueLevel.ERROR),
            Issue(tool="a", file="a.py", pattern_id="Y", message="m", line=5),
            Issue(tool="a", file="a.py", pattern_id="X", message="m", line=5),
        ],
    )

    assert [(issue.file, issue.pattern_id) for issue in report.issues()] == [
        ("a.py", "X"),
        ("a.py", "Y"),
        ("z.py", "X"),
    ]


def test_all_tools_failed_requires_invoked_tools() -> None:
    failure = ToolFailure(tool="a", kind=ToolFailureKind.TIMEOUT, message="slow")

    assert not AnalysisResult(report=Report()).all_tools_failed
    assert AnalysisResult(report=Report(), tools=("a",), failures=(failure,)).all_tools_failed
    assert not AnalysisResult(report=Report(), tools=("a", "b"), failures=(failure,)).all_tools_failed
    assert failure.describe() == "a: timeout: slow"


def test_not_enabled_tools_are_not_counted_as_failures() -> None:
    skipped = ToolFailure(tool="remote-scan", kind=ToolFailureKind.NOT_ENABLED, message="needs network")
    result = AnalysisResult(report=Report(), tools=("pylint",), failures=(skipped,))

    assert result.not_enabled == (skipped,)
    assert not result.has_failures
    assert not result.all_tools_failed

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for filtering, normalising and deduplicating tool results."""

from __future__ import annotations

from pathlib import Path

import pytest

from qaflow.config.models import AnalysisConfiguration, PatternSettings, ToolSettings
from qaflow.discovery.rules import ExclusionRuleSet
from qaflow.models import (
    CloneFile,
    DuplicationClone,
    FileError,
    FileMetrics,
    Issue,
    ToolFailure,
    ToolFailureKind,
)
from qaflow.orchestration.aggregator import ResultAggregator
from qaflow.orchestration.resolver import ResolvedConfiguration, ToolConfigResolver
from qaflow.tools.registry import ToolRegistry


def _issue(pattern_id: str, file: str = "lib/main.py", line: int = 1, tool: str = "pylint") -> Issue:
    return Issue(tool=tool, file=file, pattern_id=pattern_id, message=f"{pattern_id} triggered", line=line)


@pytest.fixture
def registry(make_tool) -> ToolRegistry:
    return ToolRegistry([make_tool("pylint"), make_tool("jscpd", category="duplication", languages=())])


def _resolve(registry: ToolRegistry, root: Path, **overrides: object) -> ResolvedConfiguration:
    local = AnalysisConfiguration.model_validate({"directory": root, **overrides})
    return ToolConfigResolver(registry).resolve(None, local)


def test_explicit_pattern_set_filters_issues(registry: ToolRegistry, tmp_path: Path) -> None:
    patterns = tuple(PatternSettings(pattern_id=pid) for pid in ("PyLint_C0111", "PyLint_E1101"))
    resolved = _resolve(registry, tmp_path, tool_settings={"pylint": ToolSettings(patterns=patterns)})
    results = {"pylint": [_issue("PyLint_C0111"), _issue("PyLint_E1101"), _issue("PyLint_W0611")]}

    outcome = ResultAggregator().aggregate(results, resolved, tmp_path)

    assert {issue.pattern_id for issue in outcome.report.issues()} == {"PyLint_C0111", "PyLint_E1101"}


def test_default_patterns_do_not_filter(registry: ToolRegistry, tmp_path: Path) -> None:
    resolved = _resolve(registry, tmp_path)
    results = {"pylint": [_issue("PyLint_C0111"), _issue("PyLint_E1101"), _issue("PyLint_W0611")]}

    outcome = ResultAggregator().aggregate(results, resolved, tmp_path)

    assert len(outcome.report.issues()) == 3


def test_explicit_empty_pattern_set_does_not_filter(registry: ToolRegistry, tmp_path: Path) -> None:
    resolved = _resolve(registry, tmp_path, tool_settings={"pylint": ToolSettings(patterns=())})

    outcome = ResultAggregator().aggregate({"pylint": [_issue("PyLint_W0611")]}, resolved, tmp_path)

    assert len(outcome.report) == 1


def test_excluded_paths_are_dropped_after_the_fact(registry: ToolRegistry, tmp_path: Path) -> None:
    resolved = _resolve(registry, tmp_path, exclusions=ExclusionRuleSet(ignore_paths=frozenset({"lib/tests/"})))
    results = {
        "pylint": [
            _issue("PyLint_C0111", file="lib/tests/a.py"),
            _issue("PyLint_C0111", file="lib/main.py"),
            FileError(tool="pylint", file="lib/tests/b.py", message="cannot parse"),
        ],
    }

    outcome = ResultAggregator().aggregate(results, resolved, tmp_path)

    assert [finding.file for finding in outcome.report.issues()] == ["lib/main.py"]
    assert not any(finding.file.startswith("lib/tests/") for finding in outcome.report if hasattr(finding, "file"))


def test_paths_are_normalised_relative_to_root(registry: ToolRegistry, tmp_path: Path) -> None:
    resolved = _resolve(registry, tmp_path)
    results = {
        "pylint": [
            _issue("PyLint_C0111", file=str(tmp_path / "lib" / "main.py")),
            _issue("PyLint_C0111", file="./lib/main.py"),
        ],
    }

    outcome = ResultAggregator().aggregate(results, resolved, tmp_path)

    assert [issue.file for issue in outcome.report.issues()] == ["lib/main.py"]


def test_duplicate_findings_collapse(registry: ToolRegistry, tmp_path: Path) -> None:
    resolved = _resolve(registry, tmp_path)
    results = {"pylint": [_issue("PyLint_C0111", line=3), _issue("PyLint_C0111", line=3), _issue("PyLint_C0111")]}

    outcome = ResultAggregator().aggregate(results, resolved, tmp_path)

    assert len(outcome.report) == 2


def test_failures_are_recorded_alongside_successes(registry: ToolRegistry, tmp_path: Path) -> None:
    resolved = _resolve(registry, tmp_path)
    failure = ToolFailure(tool="jscpd", kind=ToolFailureKind.EXECUTION_ERROR, message="crashed")
    results = {"pylint": [_issue("PyLint_C0111")], "jscpd": failure}

    outcome = ResultAggregator().aggregate(results, resolved, tmp_path)

    assert outcome.failures == (failure,)
    assert {finding.tool for finding in outcome.report} == {"pylint"}


def test_planned_files_guard_issue_findings(registry: ToolRegistry, tmp_path: Path) -> None:
    resolved = _resolve(registry, tmp_path)
    results = {"pylint": [_issue("PyLint_C0111", file="lib/main.py"), _issue("PyLint_C0111", file="lib/other.py")]}

    outcome = ResultAggregator().aggregate(results, resolved, tmp_path, files_by_tool={"pylint": ["lib/main.py"]})

    assert [issue.file for issue in outcome.report.issues()] == ["lib/main.py"]


def test_metrics_are_path_filtered_but_not_pattern_filtered(registry: ToolRegistry, tmp_path: Path) -> None:
    patterns = (PatternSettings(pattern_id="PyLint_C0111"),)
    resolved = _resolve(
        registry,
        tmp_path,
        tool_settings={"pylint": ToolSettings(patterns=patterns)},
        exclusions=ExclusionRuleSet(ignore_paths=frozenset({"vendor/"})),
    )
    results = {
        "pylint": [
            FileMetrics(tool="pylint", file="lib/main.py", loc=10),
            FileMetrics(tool="pylint", file="vendor/lib.py", loc=99),
        ],
    }

    outcome = ResultAggregator().aggregate(results, resolved, tmp_path)

    assert [finding.file for finding in outcome.report] == ["lib/main.py"]


def test_clones_drop_excluded_occurrences(registry: ToolRegistry, tmp_path: Path) -> None:
    resolved = _resolve(registry, tmp_path, exclusions=ExclusionRuleSet(ignore_paths=frozenset({"vendor/"})))
    kept = DuplicationClone(
        tool="jscpd",
        clone_lines="a = 1",
        nr_tokens=10,
        nr_lines=3,
        files=(
            CloneFile(file="lib/a.py", start_line=1, end_line=3),
            CloneFile(file="lib/b.py", start_line=5, end_line=7),
            CloneFile(file="vendor/c.py", start_line=1, end_line=3),
        ),
    )
    dropped = DuplicationClone(
        tool="jscpd",
        clone_lines="b = 2",
        nr_tokens=10,
        nr_lines=3,
        files=(
            CloneFile(file="lib/a.py", start_line=9, end_line=11),
            CloneFile(file="vendor/d.py", start_line=1, end_line=3),
        ),
    )

    outcome = ResultAggregator().aggregate({"jscpd": [kept, dropped]}, resolved, tmp_path)

    (clone,) = outcome.report
    assert isinstance(clone, DuplicationClone)
    assert [occurrence.file for occurrence in clone.files] == ["lib/a.py", "lib/b.py"]

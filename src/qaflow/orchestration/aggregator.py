# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Combine per-tool results into a single deduplicated report."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from ..discovery.rules import ExclusionRuleSet
from ..filesystem.paths import normalize_path_key
from ..logging import get_logger
from ..models import (
    CloneFile,
    DuplicationClone,
    FileError,
    FileMetrics,
    Issue,
    Report,
    ToolFailure,
)
from ..tools.base import ToolResult
from .resolver import ResolvedConfiguration

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class AggregationOutcome:
    """Report built from successful tools and the failures recorded alongside."""

    report: Report
    failures: tuple[ToolFailure, ...] = ()


@dataclass(frozen=True, slots=True)
class _Filter:
    """Per-tool view of the rules applied to each finding."""

    rules: ExclusionRuleSet
    pattern_ids: frozenset[str]
    planned: frozenset[str] | None


class ResultAggregator:
    """Filter, normalise and deduplicate findings from every tool.

    Failures are collected rather than raised so that one broken tool does
    not hide the findings of the others.
    """

    def aggregate(
        self,
        results: Mapping[str, Iterable[ToolResult] | ToolFailure],
        resolved: ResolvedConfiguration,
        root: Path,
        files_by_tool: Mapping[str, Iterable[str]] | None = None,
    ) -> AggregationOutcome:
        """Return the report for ``results``.

        Args:
            results: Findings or failure per tool name.
            resolved: Configuration the tools were resolved with.
            root: Analysis root used to relativise reported paths.
            files_by_tool: Files each tool was asked to analyse; issues and
                file errors outside that set are dropped.

        Returns:
            AggregationOutcome: Deduplicated report and the recorded failures.
        """

        findings: set[ToolResult] = set()
        failures: list[ToolFailure] = []
        for tool_name in sorted(results):
            outcome = results[tool_name]
            if isinstance(outcome, ToolFailure):
                failures.append(outcome)
                continue
            planned = files_by_tool.get(tool_name) if files_by_tool is not None else None
            view = self._filter_for(tool_name, resolved, planned)
            kept = 0
            for finding in outcome:
                accepted = self._accept(finding, view, root)
                if accepted is not None:
                    findings.add(accepted)
                    kept += 1
            LOGGER.debug("Kept %d findings from %s", kept, tool_name)
        return AggregationOutcome(report=Report.from_findings(findings), failures=tuple(failures))

    @staticmethod
    def _filter_for(
        tool_name: str,
        resolved: ResolvedConfiguration,
        planned: Iterable[str] | None,
    ) -> _Filter:
        entry = resolved.get(tool_name)
        if entry is None:
            LOGGER.debug("%s is not part of the resolved configuration; applying global rules", tool_name)
            rules = resolved.exclusions
            pattern_ids: frozenset[str] = frozenset()
        else:
            rules = entry.exclusions
            pattern_ids = entry.settings.pattern_ids
        return _Filter(
            rules=rules,
            pattern_ids=pattern_ids,
            planned=frozenset(planned) if planned is not None else None,
        )

    @staticmethod
    def _accept(finding: ToolResult, view: _Filter, root: Path) -> ToolResult | None:
        """Return ``finding`` normalised, or ``None`` when it must be dropped."""

        match finding:
            case Issue():
                path = normalize_path_key(finding.file, base_dir=root)
                if view.rules.is_excluded(path) or not _planned(path, view):
                    return None
                if view.pattern_ids and finding.pattern_id not in view.pattern_ids:
                    return None
                return _with_file(finding, path)
            case FileError():
                path = normalize_path_key(finding.file, base_dir=root)
                if view.rules.is_excluded(path) or not _planned(path, view):
                    return None
                return _with_file(finding, path)
            case FileMetrics():
                path = normalize_path_key(finding.file, base_dir=root)
                if view.rules.is_excluded(path):
                    return None
                return _with_file(finding, path)
            case DuplicationClone():
                occurrences = tuple(
                    CloneFile(file=path, start_line=occurrence.start_line, end_line=occurrence.end_line)
                    for occurrence in finding.files
                    if not view.rules.is_excluded(path := normalize_path_key(occurrence.file, base_dir=root))
                )
                if len(occurrences) < 2:
                    return None
                return finding.model_copy(update={"files": occurrences})
        return None


def _planned(path: str, view: _Filter) -> bool:
    return view.planned is None or path in view.planned


def _with_file(finding: Issue | FileError | FileMetrics, path: str) -> ToolResult:
    if finding.file == path:
        return finding
    return finding.model_copy(update={"file": path})


__all__ = ["AggregationOutcome", "ResultAggregator"]

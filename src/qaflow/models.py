# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Finding, report and run-outcome models shared across the package."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class IssueLevel(str, Enum):
    """Severity attached to an issue by the tool that reported it."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class _FindingBase(BaseModel):
    """Common configuration for every finding variant."""

    model_config = ConfigDict(frozen=True)

    tool: str


class Issue(_FindingBase):
    """A pattern violation reported against a single file location."""

    kind: Literal["issue"] = "issue"
    file: str
    pattern_id: str
    message: str
    line: int = 1
    column: int | None = None
    level: IssueLevel = IssueLevel.WARNING
    category: str | None = None


class FileError(_FindingBase):
    """A file the tool could not analyse."""

    kind: Literal["file_error"] = "file_error"
    file: str
    message: str


class LineComplexity(BaseModel):
    """Cyclomatic complexity measured at a given line."""

    model_config = ConfigDict(frozen=True)

    line: int
    value: int


class FileMetrics(_FindingBase):
    """Size and complexity metrics computed for one file."""

    kind: Literal["metrics"] = "metrics"
    file: str
    complexity: int | None = None
    loc: int | None = None
    cloc: int | None = None
    nr_methods: int | None = None
    nr_classes: int | None = None
    line_complexities: tuple[LineComplexity, ...] = ()


class CloneFile(BaseModel):
    """One occurrence of a duplicated block."""

    model_config = ConfigDict(frozen=True)

    file: str
    start_line: int
    end_line: int


class DuplicationClone(_FindingBase):
    """A block of code duplicated across two or more locations."""

    kind: Literal["clone"] = "clone"
    clone_lines: str
    nr_tokens: int
    nr_lines: int
    files: tuple[CloneFile, ...]


Finding = Annotated[Issue | FileError | FileMetrics | DuplicationClone, Field(discriminator="kind")]

FINDING_ADAPTER: TypeAdapter[Issue | FileError | FileMetrics | DuplicationClone] = TypeAdapter(Finding)
FINDINGS_ADAPTER: TypeAdapter[list[Issue | FileError | FileMetrics | DuplicationClone]] = TypeAdapter(list[Finding])


@dataclass(frozen=True, slots=True)
class Report:
    """Immutable set of finalised findings handed to a formatter."""

    findings: frozenset[Issue | FileError | FileMetrics | DuplicationClone] = frozenset()

    @classmethod
    def from_findings(cls, findings: Iterable[Issue | FileError | FileMetrics | DuplicationClone]) -> Report:
        """Return a report holding the distinct ``findings``."""

        return cls(frozenset(findings))

    def issues(self) -> list[Issue]:
        """Return the issue findings ordered by file, line and pattern."""

        found = [finding for finding in self.findings if isinstance(finding, Issue)]
        return sorted(found, key=lambda issue: (issue.file, issue.line, issue.pattern_id, issue.tool))

    def __len__(self) -> int:
        return len(self.findings)

    def __iter__(self) -> Iterator[Issue | FileError | FileMetrics | DuplicationClone]:
        return iter(self.findings)


class ToolFailureKind(str, Enum):
    """Per-tool failures recorded without aborting the run."""

    TIMEOUT = "timeout"
    EXECUTION_ERROR = "execution_error"
    NOT_ENABLED = "not_enabled"


@dataclass(frozen=True, slots=True)
class ToolFailure:
    """Failure of a single tool invocation."""

    tool: str
    kind: ToolFailureKind
    message: str

    def describe(self) -> str:
        """Return a one-line description suitable for console output."""

        return f"{self.tool}: {self.kind.value}: {self.message}"


class DegradedInputKind(str, Enum):
    """Inputs that were unavailable and replaced by defaults."""

    REMOTE_CONFIG_UNAVAILABLE = "remote_config_unavailable"


@dataclass(frozen=True, slots=True)
class DegradedInput:
    """Warning describing an input replaced by local defaults."""

    kind: DegradedInputKind
    message: str


class RunState(str, Enum):
    """States traversed by a single executor run."""

    INIT = "init"
    CONFIG_RESOLVED = "config_resolved"
    FILES_COLLECTED = "files_collected"
    TOOLS_INVOKED = "tools_invoked"
    AGGREGATED = "aggregated"
    REPORTED = "reported"
    ERRORED = "errored"


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """Report plus the diagnostics gathered while producing it."""

    report: Report
    tools: tuple[str, ...] = ()
    failures: tuple[ToolFailure, ...] = ()
    warnings: tuple[DegradedInput, ...] = ()
    files: frozenset[str] = field(default_factory=frozenset)
    state: RunState = RunState.REPORTED

    @property
    def has_failures(self) -> bool:
        """Return whether any invoked tool failed.

        ``NOT_ENABLED`` entries describe tools that were never invoked and do
        not count.
        """

        return any(failure.kind is not ToolFailureKind.NOT_ENABLED for failure in self.failures)

    @property
    def not_enabled(self) -> tuple[ToolFailure, ...]:
        """Return the tools skipped because they were not enabled for this run."""

        return tuple(failure for failure in self.failures if failure.kind is ToolFailureKind.NOT_ENABLED)

    @property
    def all_tools_failed(self) -> bool:
        """Return whether every invoked tool failed.

        An empty report from such a run is not a clean result and callers
        should surface it as a failure.
        """

        if not self.tools:
            return False
        failed = {failure.tool for failure in self.failures if failure.kind is not ToolFailureKind.NOT_ENABLED}
        return all(tool in failed for tool in self.tools)

    def issue_count(self) -> int:
        """Return the number of issues in the report."""

        return len(self.report.issues())


__all__ = [
    "FINDINGS_ADAPTER",
    "FINDING_ADAPTER",
    "AnalysisResult",
    "CloneFile",
    "DegradedInput",
    "DegradedInputKind",
    "DuplicationClone",
    "FileError",
    "FileMetrics",
    "Finding",
    "Issue",
    "IssueLevel",
    "LineComplexity",
    "Report",
    "RunState",
    "ToolFailure",
    "ToolFailureKind",
]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy raised by the analysis pipeline."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from pathlib import Path


class AnalysisError(Exception):
    """Base class for every error raised by qaflow."""


class ConfigError(AnalysisError):
    """Raised when configuration input is invalid."""


class ToolExecutionError(AnalysisError):
    """Raised by tool runners when a tool cannot complete its analysis."""

    def __init__(self, tool: str, message: str) -> None:
        self.tool = tool
        super().__init__(f"{tool}: {message}")


class FatalReason(str, Enum):
    """Enumerate the conditions that abort a run without a report."""

    DIRECTORY_NOT_FOUND = "directory_not_found"
    PERMISSION_DENIED = "permission_denied"
    UNKNOWN_TOOL = "unknown_tool"
    NO_TOOLS_RESOLVED = "no_tools_resolved"
    CANCELLED = "cancelled"


class FatalError(AnalysisError):
    """Abort the run; no report is produced."""

    reason: FatalReason


class DirectoryNotFound(FatalError):
    """Raised when the analysis root is missing or is not a directory."""

    reason = FatalReason.DIRECTORY_NOT_FOUND

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        super().__init__(f"Directory {directory} does not exist or is not a directory")


class PermissionDenied(FatalError):
    """Raised when a subtree cannot be traversed because of filesystem permissions."""

    reason = FatalReason.PERMISSION_DENIED

    def __init__(self, path: Path, detail: str | None = None) -> None:
        self.path = path
        message = f"Permission denied while reading {path}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class UnknownTool(FatalError):
    """Raised when a tool identifier does not match any registered tool."""

    reason = FatalReason.UNKNOWN_TOOL

    def __init__(self, name: str, valid_names: Iterable[str]) -> None:
        self.name = name
        self.valid_names = tuple(sorted(valid_names))
        super().__init__(f"Unknown tool '{name}'; valid tools are: {', '.join(self.valid_names)}")


class NoToolsResolved(FatalError):
    """Raised when an explicit tool request leaves nothing to run."""

    reason = FatalReason.NO_TOOLS_RESOLVED


class ToolNotEnabled(NoToolsResolved):
    """Raised when an explicitly requested tool resolves as disabled."""

    def __init__(self, tool: str, detail: str = "is not enabled in the resolved configuration") -> None:
        self.tool = tool
        self.detail = detail
        super().__init__(f"Tool '{tool}' {detail}")


class Cancelled(FatalError):
    """Raised when a run is interrupted before the report is complete."""

    reason = FatalReason.CANCELLED

    def __init__(self, message: str = "Analysis cancelled") -> None:
        super().__init__(message)


__all__ = [
    "AnalysisError",
    "Cancelled",
    "ConfigError",
    "DirectoryNotFound",
    "FatalError",
    "FatalReason",
    "NoToolsResolved",
    "PermissionDenied",
    "ToolExecutionError",
    "ToolNotEnabled",
    "UnknownTool",
]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Invoke a single tool runner and normalise what it returns."""

from __future__ import annotations

import subprocess  # nosec B404
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from ..errors import Cancelled
from ..logging import get_logger
from ..models import ToolFailure, ToolFailureKind
from ..tools.base import ToolCategory, ToolContext, ToolResult
from .resolver import ToolPlan

LOGGER = get_logger(__name__)

_CATEGORY_LABELS: Final[dict[ToolCategory, str]] = {
    "issues": "analysis",
    "metrics": "metrics",
    "duplication": "duplication",
}


@dataclass(frozen=True, slots=True)
class Invocation:
    """A planned tool run and the immutable context handed to its runner."""

    plan: ToolPlan
    context: ToolContext

    @property
    def name(self) -> str:
        """Return the tool short name."""

        return self.plan.name


def build_invocation(plan: ToolPlan, directory: Path, cancel_event: threading.Event) -> Invocation:
    """Return the invocation for ``plan`` rooted at ``directory``."""

    resolved = plan.resolved
    context = ToolContext(
        tool=plan.name,
        directory=directory,
        files=plan.files,
        settings=resolved.settings,
        timeout=resolved.timeout,
        allow_network=resolved.allow_network,
        cancel_event=cancel_event,
    )
    return Invocation(plan=plan, context=context)


def run_invocation(invocation: Invocation) -> list[ToolResult]:
    """Run the tool behind ``invocation`` and return its findings.

    Every finding is re-stamped with the invoking tool name so runners do not
    have to. Exceptions raised by the runner propagate to the caller.
    """

    tool = invocation.plan.resolved.tool
    label = _CATEGORY_LABELS[tool.category]
    try:
        raw = tool.runner(invocation.context)
        findings = _stamp(invocation.name, raw)
    except Cancelled:
        raise
    except Exception as exc:
        LOGGER.error("Failed %s for %s: %s", label, invocation.name, exc)
        raise
    LOGGER.info("Completed %s for %s with %d results", label, invocation.name, len(findings))
    return findings


def classify_failure(tool: str, exc: BaseException) -> ToolFailure:
    """Return the :class:`ToolFailure` describing ``exc`` raised by ``tool``."""

    if isinstance(exc, (TimeoutError, subprocess.TimeoutExpired)):
        return ToolFailure(tool=tool, kind=ToolFailureKind.TIMEOUT, message=str(exc) or "timed out")
    return ToolFailure(tool=tool, kind=ToolFailureKind.EXECUTION_ERROR, message=str(exc) or type(exc).__name__)


def _stamp(tool: str, findings: Iterable[ToolResult]) -> list[ToolResult]:
    return [finding if finding.tool == tool else finding.model_copy(update={"tool": tool}) for finding in findings]


__all__ = ["Invocation", "build_invocation", "classify_failure", "run_invocation"]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration resolution, tool invocation and result aggregation."""

from __future__ import annotations

from .aggregator import AggregationOutcome, ResultAggregator
from .analyser import Invocation, build_invocation, classify_failure, run_invocation
from .executor import Executor, Formatter, run_analysis
from .resolver import ResolvedConfiguration, ResolvedTool, ToolConfigResolver, ToolPlan

__all__ = [
    "AggregationOutcome",
    "Executor",
    "Formatter",
    "Invocation",
    "ResolvedConfiguration",
    "ResolvedTool",
    "ResultAggregator",
    "ToolConfigResolver",
    "ToolPlan",
    "build_invocation",
    "classify_failure",
    "run_analysis",
    "run_invocation",
]

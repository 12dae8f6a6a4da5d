# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models for qaflow runs."""

from __future__ import annotations

from ..errors import ConfigError
from .models import (
    AnalysisConfiguration,
    FetchError,
    OutputSettings,
    PatternSettings,
    ProjectConfiguration,
    RemoteConfiguration,
    ToolConfiguration,
    ToolSettings,
    default_parallel_jobs,
)

__all__ = [
    "AnalysisConfiguration",
    "ConfigError",
    "FetchError",
    "OutputSettings",
    "PatternSettings",
    "ProjectConfiguration",
    "RemoteConfiguration",
    "ToolConfiguration",
    "ToolSettings",
    "default_parallel_jobs",
]

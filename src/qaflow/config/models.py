# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models for analysis runs and remote project configuration."""

from __future__ import annotations

import math
import os
from datetime import timedelta
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..discovery.rules import ExclusionRuleSet


def default_parallel_jobs() -> int:
    """Return a CPU count scaled down for concurrent tool runs.

    Returns:
        int: Rounded-down count representing roughly 75% of available CPU
        cores while guaranteeing a minimum of one worker.

    """
    cores = os.cpu_count() or 1
    proposed = max(1, math.floor(cores * 0.75))
    return proposed


class PatternSettings(BaseModel):
    """A single enabled pattern and its parameter overrides."""

    model_config = ConfigDict(frozen=True)

    pattern_id: str
    parameters: dict[str, str] = Field(default_factory=dict)


class ToolConfiguration(BaseModel):
    """Pattern block for one tool, as carried by a project configuration.

    ``locally_edited`` records whether the project changed the tool's pattern
    selection. An unedited block describes the tool defaults, so its
    ``patterns`` are not used for filtering.
    """

    model_config = ConfigDict(frozen=True)

    uuid: str
    enabled: bool = True
    locally_edited: bool = True
    patterns: tuple[PatternSettings, ...] = ()


class ToolSettings(BaseModel):
    """Effective settings for one tool.

    ``patterns`` set to ``None`` means the tool runs with its default pattern
    set and its issues are not pattern-filtered.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    timeout: timedelta | None = None
    allow_network: bool | None = None
    patterns: tuple[PatternSettings, ...] | None = None

    @property
    def uses_default_patterns(self) -> bool:
        """Return whether no explicit pattern set is configured."""

        return self.patterns is None

    @property
    def pattern_ids(self) -> frozenset[str]:
        """Return the explicitly configured pattern identifiers."""

        if self.patterns is None:
            return frozenset()
        return frozenset(pattern.pattern_id for pattern in self.patterns)

    @classmethod
    def from_tool_configuration(cls, configuration: ToolConfiguration, *, base: ToolSettings | None) -> ToolSettings:
        """Return settings taking enablement and patterns from ``configuration``.

        Timeout and network permission are local concerns and are kept from
        ``base`` when given.
        """

        return cls(
            enabled=configuration.enabled,
            timeout=base.timeout if base else None,
            allow_network=base.allow_network if base else None,
            patterns=configuration.patterns if configuration.locally_edited else None,
        )


class OutputSettings(BaseModel):
    """Destination and format for the final report."""

    model_config = ConfigDict(frozen=True)

    format: Literal["json", "text"] = "text"
    file: Path | None = None
    emoji: bool = True
    color: bool = True


class AnalysisConfiguration(BaseModel):
    """Local configuration for one analysis run.

    Constructed once per run from CLI/API input and immutable afterwards.
    When ``tool`` is set only that tool's settings are consulted.
    """

    model_config = ConfigDict(frozen=True)

    directory: Path = Field(default_factory=Path.cwd)
    output: OutputSettings = Field(default_factory=OutputSettings)
    tool: str | None = None
    exclusions: ExclusionRuleSet = Field(default_factory=ExclusionRuleSet)
    tool_settings: dict[str, ToolSettings] = Field(default_factory=dict)
    timeout: timedelta | None = None
    allow_network: bool = False
    force_file_permissions: bool = False
    force_tool: bool = False
    jobs: int = Field(default_factory=default_parallel_jobs, ge=1)
    files: frozenset[str] | None = None

    @field_validator("tool", mode="before")
    @classmethod
    def _blank_tool_is_none(cls, value: object) -> object:
        """Treat an empty tool selector as no selector."""

        if isinstance(value, str) and not value.strip():
            return None
        return value


class ProjectConfiguration(BaseModel):
    """Authoritative per-project configuration, usually fetched remotely."""

    model_config = ConfigDict(frozen=True)

    exclusions: ExclusionRuleSet = Field(default_factory=ExclusionRuleSet)
    tool_excludes: dict[str, frozenset[str]] = Field(default_factory=dict)
    tools: tuple[ToolConfiguration, ...] = ()

    def tool_configuration(self, uuid: str) -> ToolConfiguration | None:
        """Return the configuration block for ``uuid`` when present."""

        for configuration in self.tools:
            if configuration.uuid == uuid:
                return configuration
        return None


class FetchError(BaseModel):
    """Failure to obtain the remote project configuration."""

    model_config = ConfigDict(frozen=True)

    message: str


RemoteConfiguration = ProjectConfiguration | FetchError


__all__ = [
    "AnalysisConfiguration",
    "FetchError",
    "OutputSettings",
    "PatternSettings",
    "ProjectConfiguration",
    "RemoteConfiguration",
    "ToolConfiguration",
    "ToolSettings",
    "default_parallel_jobs",
]

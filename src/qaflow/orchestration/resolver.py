# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Resolve the effective per-tool configuration for a run."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Final

from ..config.models import (
    AnalysisConfiguration,
    FetchError,
    ProjectConfiguration,
    RemoteConfiguration,
    ToolSettings,
)
from ..discovery.rules import ExclusionRuleSet
from ..errors import ToolNotEnabled
from ..logging import get_logger
from ..models import DegradedInput, DegradedInputKind, ToolFailure, ToolFailureKind
from ..tools.base import Tool
from ..tools.registry import ToolRegistry

LOGGER = get_logger(__name__)

_NETWORK_DENIED: Final[str] = "requires network access, which is not allowed"


@dataclass(frozen=True, slots=True)
class ResolvedTool:
    """A tool paired with the settings it runs with."""

    tool: Tool
    settings: ToolSettings
    exclusions: ExclusionRuleSet
    timeout: timedelta | None
    allow_network: bool

    @property
    def name(self) -> str:
        """Return the tool short name."""

        return self.tool.name


@dataclass(frozen=True, slots=True)
class ResolvedConfiguration:
    """Outcome of configuration resolution, immutable for the rest of the run."""

    tools: tuple[ResolvedTool, ...]
    exclusions: ExclusionRuleSet
    requested: str | None = None
    warnings: tuple[DegradedInput, ...] = ()
    skipped: tuple[ToolFailure, ...] = ()

    def get(self, name: str) -> ResolvedTool | None:
        """Return the resolved entry for the tool called ``name``."""

        for resolved in self.tools:
            if resolved.name == name:
                return resolved
        return None

    @property
    def names(self) -> tuple[str, ...]:
        """Return the names of the resolved tools."""

        return tuple(resolved.name for resolved in self.tools)


@dataclass(frozen=True, slots=True)
class ToolPlan:
    """A resolved tool and the files it will analyse."""

    resolved: ResolvedTool
    files: tuple[str, ...]

    @property
    def name(self) -> str:
        """Return the tool short name."""

        return self.resolved.name


class ToolConfigResolver:
    """Merge remote project configuration with local settings per tool.

    The merge is a per-key override: for every tool the remote entry, when
    present, supplies enablement and patterns, otherwise the local entry is
    used, otherwise the tool defaults. Timeout and network permission always
    come from local settings.
    """

    def __init__(self, registry: ToolRegistry) -> None:
        """Create a resolver bound to ``registry``.

        Args:
            registry: Tools available to the run.
        """

        self._registry = registry

    @property
    def registry(self) -> ToolRegistry:
        """Return the registry used for tool lookups."""

        return self._registry

    def resolve(
        self,
        requested_tool: str | None,
        local: AnalysisConfiguration,
        remote: RemoteConfiguration | None = None,
    ) -> ResolvedConfiguration:
        """Return the effective configuration for every tool that should run.

        Args:
            requested_tool: Optional short name or UUID restricting the run.
            local: Local analysis configuration.
            remote: Already-fetched project configuration, a fetch error, or
                ``None`` when no remote source was consulted.

        Returns:
            ResolvedConfiguration: Enabled tools with their settings.

        Raises:
            UnknownTool: If ``requested_tool`` or a local settings key does not
                name a registered tool.
            ToolNotEnabled: If the requested tool resolves as disabled, or needs
                network access that is not allowed.
        """

        local_settings = self._index_local_settings(local.tool_settings)
        project, warnings = _unwrap_remote(remote)
        base_rules = local.exclusions if project is None else local.exclusions.merge(project.exclusions)

        if requested_tool is not None:
            candidates: tuple[Tool, ...] = (self._registry.resolve(requested_tool),)
        else:
            candidates = self._registry.tools()

        requested = requested_tool is not None
        resolved: list[ResolvedTool] = []
        skipped: list[ToolFailure] = []
        for tool in candidates:
            entry = self._resolve_tool(tool, local, local_settings.get(tool.name), project, base_rules)
            if not self._admit(entry, requested=requested, force=local.force_tool):
                continue
            if entry.tool.needs_network and not entry.allow_network:
                if requested:
                    raise ToolNotEnabled(entry.name, _NETWORK_DENIED)
                LOGGER.info("Skipping %s: network access is not allowed", entry.name)
                skipped.append(
                    ToolFailure(tool=entry.name, kind=ToolFailureKind.NOT_ENABLED, message=_NETWORK_DENIED),
                )
                continue
            resolved.append(entry)

        return ResolvedConfiguration(
            tools=tuple(resolved),
            exclusions=base_rules,
            requested=candidates[0].name if requested else None,
            warnings=warnings,
            skipped=tuple(skipped),
        )

    def plan(self, resolved: ResolvedConfiguration, files: Iterable[str]) -> tuple[ToolPlan, ...]:
        """Pair each resolved tool with the collected files it applies to.

        Tools with no applicable file are skipped without error.

        Args:
            resolved: Output of :meth:`resolve`.
            files: Immutable snapshot of collected files.

        Returns:
            tuple[ToolPlan, ...]: Plans for tools that have work to do.
        """

        snapshot = frozenset(files)
        plans: list[ToolPlan] = []
        for entry in resolved.tools:
            tool_files = tuple(
                path for path in entry.tool.applicable_files(snapshot) if not entry.exclusions.is_excluded(path)
            )
            if not tool_files:
                LOGGER.info("Skipping %s: no applicable files", entry.name)
                continue
            plans.append(ToolPlan(resolved=entry, files=tool_files))
        return tuple(plans)

    def _index_local_settings(self, settings: Mapping[str, ToolSettings]) -> dict[str, ToolSettings]:
        """Key local settings by tool short name, validating every identifier."""

        indexed: dict[str, ToolSettings] = {}
        for identifier, tool_settings in settings.items():
            indexed[self._registry.resolve(identifier).name] = tool_settings
        return indexed

    @staticmethod
    def _resolve_tool(
        tool: Tool,
        local: AnalysisConfiguration,
        local_entry: ToolSettings | None,
        project: ProjectConfiguration | None,
        base_rules: ExclusionRuleSet,
    ) -> ResolvedTool:
        """Return the effective settings for ``tool``."""

        remote_entry = project.tool_configuration(tool.uuid) if project is not None else None
        if remote_entry is not None:
            settings = ToolSettings.from_tool_configuration(remote_entry, base=local_entry)
        elif local_entry is not None:
            settings = local_entry
        else:
            settings = ToolSettings(enabled=tool.default_enabled)

        rules = base_rules
        if project is not None:
            extra = project.tool_excludes.get(tool.uuid, frozenset()) | project.tool_excludes.get(
                tool.name,
                frozenset(),
            )
            rules = rules.with_globs(extra)

        allow_network = settings.allow_network if settings.allow_network is not None else local.allow_network
        return ResolvedTool(
            tool=tool,
            settings=settings,
            exclusions=rules,
            timeout=settings.timeout if settings.timeout is not None else local.timeout,
            allow_network=allow_network,
        )

    @staticmethod
    def _admit(entry: ResolvedTool, *, requested: bool, force: bool) -> bool:
        """Return whether ``entry`` is enabled, raising for explicit requests."""

        if not entry.settings.enabled:
            if requested and force:
                LOGGER.warning("Running %s although it is disabled in the configuration", entry.name)
            elif requested:
                raise ToolNotEnabled(entry.name)
            else:
                LOGGER.debug("Skipping disabled tool %s", entry.name)
                return False
        return True


def _unwrap_remote(
    remote: RemoteConfiguration | None,
) -> tuple[ProjectConfiguration | None, tuple[DegradedInput, ...]]:
    """Split ``remote`` into the usable configuration and degraded-input warnings."""

    if isinstance(remote, ProjectConfiguration):
        return remote, ()
    if isinstance(remote, FetchError):
        message = f"Remote project configuration unavailable ({remote.message}); using local settings"
        LOGGER.warning(message)
        return None, (DegradedInput(kind=DegradedInputKind.REMOTE_CONFIG_UNAVAILABLE, message=message),)
    LOGGER.debug("No remote project configuration supplied; using local settings")
    return None, ()


__all__ = [
    "ResolvedConfiguration",
    "ResolvedTool",
    "ToolConfigResolver",
    "ToolPlan",
]

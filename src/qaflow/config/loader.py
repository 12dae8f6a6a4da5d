# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Load local settings from TOML and project configuration from JSON."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from datetime import timedelta
from pathlib import Path
from typing import Any, Final, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..discovery.rules import ExclusionRuleSet
from ..errors import ConfigError
from ..logging import get_logger
from ..tools.command import CommandToolDefinition
from .models import AnalysisConfiguration, FetchError, ProjectConfiguration, RemoteConfiguration, ToolSettings

LOGGER = get_logger(__name__)

CONFIG_FILENAME: Final[str] = ".qaflow.toml"
PYPROJECT_FILENAME: Final[str] = "pyproject.toml"
PYPROJECT_TOOL_KEY: Final[str] = "tool"
PYPROJECT_SECTION_KEY: Final[str] = "qaflow"


class LocalConfigDocument(BaseModel):
    """Validated contents of a local ``qaflow`` configuration table.

    ``settings`` tables are keyed by tool short name or UUID; ``commands``
    tables declare additional command-backed tools.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    exclusions: ExclusionRuleSet = Field(default_factory=ExclusionRuleSet)
    settings: dict[str, ToolSettings] = Field(default_factory=dict)
    commands: dict[str, CommandToolDefinition] = Field(default_factory=dict)
    timeout: timedelta | None = None
    allow_network: bool = False
    jobs: int | None = Field(default=None, ge=1)

    @field_validator("settings", mode="before")
    @classmethod
    def _expand_pattern_shorthand(cls, value: object) -> object:
        """Accept bare pattern identifiers in ``patterns`` lists."""

        if not isinstance(value, Mapping):
            return value
        expanded: dict[str, object] = {}
        for tool, entry in value.items():
            if isinstance(entry, Mapping) and isinstance(entry.get("patterns"), list):
                patterns = [
                    {"pattern_id": item} if isinstance(item, str) else item for item in entry["patterns"]
                ]
                entry = {**entry, "patterns": patterns}
            expanded[tool] = entry
        return expanded

    def to_configuration(self, directory: Path, **overrides: Any) -> AnalysisConfiguration:
        """Return the :class:`AnalysisConfiguration` for ``directory``.

        Keyword overrides (typically CLI options) win over the document; a
        ``None`` override is ignored.

        Raises:
            ConfigError: If the combined values are invalid.
        """

        payload: dict[str, Any] = {
            "directory": directory,
            "exclusions": self.exclusions,
            "tool_settings": dict(self.settings),
            "timeout": self.timeout,
            "allow_network": self.allow_network,
        }
        if self.jobs is not None:
            payload["jobs"] = self.jobs
        payload.update({key: value for key, value in overrides.items() if value is not None})
        try:
            return AnalysisConfiguration.model_validate(payload)
        except ValidationError as exc:
            raise ConfigError(f"Invalid analysis configuration: {exc}") from exc


def find_config_file(directory: Path) -> Path | None:
    """Return the configuration file that applies to ``directory``.

    ``.qaflow.toml`` wins over a ``pyproject.toml`` carrying ``[tool.qaflow]``.
    """

    candidate = directory / CONFIG_FILENAME
    if candidate.is_file():
        return candidate
    pyproject = directory / PYPROJECT_FILENAME
    if pyproject.is_file():
        return pyproject
    return None


def load_toml(path: Path) -> dict[str, Any]:
    """Return the TOML document at ``path``.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """

    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except OSError as exc:
        raise ConfigError(f"Unable to read configuration {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc


def extract_section(path: Path, data: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return the ``qaflow`` table of ``data`` read from ``path``."""

    if path.name != PYPROJECT_FILENAME:
        return data
    tool_section = data.get(PYPROJECT_TOOL_KEY)
    if not isinstance(tool_section, Mapping):
        return {}
    section = tool_section.get(PYPROJECT_SECTION_KEY)
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise ConfigError(f"[tool.{PYPROJECT_SECTION_KEY}] in {path} must be a table")
    return section


def load_local_document(directory: Path, path: Path | None = None) -> LocalConfigDocument:
    """Load the local configuration for ``directory``.

    Args:
        directory: Analysis root searched for a configuration file.
        path: Explicit configuration file; overrides the search.

    Returns:
        LocalConfigDocument: Parsed document, empty when no file applies.

    Raises:
        ConfigError: If the document is unreadable or invalid.
    """

    source = path if path is not None else find_config_file(directory)
    if source is None:
        LOGGER.debug("No local configuration found under %s", directory)
        return LocalConfigDocument()
    section = extract_section(source, load_toml(source))
    LOGGER.debug("Loaded local configuration from %s", source)
    try:
        return LocalConfigDocument.model_validate(dict(section))
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {source}: {exc}") from exc


@runtime_checkable
class RemoteConfigurationFetcher(Protocol):
    """Source of the authoritative project configuration."""

    def fetch(self, identity: str) -> RemoteConfiguration:
        """Return the configuration for ``identity`` or a :class:`FetchError`."""
        ...


class FileConfigurationFetcher:
    """Read a pre-fetched project configuration JSON document."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def fetch(self, identity: str) -> RemoteConfiguration:
        """Return the project configuration stored at :attr:`path`.

        An unreadable document degrades to a :class:`FetchError`; a readable
        but malformed one is a configuration error.

        Raises:
            ConfigError: If the document does not describe a project configuration.
        """

        try:
            payload = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            LOGGER.debug("Cannot read project configuration for %s: %s", identity, exc)
            return FetchError(message=f"cannot read {self._path}: {exc.strerror or exc}")
        try:
            return ProjectConfiguration.model_validate_json(payload)
        except ValidationError as exc:
            raise ConfigError(f"Invalid project configuration in {self._path}: {exc}") from exc


__all__ = [
    "CONFIG_FILENAME",
    "FileConfigurationFetcher",
    "LocalConfigDocument",
    "RemoteConfigurationFetcher",
    "extract_section",
    "find_config_file",
    "load_local_document",
    "load_toml",
]

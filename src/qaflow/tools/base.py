# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tool definitions and the runner contract consumed by the executor."""

from __future__ import annotations

import threading
import time
from collections.abc import Iterable
from datetime import timedelta
from pathlib import Path, PurePosixPath
from typing import Final, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config.models import ToolSettings
from ..discovery.rules import normalize_extension
from ..languages import language_for
from ..models import DuplicationClone, FileError, FileMetrics, Issue

ToolCategory = Literal["issues", "metrics", "duplication"]
ToolResult = Issue | FileError | FileMetrics | DuplicationClone

_WAIT_SLICE_S: Final[float] = 0.02


class ToolContext(BaseModel):
    """Immutable inputs for one tool invocation."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    tool: str
    directory: Path
    files: tuple[str, ...]
    settings: ToolSettings = Field(default_factory=ToolSettings)
    timeout: timedelta | None = None
    allow_network: bool = False
    cancel_event: threading.Event = Field(default_factory=threading.Event)
    stop_event: threading.Event = Field(default_factory=threading.Event)

    @property
    def cancelled(self) -> bool:
        """Return whether the run was cancelled or this invocation was told to stop.

        The executor sets :attr:`stop_event` when the invocation outlives its
        timeout; :attr:`cancel_event` is shared by the whole run.
        """

        return self.cancel_event.is_set() or self.stop_event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``, returning early with ``True`` once cancelled."""

        deadline = time.monotonic() + seconds
        while not self.cancelled:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            self.stop_event.wait(min(remaining, _WAIT_SLICE_S))
        return True

    @property
    def timeout_seconds(self) -> float | None:
        """Return :attr:`timeout` in seconds, or ``None`` when unbounded."""

        return self.timeout.total_seconds() if self.timeout is not None else None


@runtime_checkable
class ToolRunner(Protocol):
    """Callable that analyses the files described by a :class:`ToolContext`.

    Implementations return raw findings or raise to signal a tool failure.
    ``TimeoutError`` and ``subprocess.TimeoutExpired`` are classified as
    timeouts; every other exception is an execution error.
    """

    def __call__(self, context: ToolContext) -> Iterable[ToolResult]:
        """Analyse ``context.files`` and return the raw findings."""
        ...


class Tool(BaseModel):
    """An analysis tool identified by a short name and a UUID."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    uuid: str
    runner: ToolRunner
    category: ToolCategory = "issues"
    languages: tuple[str, ...] = ()
    file_extensions: tuple[str, ...] = ()
    needs_network: bool = False
    default_enabled: bool = True
    description: str = ""

    @field_validator("name", "uuid")
    @classmethod
    def _require_identifier(cls, value: str) -> str:
        """Reject blank identifiers."""

        cleaned = value.strip()
        if not cleaned:
            raise ValueError("tool identifiers must not be blank")
        return cleaned

    @field_validator("file_extensions")
    @classmethod
    def _normalise_extensions(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        """Store extensions lower-cased with a leading dot."""

        return tuple(extension for extension in (normalize_extension(item) for item in value) if extension)

    def applies_to(self, path: str) -> bool:
        """Return whether the tool analyses ``path``.

        A tool without declared languages or extensions applies to every file.
        """

        if not self.languages and not self.file_extensions:
            return True
        if self.file_extensions and PurePosixPath(path).suffix.lower() in self.file_extensions:
            return True
        return language_for(path) in self.languages

    def applicable_files(self, files: Iterable[str]) -> tuple[str, ...]:
        """Return the sorted subset of ``files`` the tool analyses."""

        return tuple(sorted(path for path in files if self.applies_to(path)))


__all__ = [
    "Tool",
    "ToolCategory",
    "ToolContext",
    "ToolResult",
    "ToolRunner",
]

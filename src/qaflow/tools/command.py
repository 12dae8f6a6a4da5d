# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tool runner backed by an external command emitting JSON-lines findings."""

from __future__ import annotations

import json
import os
import shlex

# Bandit: the command comes from trusted project configuration and is never run through a shell.
import subprocess  # nosec B404
import tempfile
import time
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import Cancelled, ToolExecutionError
from ..logging import get_logger
from ..models import FINDING_ADAPTER, FileError, Issue
from .base import Tool, ToolCategory, ToolContext, ToolResult

LOGGER = get_logger(__name__)

CONFIG_ENV_VAR: Final[str] = "QAFLOW_CONFIG"
NETWORK_ENV_VAR: Final[str] = "QAFLOW_ALLOW_NETWORK"
_POLL_INTERVAL_S: Final[float] = 0.1
_STDERR_TAIL_LINES: Final[int] = 5


@dataclass(frozen=True, slots=True)
class CommandRunner:
    """Run ``command`` in the analysis directory and parse its stdout.

    The command receives the path of a JSON document describing the files
    and patterns through the ``QAFLOW_CONFIG`` environment variable, and
    prints one JSON object per finding.
    """

    tool: str
    command: tuple[str, ...]
    env: Mapping[str, str] | None = None

    def __call__(self, context: ToolContext) -> list[ToolResult]:
        """Execute the command for ``context`` and return parsed findings.

        Raises:
            subprocess.TimeoutExpired: If the command outlives ``context.timeout``.
            Cancelled: If the run is cancelled while the command is running.
            ToolExecutionError: If the command cannot start, or exits non-zero
                without reporting anything.
        """

        with tempfile.TemporaryDirectory(prefix="qaflow-") as scratch:
            config_path = Path(scratch) / "config.json"
            config_path.write_text(json.dumps(build_tool_input(context), indent=2), encoding="utf-8")
            env = self._compose_environment(context, config_path)
            try:
                process = subprocess.Popen(  # nosec B603
                    list(self.command),
                    cwd=context.directory,
                    env=env,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    text=True,
                )
            except OSError as exc:
                raise ToolExecutionError(self.tool, f"cannot start {self.command[0]!r}: {exc}") from exc
            stdout, stderr = _communicate(process, context)

        findings = parse_output(self.tool, stdout.splitlines())
        if process.returncode != 0 and not findings:
            tail = " | ".join(stderr.strip().splitlines()[-_STDERR_TAIL_LINES:])
            raise ToolExecutionError(self.tool, f"exited with {process.returncode}: {tail or 'no output'}")
        return findings

    def _compose_environment(self, context: ToolContext, config_path: Path) -> dict[str, str]:
        """Return the process environment for the invocation."""

        env = dict(os.environ)
        if self.env:
            env.update({str(key): str(value) for key, value in self.env.items()})
        env[CONFIG_ENV_VAR] = str(config_path)
        env[NETWORK_ENV_VAR] = "1" if context.allow_network else "0"
        return env


def _communicate(process: subprocess.Popen[str], context: ToolContext) -> tuple[str, str]:
    """Wait for ``process`` honouring the context timeout and cancellation."""

    timeout = context.timeout_seconds
    deadline = time.monotonic() + timeout if timeout is not None else None
    while True:
        try:
            return process.communicate(timeout=_POLL_INTERVAL_S)
        except subprocess.TimeoutExpired:
            if context.cancelled:
                _terminate(process)
                raise Cancelled(f"{context.tool} cancelled") from None
            if deadline is not None and time.monotonic() >= deadline:
                _terminate(process)
                raise subprocess.TimeoutExpired(process.args, timeout or 0.0) from None


def _terminate(process: subprocess.Popen[str]) -> None:
    """Kill ``process`` and reap it."""

    process.kill()
    process.communicate()


def build_tool_input(context: ToolContext) -> dict[str, object]:
    """Return the JSON document handed to command tools."""

    settings = context.settings
    patterns: list[dict[str, object]] | None = None
    if not settings.uses_default_patterns:
        patterns = [
            {"patternId": pattern.pattern_id, "parameters": dict(pattern.parameters)}
            for pattern in settings.patterns or ()
        ]
    return {"tool": context.tool, "files": list(context.files), "patterns": patterns}


def parse_output(tool: str, lines: Iterable[str]) -> list[ToolResult]:
    """Parse JSON-lines output into findings, skipping unparseable lines."""

    findings: list[ToolResult] = []
    for line in lines:
        finding = parse_output_line(tool, line)
        if finding is not None:
            findings.append(finding)
    return findings


def parse_output_line(tool: str, line: str) -> ToolResult | None:
    """Return the finding described by ``line`` or ``None``.

    Two shapes are understood: native findings carrying a ``kind``
    discriminant, and the compact ``filename``/``message``/``patternId``/
    ``line`` form. A compact entry without ``patternId`` is a file error.
    """

    stripped = line.strip()
    if not stripped.startswith("{"):
        return None
    try:
        payload = json.loads(stripped)
    except json.JSONDecodeError:
        LOGGER.debug("%s: ignoring malformed output line %r", tool, stripped)
        return None
    if not isinstance(payload, dict):
        return None
    try:
        if "kind" in payload:
            return FINDING_ADAPTER.validate_python({**payload, "tool": tool})
        filename = payload.get("filename", payload.get("file"))
        if filename is None:
            return None
        message = str(payload.get("message", ""))
        pattern_id = payload.get("patternId")
        if pattern_id is None:
            return FileError(tool=tool, file=str(filename), message=message)
        return Issue(
            tool=tool,
            file=str(filename),
            pattern_id=str(pattern_id),
            message=message,
            line=payload.get("line", 1),
        )
    except ValidationError as exc:
        LOGGER.debug("%s: ignoring invalid finding %r: %s", tool, stripped, exc)
        return None


class CommandToolDefinition(BaseModel):
    """Declarative definition of a command-backed tool."""

    model_config = ConfigDict(frozen=True)

    uuid: str
    command: tuple[str, ...] = Field(min_length=1)
    category: ToolCategory = "issues"
    languages: tuple[str, ...] = ()
    extensions: tuple[str, ...] = ()
    needs_network: bool = False
    enabled: bool = True
    description: str = ""
    env: dict[str, str] = Field(default_factory=dict)

    @field_validator("command", mode="before")
    @classmethod
    def _split_command(cls, value: object) -> object:
        """Accept a shell-style string as well as an argument list."""

        if isinstance(value, str):
            return split_command(value)
        return value

    def build(self, name: str) -> Tool:
        """Return the :class:`Tool` described by this definition."""

        return Tool(
            name=name,
            uuid=self.uuid,
            runner=CommandRunner(tool=name, command=self.command, env=dict(self.env)),
            category=self.category,
            languages=self.languages,
            file_extensions=self.extensions,
            needs_network=self.needs_network,
            default_enabled=self.enabled,
            description=self.description,
        )


def build_command_tools(definitions: Mapping[str, CommandToolDefinition]) -> list[Tool]:
    """Return tools for every named definition in ``definitions``."""

    return [definition.build(name) for name, definition in sorted(definitions.items())]


def split_command(command: str | Sequence[str]) -> tuple[str, ...]:
    """Return ``command`` as an argument tuple, splitting strings shell-style."""

    if isinstance(command, str):
        return tuple(shlex.split(command))
    return tuple(str(part) for part in command)


__all__ = [
    "CONFIG_ENV_VAR",
    "NETWORK_ENV_VAR",
    "CommandRunner",
    "CommandToolDefinition",
    "build_command_tools",
    "build_tool_input",
    "parse_output",
    "parse_output_line",
    "split_command",
]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from qaflow.config.models import AnalysisConfiguration
from qaflow.tools.base import Tool, ToolContext, ToolResult


@dataclass
class RecordingRunner:
    """Runner returning canned findings and remembering every context it saw."""

    findings: Sequence[ToolResult] = ()
    error: BaseException | None = None
    delay: float = 0.0
    contexts: list[ToolContext] = field(default_factory=list)

    def __call__(self, context: ToolContext) -> list[ToolResult]:
        self.contexts.append(context)
        if self.delay:
            context.wait(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.findings)


@dataclass
class BlockingRunner:
    """Runner that blocks until released, signalling when it has started."""

    started: threading.Event = field(default_factory=threading.Event)
    release: threading.Event = field(default_factory=threading.Event)

    def __call__(self, context: ToolContext) -> list[ToolResult]:
        self.started.set()
        while not self.release.is_set() and not context.cancelled:
            self.release.wait(0.01)
        return []


ToolFactory = Callable[..., Tool]


@pytest.fixture
def recording_runner() -> type[RecordingRunner]:
    """Return the canned-findings runner class."""

    return RecordingRunner


@pytest.fixture
def blocking_runner() -> BlockingRunner:
    """Return a runner that blocks until released or cancelled."""

    return BlockingRunner()


@pytest.fixture
def make_tool() -> ToolFactory:
    """Return a factory building tools with sensible defaults."""

    def _make(
        name: str,
        runner: Callable[[ToolContext], Iterable[ToolResult]] | None = None,
        **overrides: object,
    ) -> Tool:
        payload: dict[str, object] = {
            "name": name,
            "uuid": f"uuid-{name}",
            "runner": runner if runner is not None else RecordingRunner(),
            "languages": ("python",),
        }
        payload.update(overrides)
        return Tool.model_validate(payload)

    return _make


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Return a small source tree used by executor and CLI tests."""

    root = tmp_path / "project"
    (root / "lib" / "tests").mkdir(parents=True)
    (root / "lib" / "main.py").write_text("import os\n", encoding="utf-8")
    (root / "lib" / "tests" / "a.py").write_text("def test():\n    pass\n", encoding="utf-8")
    (root / "web").mkdir()
    (root / "web" / "app.js").write_text("console.log('hi');\n", encoding="utf-8")
    (root / ".git").mkdir()
    (root / ".git" / "config.py").write_text("# vcs\n", encoding="utf-8")
    return root


@pytest.fixture
def configuration(project: Path) -> AnalysisConfiguration:
    """Return a local configuration rooted at :func:`project`."""

    return AnalysisConfiguration(directory=project, jobs=2)

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Entry-point plugin loading for tool definitions.

Third-party packages contribute tools by exposing, under the ``qaflow.tools``
entry-point group, either a :class:`Tool` or a zero-argument callable
returning a :class:`Tool` or an iterable of them.
"""

from __future__ import annotations

from collections.abc import Iterable
from importlib import metadata
from importlib.metadata import EntryPoint
from typing import Final

from ..logging import get_logger
from .base import Tool
from .registry import ToolRegistry

LOGGER = get_logger(__name__)

TOOL_PLUGIN_GROUP: Final[str] = "qaflow.tools"


def _select_entry_points(group: str) -> tuple[EntryPoint, ...]:
    """Return the entry points registered under ``group``."""

    return tuple(metadata.entry_points(group=group))


def _expand(candidate: object, source: str) -> tuple[Tool, ...]:
    """Return the tools produced by an entry-point payload."""

    if isinstance(candidate, Tool):
        return (candidate,)
    if callable(candidate):
        return _expand(candidate(), source)
    if isinstance(candidate, Iterable):
        tools = tuple(candidate)
        if all(isinstance(tool, Tool) for tool in tools):
            return tools
    raise TypeError(f"Entry point {source} did not provide qaflow tools")


def load_tool_plugins(group: str = TOOL_PLUGIN_GROUP) -> tuple[Tool, ...]:
    """Return every tool contributed through ``group`` entry points.

    Args:
        group: Entry-point group to scan.

    Returns:
        tuple[Tool, ...]: Tools in entry-point order.
    """

    discovered: list[Tool] = []
    for entry in _select_entry_points(group):
        discovered.extend(_expand(entry.load(), f"{entry.group}:{entry.name}"))
        LOGGER.debug("Loaded tool plugin %s", entry.name)
    return tuple(discovered)


def build_registry(extra: Iterable[Tool] = (), *, include_plugins: bool = True) -> ToolRegistry:
    """Return a registry of plugin-provided tools plus ``extra``."""

    plugins = load_tool_plugins() if include_plugins else ()
    return ToolRegistry((*plugins, *extra))


__all__ = ["TOOL_PLUGIN_GROUP", "build_registry", "load_tool_plugins"]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tool definitions, registry and runners."""

from __future__ import annotations

from .base import Tool, ToolCategory, ToolContext, ToolResult, ToolRunner
from .command import CommandRunner, CommandToolDefinition, build_command_tools
from .plugins import build_registry, load_tool_plugins
from .registry import ToolRegistry

__all__ = [
    "CommandRunner",
    "CommandToolDefinition",
    "Tool",
    "ToolCategory",
    "ToolContext",
    "ToolRegistry",
    "ToolResult",
    "ToolRunner",
    "build_command_tools",
    "build_registry",
    "load_tool_plugins",
]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Immutable tool registry providing lookup by short name, UUID or language."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

from ..errors import UnknownTool
from .base import Tool


class ToolRegistry(Mapping[str, Tool]):
    """Read-only mapping from tool short names to :class:`Tool` definitions.

    The registry is built once and passed explicitly to the components that
    need it; there is no process-wide instance. Lookups through
    :meth:`resolve` accept either the short name or the UUID of a tool.
    """

    def __init__(self, tools: Iterable[Tool] = ()) -> None:
        """Build a registry from ``tools``.

        Args:
            tools: Tool definitions to index.

        Raises:
            ValueError: If two tools share a name or a UUID.
        """

        by_name: dict[str, Tool] = {}
        by_uuid: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in by_name:
                raise ValueError(f"Tool '{tool.name}' already registered")
            if tool.uuid in by_uuid:
                raise ValueError(f"Tool UUID '{tool.uuid}' already registered by '{by_uuid[tool.uuid].name}'")
            by_name[tool.name] = tool
            by_uuid[tool.uuid] = tool
        self._tools = dict(sorted(by_name.items()))
        self._by_uuid = by_uuid

    def try_get(self, identifier: str) -> Tool | None:
        """Return the tool named or identified by ``identifier`` when registered.

        Args:
            identifier: Tool short name (case-insensitive) or UUID.

        Returns:
            Tool | None: Registered tool or ``None`` when not found.
        """

        cleaned = identifier.strip()
        tool = self._tools.get(cleaned) or self._by_uuid.get(cleaned)
        if tool is not None:
            return tool
        lowered = cleaned.lower()
        for name, candidate in self._tools.items():
            if name.lower() == lowered:
                return candidate
        return None

    def resolve(self, identifier: str) -> Tool:
        """Return the tool for ``identifier`` or raise :class:`UnknownTool`.

        Args:
            identifier: Tool short name or UUID.

        Returns:
            Tool: Matching tool definition.

        Raises:
            UnknownTool: If nothing matches; the error lists valid short names.
        """

        tool = self.try_get(identifier)
        if tool is None:
            raise UnknownTool(identifier, self.short_names)
        return tool

    def by_uuid(self, uuid: str) -> Tool | None:
        """Return the tool registered under ``uuid``."""

        return self._by_uuid.get(uuid)

    @property
    def short_names(self) -> tuple[str, ...]:
        """Return the sorted short names of every registered tool."""

        return tuple(self._tools)

    def tools(self) -> tuple[Tool, ...]:
        """Return all registered tools ordered by name."""

        return tuple(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)

    def __getitem__(self, name: str) -> Tool:
        return self._tools[name]


__all__ = ["ToolRegistry"]

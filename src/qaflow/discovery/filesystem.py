# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Filesystem walk producing the set of files eligible for analysis."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from ..constants import ALWAYS_EXCLUDE_DIRS
from ..errors import DirectoryNotFound, PermissionDenied
from ..filesystem.paths import normalize_path_key, relative_path_key
from ..logging import get_logger
from .rules import ExclusionRuleSet

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class WalkContext:
    """Parameters required to walk the filesystem hierarchy."""

    root: Path
    rules: ExclusionRuleSet
    force_file_permissions: bool


@dataclass(slots=True)
class FileCollector:
    """Walk a directory tree and return the analysable files.

    Symlinks are never followed, and version-control or cache directories
    listed in :data:`ALWAYS_EXCLUDE_DIRS` are pruned regardless of the rules.
    """

    force_file_permissions: bool = False
    skipped: list[Path] = field(default_factory=list)

    def collect(
        self,
        root: Path,
        rules: ExclusionRuleSet,
        subset: Iterable[str | Path] | None = None,
    ) -> frozenset[str]:
        """Return POSIX paths, relative to ``root``, of every eligible file.

        Args:
            root: Directory to walk.
            rules: Exclusion rules applied to each relative path.
            subset: Optional caller-supplied files; when given the result is
                intersected with it.

        Returns:
            frozenset[str]: Eligible files relative to ``root``.

        Raises:
            DirectoryNotFound: If ``root`` is missing or not a directory.
            PermissionDenied: If a subtree cannot be read and
                ``force_file_permissions`` is not set.
        """

        if not root.is_dir():
            raise DirectoryNotFound(root)
        self.skipped.clear()
        context = WalkContext(root=root, rules=rules, force_file_permissions=self.force_file_permissions)
        collected = frozenset(self._walk(context))
        if subset is None:
            return collected
        wanted = {normalize_path_key(entry, base_dir=root) for entry in subset}
        return collected & wanted

    def _walk(self, context: WalkContext) -> Iterator[str]:
        """Walk ``context.root`` yielding relative paths of eligible files."""

        for dirpath, dirnames, filenames in os.walk(
            context.root,
            followlinks=False,
            onerror=lambda exc: self._on_walk_error(exc, context),
        ):
            current = Path(dirpath)
            dirnames[:] = sorted(
                name for name in dirnames if not self._should_skip_directory(current / name, context)
            )
            for filename in sorted(filenames):
                candidate = current / filename
                if candidate.is_symlink() or not candidate.is_file():
                    continue
                relative = relative_path_key(candidate, context.root)
                if context.rules.is_excluded(relative):
                    continue
                if not os.access(candidate, os.R_OK):
                    self._handle_denied(candidate, context, detail="file is not readable")
                    continue
                yield relative

    @staticmethod
    def _should_skip_directory(path: Path, context: WalkContext) -> bool:
        """Return whether ``path`` should be pruned from traversal.

        Directories under an ignore prefix are pruned too; every file below
        them would be excluded anyway.
        """

        if path.name in ALWAYS_EXCLUDE_DIRS or path.is_symlink():
            return True
        prefix_key = f"{relative_path_key(path, context.root)}/"
        return any(prefix_key.startswith(prefix) for prefix in context.rules.ignore_paths)

    def _on_walk_error(self, exc: OSError, context: WalkContext) -> None:
        """Translate ``os.walk`` errors into permission handling."""

        path = Path(exc.filename) if exc.filename else context.root
        if isinstance(exc, PermissionError):
            self._handle_denied(path, context, detail=exc.strerror)
            return
        LOGGER.warning("Skipping %s: %s", path, exc)

    def _handle_denied(self, path: Path, context: WalkContext, *, detail: str | None) -> None:
        """Raise or record an unreadable path depending on the permission policy."""

        if not context.force_file_permissions:
            raise PermissionDenied(path, detail)
        LOGGER.warning("Skipping unreadable path %s (%s)", path, detail or "permission denied")
        self.skipped.append(path)


def collect_files(
    root: Path,
    rules: ExclusionRuleSet,
    subset: Iterable[str | Path] | None = None,
    *,
    force_file_permissions: bool = False,
) -> frozenset[str]:
    """Convenience wrapper around :meth:`FileCollector.collect`."""

    collector = FileCollector(force_file_permissions=force_file_permissions)
    return collector.collect(root, rules, subset)


__all__ = ["FileCollector", "WalkContext", "collect_files"]

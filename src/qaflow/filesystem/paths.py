# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Helpers for reasoning about filesystem paths."""

from __future__ import annotations

import os
from functools import lru_cache
from os import PathLike
from pathlib import Path
from typing import Final

_Pathish = str | PathLike[str] | Path
_DEFAULT_CACHE_SIZE: Final[int] = 1024
_CURRENT_DIRECTORY_PREFIX: Final[str] = "./"
_PATH_SEPARATOR: Final[str] = "/"


@lru_cache(maxsize=_DEFAULT_CACHE_SIZE)
def _best_effort_resolve(path: Path) -> Path:
    """Return ``path`` resolved where possible without raising.

    Args:
        path: Candidate path to resolve.

    Returns:
        Path: Absolute variant when resolution succeeds; otherwise the closest
        achievable approximation.

    """

    try:
        return path.resolve(strict=False)
    except (OSError, RuntimeError):
        return path.absolute() if not path.is_absolute() else path


def strip_relative_prefix(raw: str) -> str:
    """Return ``raw`` with POSIX separators and no leading ``./`` or ``/`` markers.

    Args:
        raw: Path string as supplied by configuration or a tool.

    Returns:
        str: Normalised path string suitable for prefix and glob comparisons.

    """

    cleaned = raw.replace("\\", _PATH_SEPARATOR).strip()
    while True:
        if cleaned.startswith(_CURRENT_DIRECTORY_PREFIX):
            cleaned = cleaned[len(_CURRENT_DIRECTORY_PREFIX) :]
        elif cleaned.startswith(_PATH_SEPARATOR):
            cleaned = cleaned[1:]
        else:
            return cleaned


def normalize_path_key(path: _Pathish, *, base_dir: _Pathish) -> str:
    """Return a POSIX key for ``path`` relative to ``base_dir``.

    Relative inputs are taken to be relative to ``base_dir`` already and are
    only cleaned. Absolute inputs are relativised; when ``path`` lives outside
    ``base_dir`` its resolved absolute POSIX form is returned.

    Args:
        path: Path reported by a tool or discovered on disk.
        base_dir: Analysis root used for relativisation.

    Returns:
        str: Normalised key used throughout filtering.

    """

    raw_path = Path(path)
    if not raw_path.is_absolute():
        return strip_relative_prefix(os.path.normpath(str(path)).replace("\\", _PATH_SEPARATOR))
    base = _best_effort_resolve(Path(base_dir))
    candidate = _best_effort_resolve(raw_path)
    try:
        return candidate.relative_to(base).as_posix()
    except ValueError:
        return candidate.as_posix()


def relative_path_key(path: Path, root: Path) -> str:
    """Return the POSIX path of ``path`` relative to ``root`` without resolving symlinks.

    Args:
        path: File located under ``root``.
        root: Directory the walk started from.

    Returns:
        str: Relative POSIX representation.

    """

    return path.relative_to(root).as_posix()


__all__ = ["normalize_path_key", "relative_path_key", "strip_relative_prefix"]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared constants for discovery and language detection."""

from __future__ import annotations

from typing import Final

QAFLOW_DIR_NAME: Final[str] = ".qaflow"

# Version control metadata is never analysed, whatever the user rules say.
VCS_DIRS: Final[frozenset[str]] = frozenset({".git", ".hg", ".svn", ".bzr"})

ALWAYS_EXCLUDE_DIRS: Final[frozenset[str]] = VCS_DIRS | {
    "node_modules",
    "__pycache__",
    ".mypy_cache",
    ".pytest_cache",
    ".tox",
    QAFLOW_DIR_NAME,
}

LANGUAGE_EXTENSIONS: Final[dict[str, frozenset[str]]] = {
    "python": frozenset({".py", ".pyi"}),
    "javascript": frozenset({".js", ".jsx", ".mjs", ".cjs"}),
    "typescript": frozenset({".ts", ".tsx"}),
    "css": frozenset({".css", ".scss", ".sass", ".less"}),
    "go": frozenset({".go"}),
    "rust": frozenset({".rs"}),
    "java": frozenset({".java"}),
    "scala": frozenset({".scala", ".sc"}),
    "ruby": frozenset({".rb"}),
    "php": frozenset({".php", ".phtml"}),
    "shell": frozenset({".sh", ".bash", ".zsh"}),
    "markdown": frozenset({".md", ".markdown"}),
    "yaml": frozenset({".yml", ".yaml"}),
    "dockerfile": frozenset(),
}

LANGUAGE_FILENAMES: Final[dict[str, frozenset[str]]] = {
    "dockerfile": frozenset({"dockerfile"}),
    "ruby": frozenset({"gemfile", "rakefile"}),
}

__all__ = [
    "ALWAYS_EXCLUDE_DIRS",
    "LANGUAGE_EXTENSIONS",
    "LANGUAGE_FILENAMES",
    "QAFLOW_DIR_NAME",
    "VCS_DIRS",
]

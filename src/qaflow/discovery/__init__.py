# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Discovery helpers for the qaflow package."""

from __future__ import annotations

from .filesystem import FileCollector, collect_files
from .rules import ExclusionRuleSet, compile_glob, glob_matches, is_excluded

__all__ = [
    "ExclusionRuleSet",
    "FileCollector",
    "collect_files",
    "compile_glob",
    "glob_matches",
    "is_excluded",
]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Language detection utilities for selecting relevant tools."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import PurePosixPath

from .constants import LANGUAGE_EXTENSIONS, LANGUAGE_FILENAMES


def language_for(path: str) -> str | None:
    """Return the language associated with ``path`` or ``None`` when unknown."""

    candidate = PurePosixPath(path)
    name = candidate.name.lower()
    for language, names in LANGUAGE_FILENAMES.items():
        if name in names:
            return language
    suffix = candidate.suffix.lower()
    if not suffix:
        return None
    for language, extensions in LANGUAGE_EXTENSIONS.items():
        if suffix in extensions:
            return language
    return None


def detect_languages(files: Iterable[str]) -> set[str]:
    """Infer the languages present in *files*."""

    languages: set[str] = set()
    for path in files:
        language = language_for(path)
        if language is not None:
            languages.add(language)
    return languages


__all__ = ["detect_languages", "language_for"]

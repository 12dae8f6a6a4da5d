# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exclusion rules deciding whether a relative path is eligible for analysis."""

from __future__ import annotations

import re
from collections.abc import Iterable
from functools import lru_cache
from pathlib import PurePath, PurePosixPath
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..filesystem.paths import strip_relative_prefix

_SEGMENT_WILDCARD: Final[str] = "[^/]*"
_SEGMENT_CHARACTER: Final[str] = "[^/]"
_ANY_DIRECTORIES: Final[str] = "(?:.*/)?"
_ANY_PATH: Final[str] = ".*"


class ExclusionRuleSet(BaseModel):
    """Union of path-prefix, glob and per-extension exclusion rules.

    A path is excluded when it starts with any ``ignore_paths`` entry, when it
    matches any ``exclude_globs`` entry, or when it matches a glob registered
    for its extension in ``extension_excludes``. Rule order is irrelevant.
    """

    model_config = ConfigDict(frozen=True)

    ignore_paths: frozenset[str] = frozenset()
    exclude_globs: frozenset[str] = frozenset()
    extension_excludes: dict[str, frozenset[str]] = Field(default_factory=dict)

    @field_validator("ignore_paths", mode="after")
    @classmethod
    def _normalise_prefixes(cls, value: frozenset[str]) -> frozenset[str]:
        """Clean ignore prefixes and drop empty entries that would match every path."""

        cleaned = (strip_relative_prefix(entry) for entry in value)
        return frozenset(entry for entry in cleaned if entry)

    @field_validator("exclude_globs", mode="after")
    @classmethod
    def _normalise_globs(cls, value: frozenset[str]) -> frozenset[str]:
        """Clean glob patterns the same way paths are cleaned."""

        cleaned = (strip_relative_prefix(entry) for entry in value)
        return frozenset(entry for entry in cleaned if entry)

    @field_validator("extension_excludes", mode="after")
    @classmethod
    def _normalise_extensions(cls, value: dict[str, frozenset[str]]) -> dict[str, frozenset[str]]:
        """Key per-extension globs by lower-cased, dot-prefixed suffixes."""

        normalised: dict[str, frozenset[str]] = {}
        for extension, globs in value.items():
            key = normalize_extension(extension)
            if not key:
                continue
            cleaned = frozenset(strip_relative_prefix(glob) for glob in globs if glob.strip())
            normalised[key] = normalised.get(key, frozenset()) | cleaned
        return normalised

    def is_excluded(self, relative_path: str | PurePath) -> bool:
        """Return whether ``relative_path`` is excluded by any rule.

        Args:
            relative_path: Path relative to the analysis root. Separators are
                normalised and leading ``./`` markers stripped before matching.

        Returns:
            bool: ``True`` when at least one rule matches.
        """

        return is_excluded(self, relative_path)

    def merge(self, other: ExclusionRuleSet) -> ExclusionRuleSet:
        """Return a rule set excluding everything either rule set excludes."""

        if other.is_empty:
            return self
        if self.is_empty:
            return other
        extensions = dict(self.extension_excludes)
        for extension, globs in other.extension_excludes.items():
            extensions[extension] = extensions.get(extension, frozenset()) | globs
        return ExclusionRuleSet(
            ignore_paths=self.ignore_paths | other.ignore_paths,
            exclude_globs=self.exclude_globs | other.exclude_globs,
            extension_excludes=extensions,
        )

    def with_globs(self, globs: Iterable[str]) -> ExclusionRuleSet:
        """Return a copy with ``globs`` added to the global glob excludes."""

        extra = frozenset(globs)
        if not extra:
            return self
        return self.merge(ExclusionRuleSet(exclude_globs=extra))

    @property
    def is_empty(self) -> bool:
        """Return whether the rule set excludes nothing."""

        return not (self.ignore_paths or self.exclude_globs or self.extension_excludes)


def is_excluded(rules: ExclusionRuleSet, relative_path: str | PurePath) -> bool:
    """Return whether ``relative_path`` is excluded by ``rules``.

    Ignore paths use a plain string prefix test, so ``lib/impro`` also
    excludes ``lib/improver/module.py``.

    Args:
        rules: Exclusion rules to evaluate.
        relative_path: Candidate path relative to the analysis root.

    Returns:
        bool: ``True`` when the path is excluded.
    """

    candidate = strip_relative_prefix(str(relative_path))
    if any(candidate.startswith(prefix) for prefix in rules.ignore_paths):
        return True
    if any(glob_matches(pattern, candidate) for pattern in rules.exclude_globs):
        return True
    if rules.extension_excludes:
        extension = PurePosixPath(candidate).suffix.lower()
        patterns = rules.extension_excludes.get(extension, frozenset())
        if any(glob_matches(pattern, candidate) for pattern in patterns):
            return True
    return False


def glob_matches(pattern: str, candidate: str) -> bool:
    """Return whether the normalised ``candidate`` matches the glob ``pattern``."""

    return compile_glob(pattern).match(candidate) is not None


def normalize_extension(raw: str) -> str:
    """Return ``raw`` as a lower-cased extension with a leading dot."""

    cleaned = raw.strip().lower()
    if not cleaned:
        return ""
    return cleaned if cleaned.startswith(".") else f".{cleaned}"


@lru_cache(maxsize=512)
def compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a shell glob into an anchored regular expression.

    ``*`` and ``?`` never cross a ``/``; ``**`` matches any number of
    segments, including none. A trailing ``/`` matches everything below the
    directory.

    Args:
        pattern: Glob pattern relative to the analysis root.

    Returns:
        re.Pattern[str]: Compiled expression matching complete paths.
    """

    source = strip_relative_prefix(pattern)
    if source.endswith("/"):
        source = f"{source}**"
    parts: list[str] = []
    index = 0
    length = len(source)
    while index < length:
        char = source[index]
        if char == "*":
            if source.startswith("**", index):
                index += 2
                if index < length and source[index] == "/":
                    parts.append(_ANY_DIRECTORIES)
                    index += 1
                else:
                    parts.append(_ANY_PATH)
                continue
            parts.append(_SEGMENT_WILDCARD)
        elif char == "?":
            parts.append(_SEGMENT_CHARACTER)
        elif char == "[":
            translated, index = _translate_class(source, index)
            parts.append(translated)
            continue
        else:
            parts.append(re.escape(char))
        index += 1
    return re.compile("".join(parts) + r"\Z", re.DOTALL)


def _translate_class(source: str, start: int) -> tuple[str, int]:
    """Translate a ``[...]`` character class beginning at ``start``.

    Returns:
        tuple[str, int]: Regex fragment and the index following the class.
    """

    search_from = start + 1
    if search_from < len(source) and source[search_from] == "!":
        search_from += 1
    if search_from < len(source) and source[search_from] == "]":
        search_from += 1
    end = source.find("]", search_from)
    if end == -1:
        return re.escape("["), start + 1
    body = source[start + 1 : end]
    if body.startswith("!"):
        body = "^" + body[1:]
    body = body.replace("\\", "\\\\")
    return f"(?!/)[{body}]", end + 1


__all__ = [
    "ExclusionRuleSet",
    "compile_glob",
    "glob_matches",
    "is_excluded",
    "normalize_extension",
]

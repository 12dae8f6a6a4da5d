# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Filesystem helpers used by discovery and aggregation."""

from __future__ import annotations

from .paths import normalize_path_key, relative_path_key, strip_relative_prefix

__all__ = ["normalize_path_key", "relative_path_key", "strip_relative_prefix"]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Command line interface for qaflow."""

from __future__ import annotations

from .app import ExitCode, app

__all__ = ["ExitCode", "app"]

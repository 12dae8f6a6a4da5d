# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the filesystem walk that collects analysable files."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from qaflow.discovery.filesystem import FileCollector, collect_files
from qaflow.discovery.rules import ExclusionRuleSet
from qaflow.errors import DirectoryNotFound, FatalReason, PermissionDenied

_IS_ROOT = hasattr(os, "geteuid") and os.geteuid() == 0


def _write(path: Path, content: str = "x = 1\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_collect_returns_relative_posix_paths(project: Path) -> None:
    files = FileCollector().collect(project, ExclusionRuleSet())

    assert files == frozenset({"lib/main.py", "lib/tests/a.py", "web/app.js"})


def test_collect_skips_vcs_and_cache_directories(tmp_path: Path) -> None:
    _write(tmp_path / "keep.py")
    _write(tmp_path / ".git" / "hooks" / "pre-commit.py")
    _write(tmp_path / "node_modules" / "pkg" / "index.js")
    _write(tmp_path / "pkg" / "__pycache__" / "mod.cpython-312.pyc")

    files = collect_files(tmp_path, ExclusionRuleSet())

    assert files == frozenset({"keep.py"})


def test_collect_applies_exclusion_rules(project: Path) -> None:
    rules = ExclusionRuleSet(ignore_paths=frozenset({"lib/tests/"}), exclude_globs=frozenset({"**/*.js"}))

    files = FileCollector().collect(project, rules)

    assert files == frozenset({"lib/main.py"})


def test_collect_intersects_with_subset(project: Path) -> None:
    subset = ["./lib/main.py", project / "web" / "app.js", "missing.py"]

    files = FileCollector().collect(project, ExclusionRuleSet(), subset)

    assert files == frozenset({"lib/main.py", "web/app.js"})


def test_collect_does_not_follow_symlinks(tmp_path: Path) -> None:
    root = tmp_path / "root"
    outside = tmp_path / "outside"
    _write(root / "real.py")
    _write(outside / "secret.py")
    try:
        (root / "linked_dir").symlink_to(outside, target_is_directory=True)
        (root / "linked_file.py").symlink_to(root / "real.py")
        (root / "loop").symlink_to(root, target_is_directory=True)
    except OSError:
        pytest.skip("symlinks are not supported on this platform")

    files = FileCollector().collect(root, ExclusionRuleSet())

    assert files == frozenset({"real.py"})


def test_missing_root_raises_directory_not_found(tmp_path: Path) -> None:
    with pytest.raises(DirectoryNotFound) as excinfo:
        FileCollector().collect(tmp_path / "absent", ExclusionRuleSet())

    assert excinfo.value.reason is FatalReason.DIRECTORY_NOT_FOUND


def test_file_root_raises_directory_not_found(tmp_path: Path) -> None:
    target = _write(tmp_path / "file.py")

    with pytest.raises(DirectoryNotFound):
        FileCollector().collect(target, ExclusionRuleSet())


@pytest.mark.skipif(_IS_ROOT, reason="permission checks are bypassed for root")
def test_unreadable_subtree_raises_permission_denied(tmp_path: Path) -> None:
    _write(tmp_path / "ok.py")
    locked = tmp_path / "locked"
    _write(locked / "hidden.py")
    locked.chmod(0)
    try:
        with pytest.raises(PermissionDenied):
            FileCollector().collect(tmp_path, ExclusionRuleSet())
    finally:
        locked.chmod(0o755)


@pytest.mark.skipif(_IS_ROOT, reason="permission checks are bypassed for root")
def test_forced_permissions_skip_unreadable_subtree(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    _write(tmp_path / "ok.py")
    locked = tmp_path / "locked"
    _write(locked / "hidden.py")
    locked.chmod(0)
    collector = FileCollector(force_file_permissions=True)
    try:
        with caplog.at_level("WARNING", logger="qaflow"):
            files = collector.collect(tmp_path, ExclusionRuleSet())
    finally:
        locked.chmod(0o755)

    assert files == frozenset({"ok.py"})
    assert collector.skipped
    assert "Skipping unreadable path" in caplog.text


@pytest.mark.skipif(_IS_ROOT, reason="permission checks are bypassed for root")
def test_unreadable_file_is_reported(tmp_path: Path) -> None:
    _write(tmp_path / "ok.py")
    secret = _write(tmp_path / "secret.py")
    secret.chmod(0)
    try:
        with pytest.raises(PermissionDenied):
            FileCollector().collect(tmp_path, ExclusionRuleSet())
        forced = FileCollector(force_file_permissions=True).collect(tmp_path, ExclusionRuleSet())
    finally:
        secret.chmod(0o644)

    assert forced == frozenset({"ok.py"})

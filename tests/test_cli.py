# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for the analyse and tools CLI commands."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

from qaflow.cli.app import ExitCode, app, exit_code_for
from qaflow.models import AnalysisResult, Issue, Report, ToolFailure, ToolFailureKind
from qaflow.tools import plugins

_REPORTER = """
import json, os
config = json.load(open(os.environ["QAFLOW_CONFIG"], encoding="utf-8"))
for name in config["files"]:
    for pattern in ("PyLint_C0111", "PyLint_W0611"):
        print(json.dumps({"filename": name, "message": "found", "patternId": pattern, "line": 1}))
"""

_FAILING = "import sys; sys.stderr.write('crashed\\n'); sys.exit(3)"


@pytest.fixture(autouse=True)
def _no_installed_plugins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(plugins, "_select_entry_points", lambda group: ())


def _write_config(project: Path, tools: dict[str, str], extra: str = "") -> None:
    lines = [extra]
    for name, script in tools.items():
        lines.append(f"[commands.{name}]")
        lines.append(f"uuid = {json.dumps(f'uuid-{name}')}")
        lines.append(f"command = {json.dumps([sys.executable, '-c', script])}")
        lines.append('languages = ["python"]')
        lines.append("")
    (project / ".qaflow.toml").write_text("\n".join(lines), encoding="utf-8")


def test_analyse_writes_json_report(project: Path, tmp_path: Path) -> None:
    _write_config(project, {"pylint": _REPORTER}, extra='[exclusions]\nignore_paths = ["lib/tests/"]\n')
    report_path = tmp_path / "out" / "report.json"

    result = CliRunner().invoke(
        app,
        ["analyse", "--directory", str(project), "--format", "json", "--output", str(report_path), "--no-emoji"],
    )

    assert result.exit_code == ExitCode.SUCCESS, result.output
    payload = json.loads(report_path.read_text(encoding="utf-8"))
    assert [(entry["file"], entry["pattern_id"]) for entry in payload] == [
        ("lib/main.py", "PyLint_C0111"),
        ("lib/main.py", "PyLint_W0611"),
    ]
    assert all(entry["kind"] == "issue" and entry["tool"] == "pylint" for entry in payload)


def test_analyse_applies_project_pattern_configuration(project: Path, tmp_path: Path) -> None:
    _write_config(project, {"pylint": _REPORTER})
    remote = tmp_path / "project.json"
    remote.write_text(
        json.dumps({"tools": [{"uuid": "uuid-pylint", "patterns": [{"pattern_id": "PyLint_C0111"}]}]}),
        encoding="utf-8",
    )
    report_path = tmp_path / "report.json"

    result = CliRunner().invoke(
        app,
        [
            "analyse",
            "-d",
            str(project),
            "--project-config",
            str(remote),
            "-f",
            "json",
            "-o",
            str(report_path),
        ],
    )

    assert result.exit_code == ExitCode.SUCCESS, result.output
    payload = json.loads(report_path.read_text(encoding="utf-8"))
    assert {entry["pattern_id"] for entry in payload} == {"PyLint_C0111"}


def test_missing_project_configuration_warns_and_continues(project: Path, tmp_path: Path) -> None:
    _write_config(project, {"pylint": _REPORTER})

    result = CliRunner().invoke(
        app,
        ["analyse", "-d", str(project), "--project-config", str(tmp_path / "absent.json"), "--no-emoji"],
    )

    assert result.exit_code == ExitCode.SUCCESS, result.output
    assert "Remote project configuration unavailable" in result.output
    assert "lib/main.py:1 [pylint] PyLint_C0111" in result.output


def test_partial_failure_exit_code(project: Path) -> None:
    _write_config(project, {"pylint": _REPORTER, "broken": _FAILING})

    result = CliRunner().invoke(app, ["analyse", "-d", str(project), "--no-emoji", "--no-color"])

    assert result.exit_code == ExitCode.PARTIAL_FAILURE
    assert "broken: execution_error" in result.output


def test_all_tools_failed_exit_code(project: Path) -> None:
    _write_config(project, {"broken": _FAILING})

    result = CliRunner().invoke(app, ["analyse", "-d", str(project), "--no-emoji"])

    assert result.exit_code == ExitCode.ALL_TOOLS_FAILED


def test_fatal_errors_exit_with_status_three(tmp_path: Path) -> None:
    result = CliRunner().invoke(app, ["analyse", "-d", str(tmp_path / "missing"), "--no-emoji"])

    assert result.exit_code == ExitCode.FATAL
    assert "does not exist" in result.output


def test_unknown_tool_lists_valid_tools(project: Path) -> None:
    _write_config(project, {"pylint": _REPORTER})

    result = CliRunner().invoke(app, ["analyse", "-d", str(project), "--tool", "flake8", "--no-emoji"])

    assert result.exit_code == ExitCode.FATAL
    assert "valid tools are: pylint" in result.output


def test_max_allowed_issues_exit_code(project: Path) -> None:
    _write_config(project, {"pylint": _REPORTER})

    result = CliRunner().invoke(
        app,
        ["analyse", "-d", str(project), "--max-allowed-issues", "1", "--no-emoji"],
    )

    assert result.exit_code == ExitCode.TOO_MANY_ISSUES
    assert "4 issues reported" in result.output


def test_invalid_format_is_rejected(project: Path) -> None:
    result = CliRunner().invoke(app, ["analyse", "-d", str(project), "--format", "xml"])

    assert result.exit_code == 2
    assert "Format must be" in result.output


def test_tools_command_lists_registered_tools(project: Path) -> None:
    _write_config(project, {"pylint": _REPORTER, "broken": _FAILING})

    result = CliRunner().invoke(app, ["tools", "-d", str(project)])

    assert result.exit_code == 0
    assert result.output.splitlines() == [
        "broken\tuuid-broken\tissues\tpython",
        "pylint\tuuid-pylint\tissues\tpython",
    ]


def test_exit_code_prefers_tool_failures_over_issue_threshold() -> None:
    issues = Report.from_findings(
        Issue(tool="pylint", file=f"f{index}.py", pattern_id="X", message="m") for index in range(3)
    )
    failure = ToolFailure(tool="eslint", kind=ToolFailureKind.TIMEOUT, message="slow")

    partial = AnalysisResult(report=issues, tools=("pylint", "eslint"), failures=(failure,))
    clean = AnalysisResult(report=issues, tools=("pylint",))

    assert exit_code_for(partial, max_allowed_issues=0) is ExitCode.PARTIAL_FAILURE
    assert exit_code_for(clean, max_allowed_issues=0) is ExitCode.TOO_MANY_ISSUES
    assert exit_code_for(clean, max_allowed_issues=3) is ExitCode.SUCCESS
    assert exit_code_for(clean, max_allowed_issues=None) is ExitCode.SUCCESS


def test_directory_defaults_to_the_working_directory_at_invocation(
    project: Path,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _write_config(project, {"pylint": _REPORTER})
    report_path = tmp_path / "report.json"
    monkeypatch.chdir(project)

    listed = CliRunner().invoke(app, ["tools"])
    analysed = CliRunner().invoke(app, ["analyse", "-f", "json", "-o", str(report_path), "--no-emoji"])

    assert listed.output.splitlines() == ["pylint\tuuid-pylint\tissues\tpython"]
    assert analysed.exit_code == ExitCode.SUCCESS, analysed.output
    assert {entry["file"] for entry in json.loads(report_path.read_text(encoding="utf-8"))} == {
        "lib/main.py",
        "lib/tests/a.py",
    }

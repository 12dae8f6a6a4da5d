# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Command line entry point for running analyses."""

from __future__ import annotations

from datetime import timedelta
from enum import IntEnum
from pathlib import Path

import typer

from ..config.loader import FileConfigurationFetcher, LocalConfigDocument, load_local_document
from ..config.models import OutputSettings, RemoteConfiguration
from ..errors import AnalysisError
from ..logging import configure_logging, fail, info, ok, section, warn
from ..models import AnalysisResult, ToolFailureKind
from ..orchestration.executor import Executor, Formatter
from ..reporting import JsonFormatter, TextFormatter, emit_summary
from ..tools.command import build_command_tools
from ..tools.plugins import build_registry
from ..tools.registry import ToolRegistry

app = typer.Typer(
    help="Run static-analysis tools over a project and aggregate their findings.",
    no_args_is_help=True,
    add_completion=False,
)


class ExitCode(IntEnum):
    """Process exit statuses reported by ``qaflow analyse``."""

    SUCCESS = 0
    PARTIAL_FAILURE = 1
    ALL_TOOLS_FAILED = 2
    FATAL = 3
    TOO_MANY_ISSUES = 4


def exit_code_for(result: AnalysisResult, max_allowed_issues: int | None) -> ExitCode:
    """Return the exit status summarising ``result``.

    Tool failures take precedence over the issue threshold.
    """

    if result.all_tools_failed:
        return ExitCode.ALL_TOOLS_FAILED
    if result.has_failures:
        return ExitCode.PARTIAL_FAILURE
    if max_allowed_issues is not None and result.issue_count() > max_allowed_issues:
        return ExitCode.TOO_MANY_ISSUES
    return ExitCode.SUCCESS


def _build_formatter(output: OutputSettings) -> Formatter:
    if output.format == "json":
        return JsonFormatter(output.file)
    return TextFormatter(output.file, color=output.color, emoji=output.emoji)


def _load_project(directory: Path, config_file: Path | None) -> tuple[LocalConfigDocument, ToolRegistry]:
    """Return the local configuration document and the tools it makes available."""

    document = load_local_document(directory, config_file)
    return document, build_registry(build_command_tools(document.commands))


@app.command("analyse")
def analyse(
    directory: Path | None = typer.Option(
        None,
        "--directory",
        "-d",
        help="Root directory to analyse (defaults to the current directory).",
    ),
    tool: str | None = typer.Option(None, "--tool", "-t", help="Run only this tool (short name or UUID)."),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Local configuration file (defaults to .qaflow.toml or pyproject.toml in the directory).",
    ),
    project_config: Path | None = typer.Option(
        None,
        "--project-config",
        help="Pre-fetched project configuration JSON document.",
    ),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the report to this file."),
    output_format: str = typer.Option(
        "text",
        "--format",
        "-f",
        case_sensitive=False,
        help="Report format: text or json.",
    ),
    files: list[str] | None = typer.Option(
        None,
        "--file",
        help="Restrict the analysis to these files (repeatable).",
    ),
    allow_network: bool | None = typer.Option(
        None,
        "--allow-network/--no-allow-network",
        help="Allow tools that need network access.",
    ),
    force_file_permissions: bool = typer.Option(
        False,
        "--force-file-permissions",
        help="Skip unreadable paths instead of failing.",
    ),
    force_tool: bool = typer.Option(False, "--force-tool", help="Run the requested tool even if disabled."),
    parallel: int | None = typer.Option(None, "--parallel", "-j", min=1, help="Maximum concurrent tools."),
    tool_timeout: float | None = typer.Option(
        None,
        "--tool-timeout",
        min=0,
        help="Per-tool timeout in seconds.",
    ),
    max_allowed_issues: int | None = typer.Option(
        None,
        "--max-allowed-issues",
        min=0,
        help="Exit with status 4 when more issues are reported.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Emit diagnostic logging."),
    emoji: bool = typer.Option(True, "--emoji/--no-emoji", help="Decorate console output with emoji."),
    color: bool = typer.Option(True, "--color/--no-color", help="Colour console output."),
) -> None:
    """Run the analysis and print or write the report."""

    configure_logging(verbose=verbose)
    directory = directory or Path.cwd()
    fmt = output_format.lower()
    if fmt not in {"text", "json"}:
        raise typer.BadParameter("Format must be 'text' or 'json'", param_hint="--format")

    try:
        document, registry = _load_project(directory, config_file)
        output_settings = OutputSettings(format=fmt, file=output, emoji=emoji, color=color)
        configuration = document.to_configuration(
            directory,
            output=output_settings,
            tool=tool,
            timeout=timedelta(seconds=tool_timeout) if tool_timeout is not None else None,
            allow_network=allow_network,
            force_file_permissions=force_file_permissions,
            force_tool=force_tool,
            jobs=parallel,
            files=frozenset(files) if files else None,
        )
        remote: RemoteConfiguration | None = None
        if project_config is not None:
            remote = FileConfigurationFetcher(project_config).fetch(directory.name)
        executor = Executor(registry, configuration, remote=remote, formatter=_build_formatter(output_settings))
        result = executor.run()
    except AnalysisError as exc:
        fail(str(exc), use_emoji=emoji, use_color=color)
        raise typer.Exit(code=ExitCode.FATAL) from exc

    for degraded in result.warnings:
        warn(degraded.message, use_emoji=emoji, use_color=color)
    for failure in result.failures:
        if failure.kind is ToolFailureKind.NOT_ENABLED:
            warn(failure.describe(), use_emoji=emoji, use_color=color)
        else:
            fail(failure.describe(), use_emoji=emoji, use_color=color)
    if output is not None:
        info(f"Report written to {output}", use_emoji=emoji, use_color=color)
    if fmt == "text":
        section("Summary", use_color=color)
        emit_summary(result, color=color, emoji=emoji)

    code = exit_code_for(result, max_allowed_issues)
    if code is ExitCode.TOO_MANY_ISSUES:
        fail(
            f"{result.issue_count()} issues reported; at most {max_allowed_issues} allowed",
            use_emoji=emoji,
            use_color=color,
        )
    elif code is ExitCode.SUCCESS:
        ok(f"Analysis complete with {len(result.report)} findings", use_emoji=emoji, use_color=color)
    raise typer.Exit(code=int(code))


@app.command("tools")
def list_tools(
    directory: Path | None = typer.Option(
        None,
        "--directory",
        "-d",
        help="Project root (defaults to the current directory).",
    ),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Local configuration file."),
) -> None:
    """List the registered tools."""

    try:
        _, registry = _load_project(directory or Path.cwd(), config_file)
    except AnalysisError as exc:
        fail(str(exc), use_emoji=False, use_color=False)
        raise typer.Exit(code=ExitCode.FATAL) from exc
    if not registry:
        warn("No tools registered", use_emoji=False, use_color=False)
        return
    for registered in registry.tools():
        languages = ", ".join(registered.languages) or "all"
        typer.echo(f"{registered.name}\t{registered.uuid}\t{registered.category}\t{languages}")


__all__ = ["ExitCode", "analyse", "app", "exit_code_for", "list_tools"]

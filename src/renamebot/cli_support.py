"""Shared helpers for renamebot CLI commands."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

import click
from click.core import ParameterSource
from rich.console import Console
from rich.table import Table

from renamebot.archives import ArchiveError
from renamebot.commands import CommandError
from renamebot.config import ConfigError, ConfigManager, RenamebotConfig
from renamebot.config.resolver import parse_assignments
from renamebot.datasources import DatasourceError
from renamebot.formatting import FormatError
from renamebot.history import HistoryError, MissingHistoryError
from renamebot.logging_setup import configure_logging
from renamebot.organization import ConflictError, ExecutionReport, ExecutionStatus, RenamePlan
from renamebot.subtitles import SubtitleFormatError
from renamebot.verification import VerificationError

console = Console()

_ERROR_CODES: tuple[tuple[type[Exception], str], ...] = (
    (ConfigError, "config_error"),
    (DatasourceError, "datasource_error"),
    (ConflictError, "conflict_error"),
    (MissingHistoryError, "history_missing"),
    (HistoryError, "history_error"),
    (VerificationError, "verification_error"),
    (ArchiveError, "archive_error"),
    (FormatError, "format_error"),
    (SubtitleFormatError, "subtitle_error"),
    (CommandError, "command_error"),
)

_STATUS_STYLES = {
    ExecutionStatus.APPLIED: "green",
    ExecutionStatus.SKIPPED: "yellow",
    ExecutionStatus.FAILED: "red",
}


@dataclass
class CLIState:
    """Options given to the top-level command group.

    Attributes:
        verbose: Number of ``-v`` flags.
        config_path: Alternate configuration file.
        overrides: ``KEY=VALUE`` configuration overrides.
    """

    verbose: int = 0
    config_path: Path | None = None
    overrides: tuple[str, ...] = field(default_factory=tuple)


@dataclass
class OutputModes:
    json_output: bool
    quiet: bool
    summary_only: bool

    def emit(self, message: Any, *, mode: str = "detail") -> None:
        _emit_message(message, mode=mode, quiet=self.quiet, summary_only=self.summary_only)


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """
    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """
    if quiet and mode != "error":
        return
    if summary_only and mode not in {"summary", "warning", "error"}:
        return
    console.print(message)


def _format_summary_line(command: str, target: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands.

    Args:
        command: Command name to include in the summary.
        target: Path or query the command worked on.
        metrics: Ordered mapping of metric names to values.

    Returns:
        str: Rich-formatted summary string.
    """
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {target}: {parts}.[/green]"


@contextmanager
def cli_errors(json_output: bool, activity: str) -> Iterator[None]:
    """Translate exceptions raised inside a command into CLI errors.

    Args:
        json_output: Whether errors are emitted as JSON payloads.
        activity: Short description used for unexpected errors.
    """
    try:
        yield
    except (click.exceptions.Exit, click.Abort):
        raise
    except click.ClickException as exc:
        _handle_cli_error(
            exc.format_message(), code="cli_error", json_output=json_output, original=exc
        )
    except Exception as exc:
        for error_type, code in _ERROR_CODES:
            if isinstance(exc, error_type):
                details = getattr(exc, "conflicts", None) or None
                _handle_cli_error(
                    str(exc), code=code, json_output=json_output, details=details, original=exc
                )
        _handle_cli_error(
            f"Unexpected error while {activity}: {exc}",
            code="internal_error",
            json_output=json_output,
            details={"exception": type(exc).__name__},
            original=exc,
        )


def load_runtime(ctx: click.Context) -> tuple[ConfigManager, RenamebotConfig]:
    """Load configuration for a command and configure logging from it.

    Raises:
        ConfigError: If the configuration or an override is invalid.
    """
    state = ctx.find_object(CLIState) or CLIState()
    manager = ConfigManager(state.config_path)
    manager.ensure_exists()
    config = manager.load(cli_overrides=parse_assignments(state.overrides))
    configure_logging(config.logging, verbose=state.verbose)
    return manager, config


def resolve_output_modes(
    ctx: click.Context,
    config: RenamebotConfig,
    *,
    json_output: bool,
    quiet: bool,
    summary_mode: bool,
) -> OutputModes:
    """Combine output flags with configured defaults.

    Raises:
        click.ClickException: If the flags contradict each other.
    """
    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        quiet_enabled = False
        summary_only = False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return OutputModes(json_output=json_output, quiet=quiet_enabled, summary_only=summary_only)


def execution_table(report: ExecutionReport, title: str) -> Table:
    """Render execution results as a table."""
    table = Table(title=title)
    table.add_column("Status")
    table.add_column("Source", overflow="fold")
    table.add_column("Destination", overflow="fold")
    table.add_column("Note", overflow="fold")
    for result in report.results:
        style = _STATUS_STYLES[result.status]
        table.add_row(
            f"[{style}]{result.status.value}[/{style}]",
            str(result.source),
            str(result.final_path or result.destination),
            result.error or "",
        )
    return table


def execution_counts(report: ExecutionReport) -> dict[str, int]:
    return {
        "applied": len(report.applied),
        "skipped": len(report.skipped),
        "failed": len(report.failed),
    }


def plan_payload(plan: RenamePlan) -> dict[str, Any]:
    return {
        "mappings": [mapping.model_dump(mode="json") for mapping in plan.mappings],
        "skipped": [item.model_dump(mode="json") for item in plan.skipped],
        "unmatched": [item.model_dump(mode="json") for item in plan.unmatched],
        "notes": list(plan.notes),
    }


def report_payload(report: ExecutionReport) -> dict[str, Any]:
    return {
        "batch_id": report.batch_id,
        "counts": execution_counts(report),
        "history_error": report.history_error,
        "results": [result.model_dump(mode="json") for result in report.results],
    }


def as_paths(values: tuple[str, ...]) -> list[Path]:
    return [Path(value).expanduser() for value in values]


__all__ = [
    "CLIState",
    "OutputModes",
    "console",
    "cli_errors",
    "load_runtime",
    "resolve_output_modes",
    "execution_table",
    "execution_counts",
    "plan_payload",
    "report_payload",
    "as_paths",
    "_emit_message",
    "_format_summary_line",
    "_handle_cli_error",
]

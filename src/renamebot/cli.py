"""Command line interface for renamebot."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional, cast

import click
import yaml
from rich.syntax import Syntax
from rich.table import Table

from renamebot.cli_support import (
    CLIState,
    OutputModes,
    _format_summary_line,
    as_paths,
    cli_errors,
    console,
    execution_counts,
    execution_table,
    load_runtime,
    plan_payload,
    report_payload,
    resolve_output_modes,
)
from renamebot.config import ConfigError, ConfigManager, RenamebotConfig, resolve_with_precedence
from renamebot.datasources import DATASOURCE_NAMES, SortOrder
from renamebot.history import HistoryRepository
from renamebot.mediainfo import DEFAULT_INFO_FORMAT
from renamebot.service import DEFAULT_LIST_FORMAT, RenameOutcome, RenameService
from renamebot.subtitles import SubtitleNaming

ACTIONS = ("move", "copy", "symlink", "hardlink", "test")
CONFLICTS = ("skip", "overwrite", "append_number", "fail")

_path_argument = click.argument(
    "paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=str)
)


def _output_options(func: Any) -> Any:
    func = click.option("--quiet", is_flag=True, help="Suppress non-error output.")(func)
    func = click.option(
        "--summary", "summary_mode", is_flag=True, help="Only emit summary lines."
    )(func)
    func = click.option(
        "--json", "json_output", is_flag=True, help="Emit JSON instead of tables."
    )(func)
    return func


def _prepare(
    ctx: click.Context, json_output: bool, quiet: bool, summary_mode: bool
) -> tuple[RenamebotConfig, OutputModes]:
    _, config = load_runtime(ctx)
    modes = resolve_output_modes(
        ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
    )
    return config, modes


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="renamebot")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (repeatable).")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Use an alternate configuration file.",
)
@click.option(
    "--set",
    "overrides",
    multiple=True,
    metavar="KEY=VALUE",
    help="Override a configuration value for this run (repeatable).",
)
@click.pass_context
def cli(
    ctx: click.Context, verbose: int, config_path: Optional[Path], overrides: tuple[str, ...]
) -> None:
    """renamebot renames TV episodes and movies using metadata datasources.

    Matches are planned, checked for destination conflicts and applied as one
    batch that can be reverted later.
    """
    ctx.obj = CLIState(verbose=verbose, config_path=config_path, overrides=overrides)


# --------------------------------------------------------------------------- #
# rename / revert / history                                                   #
# --------------------------------------------------------------------------- #


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True, path_type=str))
@click.option("-q", "--query", type=str, help="Search query; derived from file names by default.")
@click.option("--db", "datasource", type=click.Choice(DATASOURCE_NAMES), help="Datasource.")
@click.option(
    "--order",
    type=click.Choice([order.value for order in SortOrder]),
    default=SortOrder.AIRDATE.value,
    show_default=True,
    help="Episode numbering.",
)
@click.option("--lang", "locale", type=str, help="Datasource locale, e.g. en-US.")
@click.option("--format", "episode_format", type=str, help="Destination template for episodes.")
@click.option("--movie-format", type=str, help="Destination template for movies.")
@click.option("--filter", "filter_expression", type=str, help="Record filter, e.g. 's == 1'.")
@click.option("--action", type=click.Choice(ACTIONS), help="Filesystem action.")
@click.option("--conflict", type=click.Choice(CONFLICTS), help="Conflict policy.")
@click.option("--output", type=click.Path(file_okay=False, path_type=str), help="Output folder.")
@click.option("--strict/--non-strict", default=None, help="Reject ambiguous matches.")
@click.option("--linear", is_flag=True, help="Pair files with records in order (needs --query).")
@click.option(
    "--mapping",
    "mapping_file",
    type=click.Path(exists=True, dir_okay=False, path_type=str),
    help="YAML/JSON file mapping source paths to destinations.",
)
@click.option("--exec", "exec_template", type=str, help="Command to run for renamed files.")
@click.option("--dry-run", is_flag=True, help="Plan only; equivalent to --action test.")
@_output_options
@click.pass_context
def rename(
    ctx: click.Context,
    paths: tuple[str, ...],
    query: Optional[str],
    datasource: Optional[str],
    order: str,
    locale: Optional[str],
    episode_format: Optional[str],
    movie_format: Optional[str],
    filter_expression: Optional[str],
    action: Optional[str],
    conflict: Optional[str],
    output: Optional[str],
    strict: Optional[bool],
    linear: bool,
    mapping_file: Optional[str],
    exec_template: Optional[str],
    dry_run: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Match PATHS against a datasource and rename them.

    Args:
        ctx: Click context used for parameter source inspection.
        paths: Files or directories to rename.
        query: Explicit search query.
        datasource: Datasource name.
        order: Episode numbering passed to the datasource.
        locale: Datasource locale.
        episode_format: Template override for episodes.
        movie_format: Template override for movies.
        filter_expression: Record filter expression.
        action: Filesystem action override.
        conflict: Conflict policy override.
        output: Output directory for relative destinations.
        strict: Strict matching override.
        linear: Pair files with records by position.
        mapping_file: Explicit mapping file; skips matching.
        exec_template: Command run for every renamed file.
        dry_run: Only plan the batch.
        json_output: Emit JSON instead of tables.
        summary_mode: Only emit summary lines.
        quiet: Suppress non-error output.
    """
    with cli_errors(json_output, "renaming files"):
        config, modes = _prepare(ctx, json_output, quiet, summary_mode)
        if not paths and not mapping_file:
            raise click.ClickException("Provide PATHS to rename or a --mapping file.")
        if linear and not query:
            raise click.ClickException("--linear requires --query.")

        service = RenameService(config)
        output_dir = Path(output).expanduser() if output else None
        effective_action = "test" if dry_run else action
        common: dict[str, Any] = {
            "action": effective_action,
            "conflict": conflict,
            "output": output_dir,
        }

        if mapping_file:
            outcome = service.rename_mapping(_read_mapping(Path(mapping_file)), **common)
        elif linear:
            outcome = service.rename_linear(
                as_paths(paths),
                query=query or "",
                datasource=datasource,
                order=SortOrder(order),
                locale=locale,
                filter_expression=filter_expression,
                episode_format=episode_format,
                movie_format=movie_format,
                exec_template=exec_template,
                **common,
            )
        else:
            outcome = service.rename(
                as_paths(paths),
                query=query,
                datasource=datasource,
                order=SortOrder(order),
                locale=locale,
                strict=strict,
                filter_expression=filter_expression,
                episode_format=episode_format,
                movie_format=movie_format,
                exec_template=exec_template,
                **common,
            )

        _emit_rename(outcome, modes, target=", ".join(paths) or str(mapping_file))
        if outcome.report.failed or outcome.report.history_error:
            ctx.exit(1)


def _read_mapping(path: Path) -> dict[Path, Path]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid mapping file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise click.ClickException("Mapping file must contain a source: destination mapping.")
    base = path.parent
    return {
        (base / str(source)).absolute(): Path(str(destination))
        for source, destination in data.items()
    }


def _emit_rename(outcome: RenameOutcome, modes: OutputModes, *, target: str) -> None:
    plan, report = outcome.plan, outcome.report
    if modes.json_output:
        console.print_json(
            data={
                "plan": plan_payload(plan),
                "report": report_payload(report),
                "query_errors": outcome.query_errors,
                "exec_codes": outcome.exec_codes,
            }
        )
        return

    for query, message in sorted(outcome.query_errors.items()):
        modes.emit(f"[yellow]Query '{query}' failed: {message}[/yellow]", mode="warning")
    for item in plan.unmatched:
        modes.emit(f"[yellow]Unmatched {item.path}: {item.reason}[/yellow]", mode="warning")
    for note in plan.notes:
        modes.emit(f"[cyan]{note}[/cyan]")
    if report.results:
        modes.emit(execution_table(report, "Rename results"))
    if report.batch_id:
        modes.emit(f"History batch: {report.batch_id}")
    if report.history_error:
        modes.emit(
            f"[red]Renames were applied but not recorded: {report.history_error}[/red]",
            mode="warning",
        )
    if outcome.exec_codes:
        modes.emit(f"Post-rename command exit codes: {outcome.exec_codes}")

    metrics: dict[str, Any] = execution_counts(report)
    metrics["unmatched"] = len(plan.unmatched)
    metrics["conflicts"] = plan.conflicts
    modes.emit(_format_summary_line("Rename", target, metrics), mode="summary")


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(path_type=str))
@click.option("--last", is_flag=True, help="Revert the most recent batch.")
@click.option("--dry-run", is_flag=True, help="Preview the revert without applying it.")
@click.option("--filter", "filter_glob", type=str, help="Only revert files matching this glob.")
@click.option(
    "--action",
    type=click.Choice(ACTIONS),
    default="move",
    show_default=True,
    help="How moved files return to their original path.",
)
@_output_options
@click.pass_context
def revert(
    ctx: click.Context,
    paths: tuple[str, ...],
    last: bool,
    dry_run: bool,
    filter_glob: Optional[str],
    action: str,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Revert renamed PATHS, or the most recent batch with --last.

    Args:
        ctx: Click context used for parameter source inspection.
        paths: Current paths of renamed files, or folders they were renamed into.
        last: Revert the newest batch that still has pending entries.
        dry_run: Only report what would be reverted.
        filter_glob: Glob on the current file name or path.
        action: ``move`` undoes the rename; other actions restore a copy or link.
        json_output: Emit JSON instead of tables.
        summary_mode: Only emit summary lines.
        quiet: Suppress non-error output.
    """
    with cli_errors(json_output, "reverting renames"):
        config, modes = _prepare(ctx, json_output, quiet, summary_mode)
        if not paths and not last:
            raise click.ClickException("Provide PATHS to revert or use --last.")
        service = RenameService(config)
        report = service.revert(
            as_paths(paths) if paths else None,
            last=last,
            dry_run=dry_run,
            filter_glob=filter_glob,
            action=action,
        )
        dry_run = dry_run or action == "test"

        if modes.json_output:
            console.print_json(data={"dry_run": dry_run, **report_payload(report)})
        else:
            if dry_run:
                modes.emit("[yellow]Dry run: no files were changed.[/yellow]", mode="warning")
            modes.emit(execution_table(report, "Revert results"))
            if report.history_error:
                modes.emit(
                    f"[red]History was not updated: {report.history_error}[/red]", mode="warning"
                )
            modes.emit(
                _format_summary_line(
                    "Revert", "last batch" if last else ", ".join(paths), execution_counts(report)
                ),
                mode="summary",
            )
        if report.failed or report.history_error:
            ctx.exit(1)


@cli.command()
@click.option("--limit", type=int, help="Number of batches to show.")
@_output_options
@click.pass_context
def history(
    ctx: click.Context, limit: Optional[int], json_output: bool, summary_mode: bool, quiet: bool
) -> None:
    """Show recent rename batches, newest first."""
    with cli_errors(json_output, "reading rename history"):
        config, modes = _prepare(ctx, json_output, quiet, summary_mode)
        repository = HistoryRepository(Path(config.history.path))
        batches = repository.batches(limit if limit is not None else config.cli.history_limit)

        if modes.json_output:
            console.print_json(data=[batch.model_dump(mode="json") for batch in batches])
            return

        table = Table(title="Rename history")
        table.add_column("Batch")
        table.add_column("When")
        table.add_column("Action")
        table.add_column("Entries", justify="right")
        table.add_column("Pending", justify="right")
        for batch in batches:
            table.add_row(
                batch.id,
                batch.timestamp.isoformat(timespec="seconds"),
                batch.action,
                str(len(batch.entries)),
                str(len(batch.pending)),
            )
        modes.emit(table)
        modes.emit(
            _format_summary_line("History", repository.path, {"batches": len(batches)}),
            mode="summary",
        )


# --------------------------------------------------------------------------- #
# Companion commands                                                          #
# --------------------------------------------------------------------------- #


@cli.command()
@_path_argument
@click.option("--missing", is_flag=True, help="Only videos without a subtitle.")
@click.option("--lang", "language", type=str, help="Subtitle language tag.")
@click.option(
    "--naming",
    type=click.Choice(["original", "match_video", "match_video_add_language_tag"]),
    help="Subtitle naming scheme.",
)
@click.option("--format", "output_format", type=click.Choice(["srt", "vtt"]), help="Format.")
@click.option("--encoding", type=str, help="Output text encoding.")
@click.option("--strict/--non-strict", default=None, help="Only exact or episode pairing.")
@click.option("--output", type=click.Path(file_okay=False, path_type=str), help="Output folder.")
@_output_options
@click.pass_context
def subs(
    ctx: click.Context,
    paths: tuple[str, ...],
    missing: bool,
    language: Optional[str],
    naming: Optional[str],
    output_format: Optional[str],
    encoding: Optional[str],
    strict: Optional[bool],
    output: Optional[str],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Pair subtitle files with the videos in PATHS and write them."""
    with cli_errors(json_output, "processing subtitles"):
        config, modes = _prepare(ctx, json_output, quiet, summary_mode)
        service = RenameService(config)
        results = service.get_subtitles(
            as_paths(paths),
            missing_only=missing,
            language=language,
            naming=cast(Optional[SubtitleNaming], naming),
            output_format=cast(Optional[Literal["srt", "vtt"]], output_format),
            encoding=encoding,
            strict=strict,
            output=Path(output).expanduser() if output else None,
        )

        if modes.json_output:
            console.print_json(data=[result.model_dump(mode="json") for result in results])
            return

        table = Table(title="Subtitles")
        table.add_column("Status")
        table.add_column("Video", overflow="fold")
        table.add_column("Subtitle", overflow="fold")
        for result in results:
            table.add_row(
                result.status,
                str(result.video),
                str(result.destination or result.reason or ""),
            )
        modes.emit(table)
        counts: dict[str, int] = {}
        for result in results:
            counts[result.status] = counts.get(result.status, 0) + 1
        modes.emit(_format_summary_line("Subtitles", ", ".join(paths), counts), mode="summary")


@cli.command()
@_path_argument
@_output_options
@click.pass_context
def check(
    ctx: click.Context, paths: tuple[str, ...], json_output: bool, summary_mode: bool, quiet: bool
) -> None:
    """Verify checksum files, or media files against their checksums."""
    with cli_errors(json_output, "verifying checksums"):
        config, modes = _prepare(ctx, json_output, quiet, summary_mode)
        report = RenameService(config).check(as_paths(paths))

        if modes.json_output:
            console.print_json(
                data={
                    "ok": report.ok,
                    "results": [result.model_dump(mode="json") for result in report.results],
                }
            )
        else:
            table = Table(title="Verification")
            table.add_column("Status")
            table.add_column("File", overflow="fold")
            table.add_column("Expected")
            table.add_column("Actual")
            for result in report.results:
                style = "green" if result.status == "ok" else "red"
                table.add_row(
                    f"[{style}]{result.status}[/{style}]",
                    str(result.path),
                    result.expected or "",
                    result.actual or "",
                )
            modes.emit(table)
            failed = sum(1 for result in report.results if result.status != "ok")
            modes.emit(
                _format_summary_line(
                    "Check", ", ".join(paths), {"verified": len(report.results), "failed": failed}
                ),
                mode="summary",
            )
        if not report.ok:
            ctx.exit(1)


@cli.command("hash")
@_path_argument
@click.option(
    "--type", "hash_type", type=click.Choice(["sfv", "md5", "sha1", "sha256"]), help="Hash type."
)
@click.option("--output", type=click.Path(path_type=str), help="Checksum file or folder.")
@click.option("--encoding", type=str, help="Checksum file encoding.")
@_output_options
@click.pass_context
def hash_command(
    ctx: click.Context,
    paths: tuple[str, ...],
    hash_type: Optional[str],
    output: Optional[str],
    encoding: Optional[str],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Write a checksum file for the media files in PATHS."""
    with cli_errors(json_output, "computing checksums"):
        config, modes = _prepare(ctx, json_output, quiet, summary_mode)
        written = RenameService(config).compute(
            as_paths(paths),
            hash_type=hash_type,
            output=Path(output).expanduser() if output else None,
            encoding=encoding,
        )
        if modes.json_output:
            console.print_json(data={"output": str(written)})
            return
        modes.emit(f"Wrote {written}", mode="summary")


@cli.command("list")
@click.option("-q", "--query", required=True, type=str, help="Series or movie to list.")
@click.option("--db", "datasource", type=click.Choice(DATASOURCE_NAMES), help="Datasource.")
@click.option("--format", "template", type=str, default=DEFAULT_LIST_FORMAT, show_default=True)
@click.option("--filter", "filter_expression", type=str, help="Record filter, e.g. 's == 1'.")
@click.option(
    "--order",
    type=click.Choice([order.value for order in SortOrder]),
    default=SortOrder.AIRDATE.value,
    show_default=True,
)
@click.option("--lang", "locale", type=str, help="Datasource locale.")
@click.option(
    "--strict/--non-strict", default=True, show_default=True, help="Only list the best match."
)
@_output_options
@click.pass_context
def list_command(
    ctx: click.Context,
    query: str,
    datasource: Optional[str],
    template: str,
    filter_expression: Optional[str],
    order: str,
    locale: Optional[str],
    strict: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Print one formatted line per episode or movie returned for QUERY."""
    with cli_errors(json_output, "listing records"):
        config, modes = _prepare(ctx, json_output, quiet, summary_mode)
        lines = RenameService(config).fetch_episode_list(
            query,
            template=template,
            filter_expression=filter_expression,
            datasource=datasource,
            order=SortOrder(order),
            locale=locale,
            strict=strict,
        )
        if modes.json_output:
            console.print_json(data=lines)
            return
        for line in lines:
            modes.emit(line, mode="summary")


@cli.command()
@_path_argument
@click.option("--filter", "filter_glob", type=str, help="Glob on file name or path.")
@click.option("--format", "template", type=str, default=DEFAULT_INFO_FORMAT, show_default=True)
@_output_options
@click.pass_context
def info(
    ctx: click.Context,
    paths: tuple[str, ...],
    filter_glob: Optional[str],
    template: str,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Print one formatted line per file in PATHS."""
    with cli_errors(json_output, "reading file info"):
        config, modes = _prepare(ctx, json_output, quiet, summary_mode)
        lines = list(
            RenameService(config).get_media_info(
                as_paths(paths), filter_glob=filter_glob, template=template
            )
        )
        if modes.json_output:
            console.print_json(data=lines)
            return
        for line in lines:
            modes.emit(line, mode="summary")


@cli.command("exec")
@click.argument("template")
@_path_argument
@click.option("--filter", "filter_glob", type=str, help="Glob on file name or path.")
@_output_options
@click.pass_context
def exec_command(
    ctx: click.Context,
    template: str,
    paths: tuple[str, ...],
    filter_glob: Optional[str],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Run TEMPLATE for every file in PATHS (or once when it uses {files})."""
    with cli_errors(json_output, "running commands"):
        config, modes = _prepare(ctx, json_output, quiet, summary_mode)
        codes = []
        for code in RenameService(config).execute(
            as_paths(paths), template, filter_glob=filter_glob
        ):
            codes.append(code)
            modes.emit(f"exit code {code}")
        if modes.json_output:
            console.print_json(data={"exit_codes": codes})
        else:
            failed = sum(1 for code in codes if code != 0)
            modes.emit(
                _format_summary_line("Exec", template, {"runs": len(codes), "failed": failed}),
                mode="summary",
            )
        if any(codes):
            ctx.exit(1)


@cli.command()
@_path_argument
@click.option("--output", type=click.Path(file_okay=False, path_type=str), help="Output folder.")
@click.option("--conflict", type=click.Choice(CONFLICTS), help="Policy for existing files.")
@click.option("--filter", "member_filter", type=str, help="Glob selecting archive members.")
@click.option("--all", "force_all", is_flag=True, help="Extract everything if any member matches.")
@_output_options
@click.pass_context
def extract(
    ctx: click.Context,
    paths: tuple[str, ...],
    output: Optional[str],
    conflict: Optional[str],
    member_filter: Optional[str],
    force_all: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Extract the zip and tar archives in PATHS."""
    with cli_errors(json_output, "extracting archives"):
        config, modes = _prepare(ctx, json_output, quiet, summary_mode)
        results = RenameService(config).extract(
            as_paths(paths),
            output=Path(output).expanduser() if output else None,
            conflict=conflict,
            member_filter=member_filter,
            force_all=force_all,
        )
        if modes.json_output:
            console.print_json(data=[result.model_dump(mode="json") for result in results])
            return
        for result in results:
            modes.emit(f"[bold]{result.archive.name}[/bold] -> {result.output}")
            for path in result.extracted:
                modes.emit(f"  [green]+[/green] {path}")
            for name, reason in result.skipped:
                modes.emit(f"  [yellow]-[/yellow] {name}: {reason}")
        metrics = {
            "archives": len(results),
            "extracted": sum(len(result.extracted) for result in results),
            "skipped": sum(len(result.skipped) for result in results),
        }
        modes.emit(_format_summary_line("Extract", ", ".join(paths), metrics), mode="summary")


# --------------------------------------------------------------------------- #
# config                                                                      #
# --------------------------------------------------------------------------- #


@cli.group()
def config() -> None:
    """Manage renamebot configuration files and overrides."""


def _manager(ctx: click.Context) -> ConfigManager:
    state = ctx.find_object(CLIState) or CLIState()
    return ConfigManager(state.config_path)


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
@click.pass_context
def config_view(ctx: click.Context, no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Args:
        ctx: Click context carrying global options.
        no_env: If True, ignore environment-derived overrides.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = _manager(ctx)
    try:
        manager.ensure_exists()
        resolved = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(resolved.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        ctx: Click context carrying global options.
        key: Dotted path such as ``rename.conflict``.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing or validation fails.
    """
    import difflib

    manager = _manager(ctx)
    manager.ensure_exists()
    before = manager.read_text().splitlines()

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        manager.set_value(key, parsed_value)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    after = manager.read_text().splitlines()
    # The header timestamp always changes; compare the body only.
    before_body = [line for line in before if not line.startswith("# Last updated:")]
    after_body = [line for line in after if not line.startswith("# Last updated:")]
    diff = list(
        difflib.unified_diff(
            before_body,
            after_body,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    if not diff:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {key}.[/green]")


@config.command("edit")
@click.pass_context
def config_edit(ctx: click.Context) -> None:
    """Open the configuration file in an interactive editor session.

    Raises:
        click.ClickException: If edited content is invalid.
    """
    manager = _manager(ctx)
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")

    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return
    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc
    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=RenamebotConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()

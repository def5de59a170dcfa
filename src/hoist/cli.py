"""Command line interface for the Hoist project."""

from __future__ import annotations

import difflib
from pathlib import Path
from typing import Any

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from hoist.backup import BackupManager
from hoist.config import ConfigError, ConfigManager, HoistConfig, flatten_for_env
from hoist.errors import BackupError, PlanError, RootNotFoundError
from hoist.logs import configure_logging
from hoist.organization import (
    DeleteRange,
    DestinationMode,
    ExecutionReport,
    OperationMode,
    PreviewPlan,
)
from hoist.reporting import collect_folder_stats, render_tree, write_csv
from hoist.session import HoistSession

console = Console()

_MODE_CHOICE = click.Choice([mode.value for mode in OperationMode])
_DESTINATION_CHOICE = click.Choice([destination.value for destination in DestinationMode])
_DELETE_RANGE_CHOICE = click.Choice([delete_range.value for delete_range in DeleteRange])


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


def _error_code(exc: Exception) -> str:
    if isinstance(exc, ConfigError):
        return "config_error"
    if isinstance(exc, RootNotFoundError):
        return "not_found"
    if isinstance(exc, BackupError):
        return "backup_error"
    if isinstance(exc, PlanError):
        return "plan_error"
    if isinstance(exc, click.ClickException):
        return "cli_error"
    return "internal_error"


def _fail(exc: Exception, *, json_output: bool, action: str) -> None:
    """Route an exception raised by a command body to ``_handle_cli_error``."""
    code = _error_code(exc)
    if code == "internal_error":
        _handle_cli_error(
            f"Unexpected error while {action}: {exc}",
            code=code,
            json_output=json_output,
            details={"exception": type(exc).__name__},
            original=exc,
        )
    details = {"reason": exc.reason} if isinstance(exc, BackupError) else None
    _handle_cli_error(str(exc), code=code, json_output=json_output, details=details, original=exc)


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

    important_modes = {"summary", "warning", "error"}
    if summary_only and mode not in important_modes:
        return

    console.print(message)


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands."""

    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {root}: {parts}.[/green]"


def _load_config() -> HoistConfig:
    """Load configuration and attach the run log."""
    manager = ConfigManager()
    manager.ensure_exists()
    config = manager.load()
    configure_logging(config.logging)
    return config


def _output_modes(
    ctx: click.Context,
    config: HoistConfig,
    *,
    json_output: bool,
    quiet: bool,
    summary_mode: bool,
) -> tuple[bool, bool]:
    """Resolve quiet/summary flags against configured defaults.

    Returns:
        tuple[bool, bool]: Effective quiet and summary-only flags.

    Raises:
        click.ClickException: If the flags conflict.
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
        return False, False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _emit_plan(plan: PreviewPlan, *, quiet: bool, summary_only: bool) -> None:
    """Render a preview plan as tables and warning lines."""

    root = plan.root
    if plan.moves:
        table = Table(title="Planned moves")
        table.add_column("Source")
        table.add_column("Destination")
        table.add_column("Renamed")
        for move in plan.moves:
            table.add_row(
                move.source.relative_to(root).as_posix(),
                move.destination.relative_to(root).as_posix(),
                "yes" if move.renamed else "",
            )
        _emit_message(table, mode="detail", quiet=quiet, summary_only=summary_only)

    if plan.delete_targets:
        heading = (
            "[red]Folders to delete:[/red]"
            if plan.mode is OperationMode.DELETE_ONLY
            else "[yellow]Folders left empty by the moves:[/yellow]"
        )
        _emit_message(heading, mode="detail", quiet=quiet, summary_only=summary_only)
        for target in plan.delete_targets:
            _emit_message(
                f"  - {target.relative_to(root).as_posix()}",
                mode="detail",
                quiet=quiet,
                summary_only=summary_only,
            )

    if plan.warnings:
        _emit_message(
            "[yellow]Plan notes:[/yellow]", mode="warning", quiet=quiet, summary_only=summary_only
        )
        for message in plan.messages():
            _emit_message(f"  - {message}", mode="warning", quiet=quiet, summary_only=summary_only)


def _emit_failures(report: ExecutionReport, *, quiet: bool, summary_only: bool) -> None:
    if report.ok:
        return
    _emit_message(
        "[red]Errors encountered:[/red]", mode="error", quiet=quiet, summary_only=summary_only
    )
    for failure in report.failures:
        _emit_message(
            f"  - {failure.operation} {failure.path}: [{failure.code}] {failure.message}",
            mode="error",
            quiet=quiet,
            summary_only=summary_only,
        )


def _plan_options(func):
    """Attach the depth and plan-shaping options shared by `plan` and `run`."""
    options = [
        click.option(
            "-d",
            "--depth",
            "depths",
            multiple=True,
            required=True,
            type=click.IntRange(min=1),
            help="Depth whose folders are lifted (repeatable).",
        ),
        click.option("--mode", type=_MODE_CHOICE, help="Operation mode."),
        click.option("--destination", type=_DESTINATION_CHOICE, help="Where lifted folders land."),
        click.option(
            "--delete-range",
            type=_DELETE_RANGE_CHOICE,
            help="Empty-folder sweep scope used by the custom mode.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="hoist")
def cli() -> None:
    """Hoist lifts deeply nested folders up to the root and prunes what is left empty."""


@cli.command()
@click.argument("path", type=click.Path(file_okay=False, path_type=str))
@click.option("--json", "json_output", is_flag=True, help="Emit folder counts as JSON.")
def scan(path: str, json_output: bool) -> None:
    """Show how many folders sit at each depth below PATH."""

    try:
        config = _load_config()
        session = HoistSession(Path(path), config=config)
        index = session.scan()

        if json_output:
            console.print_json(
                data={
                    "root": str(index.root),
                    "total": index.total,
                    "depths": {str(depth): index.count(depth) for depth in index.depths()},
                }
            )
            return

        table = Table(title=f"Folders under {index.root}")
        table.add_column("Depth", justify="right")
        table.add_column("Folders", justify="right")
        table.add_column("Examples")
        for depth in index.depths():
            examples = ", ".join(record.name for record in index.folders_at(depth)[:3])
            table.add_row(str(depth), str(index.count(depth)), examples)
        console.print(table)
        console.print(_format_summary_line("Scan", index.root, {"folders": index.total}))
    except Exception as exc:
        _fail(exc, json_output=json_output, action="scanning folders")


@cli.command()
@click.argument("path", type=click.Path(file_okay=False, path_type=str))
@_plan_options
@click.option("--json", "json_output", is_flag=True, help="Emit the plan as JSON.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def plan(
    ctx: click.Context,
    path: str,
    depths: tuple[int, ...],
    mode: str | None,
    destination: str | None,
    delete_range: str | None,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Preview the moves and deletions for the selected depths under PATH."""

    try:
        config = _load_config()
        quiet_enabled, summary_only = _output_modes(
            ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        session = HoistSession(Path(path), config=config)
        preview = session.build_plan(
            depths, mode=mode, destination=destination, delete_range=delete_range
        )

        if json_output:
            console.print_json(data=preview.model_dump(mode="json"))
            return

        _emit_plan(preview, quiet=quiet_enabled, summary_only=summary_only)
        _emit_message(
            _format_summary_line(
                "Plan",
                preview.root,
                {
                    "mode": preview.mode.value,
                    "moves": len(preview.moves),
                    "renamed": preview.renamed_count,
                    "deletes": len(preview.delete_targets),
                    "warnings": len(preview.warnings),
                },
            ),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except Exception as exc:
        _fail(exc, json_output=json_output, action="planning")


@cli.command()
@click.argument("path", type=click.Path(file_okay=False, path_type=str))
@_plan_options
@click.option(
    "--backup/--no-backup",
    "take_backup",
    default=None,
    help="Snapshot PATH before changing it (defaults to backup.enabled).",
)
@click.option("--dry-run", is_flag=True, help="Preview changes without modifying files.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the run.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def run(
    ctx: click.Context,
    path: str,
    depths: tuple[int, ...],
    mode: str | None,
    destination: str | None,
    delete_range: str | None,
    take_backup: bool | None,
    dry_run: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Lift folders at the selected depths under PATH and prune empty folders."""

    try:
        config = _load_config()
        quiet_enabled, summary_only = _output_modes(
            ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        session = HoistSession(Path(path), config=config)
        preview = session.build_plan(
            depths, mode=mode, destination=destination, delete_range=delete_range
        )
        payload: dict[str, Any] = {
            "context": {"root": str(session.root), "dry_run": dry_run},
            "plan": preview.model_dump(mode="json"),
        }

        if dry_run:
            if json_output:
                console.print_json(data=payload)
                return
            _emit_message(
                "[yellow]Dry run: no files were changed.[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            _emit_plan(preview, quiet=quiet_enabled, summary_only=summary_only)
            return

        report = session.run(preview, backup=take_backup)
        payload["backup"] = str(session.last_backup) if session.last_backup else None
        payload["counts"] = report.counts()
        payload["report"] = report.model_dump(mode="json")

        if json_output:
            console.print_json(data=payload)
            return

        if session.last_backup:
            _emit_message(
                f"[cyan]Backup written to {session.last_backup}.[/cyan]",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        _emit_plan(preview, quiet=quiet_enabled, summary_only=summary_only)
        _emit_failures(report, quiet=quiet_enabled, summary_only=summary_only)
        metrics: dict[str, Any] = dict(report.counts())
        metrics["delete_failed"] = report.delete_failed
        _emit_message(
            _format_summary_line("Run", session.root, metrics),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except Exception as exc:
        _fail(exc, json_output=json_output, action="reorganizing folders")


@cli.command()
@click.argument("path", type=click.Path(file_okay=False, path_type=str))
def backup(path: str) -> None:
    """Copy PATH to a timestamped sibling backup directory."""

    try:
        _load_config()
        target = BackupManager().backup(Path(path))
        console.print(f"[green]Backup written to {target}.[/green]")
    except Exception as exc:
        _fail(exc, json_output=False, action="backing up")


@cli.command()
@click.argument("path", type=click.Path(file_okay=False, path_type=str))
@click.option(
    "--from",
    "source",
    type=click.Path(file_okay=False, path_type=str),
    help="Backup directory to restore (defaults to the newest one).",
)
@click.option("--dry-run", is_flag=True, help="Show which backup would be restored.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the restore.")
def undo(path: str, source: str | None, dry_run: bool, json_output: bool) -> None:
    """Restore PATH from a backup, replacing its current contents."""

    try:
        config = _load_config()
        session = HoistSession(Path(path), config=config)
        chosen = Path(source).expanduser() if source else session.latest_backup()
        if chosen is None:
            raise click.ClickException(f"No backups found for {session.root}.")

        payload: dict[str, Any] = {
            "context": {"root": str(session.root), "dry_run": dry_run},
            "backup": str(chosen),
        }
        if dry_run:
            if json_output:
                console.print_json(data=payload)
            else:
                console.print(
                    f"[yellow]Dry run: would restore {session.root} from {chosen}.[/yellow]"
                )
            return

        session.undo(chosen)
        payload["restored"] = True
        if json_output:
            console.print_json(data=payload)
        else:
            console.print(f"[green]Restored {session.root} from {chosen}.[/green]")
    except Exception as exc:
        _fail(exc, json_output=json_output, action="restoring")


@cli.command()
@click.argument("path", type=click.Path(file_okay=False, path_type=str))
@click.option(
    "--csv",
    "csv_path",
    type=click.Path(dir_okay=False, path_type=str),
    help="Write a per-folder table to this CSV file instead of printing a tree.",
)
@click.option("--files", "include_files", is_flag=True, help="List files in the tree output.")
def report(path: str, csv_path: str | None, include_files: bool) -> None:
    """Print an indented tree of PATH or export per-folder statistics."""

    try:
        config = _load_config()
        session = HoistSession(Path(path), config=config)
        index = session.scan()
        if csv_path:
            written = write_csv(collect_folder_stats(index), Path(csv_path))
            console.print(f"[green]Wrote {index.total} folder row(s) to {written}.[/green]")
            return
        click.echo(render_tree(index.root, include_files=include_files), nl=False)
    except Exception as exc:
        _fail(exc, json_output=False, action="building the report")


@cli.group()
def config() -> None:
    """Manage Hoist configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
@click.option(
    "--env-keys",
    is_flag=True,
    help="Show the settings as HOIST__SECTION__KEY environment assignments.",
)
def config_view(no_env: bool, env_keys: bool) -> None:
    """Display the effective configuration after applying precedence rules."""
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if env_keys:
        for key, value in flatten_for_env(loaded).items():
            click.echo(f"{key}={value}")
        return

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY."""
    manager = ConfigManager()
    manager.ensure_exists()
    before = manager.read_text().splitlines()

    try:
        manager.set_value(key, value)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    after = manager.read_text().splitlines()
    # The "Last updated" stamp always changes; only report real edits.
    diff = [
        line
        for line in difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    ]
    if not any(
        line.startswith(("+", "-"))
        and not line.startswith(("+++", "---"))
        and "Last updated" not in line
        for line in diff
    ):
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {key}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()

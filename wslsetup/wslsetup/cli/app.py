"""Main CLI application."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from typing_extensions import Annotated

from .._utils import is_root
from ..apply import Applier, BackupManager, log_summary, run_artifacts
from ..core.errors import RunLogUnavailable
from ..plan import build_plan
from ..runlog import RunLog
from ..writers import ScopedWriter, default_elevated_writer
from .parsers import parse_settings, parse_steps

logger = logging.getLogger(__name__)

PROC_VERSION = Path("/proc/version")

app = typer.Typer(
    name="wslsetup",
    help="Idempotent, backup-safe configuration of a WSL environment.",
    no_args_is_help=True,
)

ConfigOption = Annotated[
    str,
    typer.Option(
        "--config",
        "-c",
        help="YAML settings file (values override WSLSETUP_* variables).",
        metavar="FILE",
    ),
]


@app.command()
def apply(
    steps: Annotated[
        list[str],
        typer.Option(
            "--step",
            help="Step to run: mount or dotfiles. Repeatable (default: all).",
            metavar="STEP",
        ),
    ] = [],
    config_file: ConfigOption = "",
    no_backups: Annotated[
        bool,
        typer.Option("--no-backups", help="Overwrite without timestamped backups."),
    ] = False,
    fail_fast: Annotated[
        bool,
        typer.Option("--fail-fast", help="Stop at the first failed artifact."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging."),
    ] = False,
) -> None:
    """Apply mount configuration and dotfiles."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    selected = parse_steps(steps)
    settings = parse_settings(
        config_file, enable_backups=False if no_backups else None
    )
    plan = build_plan(settings, selected)

    try:
        run_log = RunLog.open(settings.log_file)
    except RunLogUnavailable as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=2) from exc

    with run_log:
        run_log.info(f"Target user: {settings.target_user}")
        run_log.info(f"Target home: {settings.home}")
        run_log.info(f"Log file: {settings.log_file}")
        run_log.info(f"Steps: {', '.join(selected)} ({len(plan)} artifact(s))")

        writer = ScopedWriter(elevated=default_elevated_writer())
        backups = BackupManager(settings.backup_policy, writer)
        applier = Applier(writer, backups, run_log)

        summary = run_artifacts(plan, applier, fail_fast=fail_fast)
        log_summary(summary, run_log)
        if "mount" in selected:
            run_log.info("Run this command from Windows PowerShell: wsl --shutdown")

    logger.debug(f"Completed: {len(summary.outcomes)} artifact(s) processed")
    if not summary.ok:
        raise typer.Exit(code=1)


@app.command("show-config")
def show_config(config_file: ConfigOption = "") -> None:
    """Display the effective configuration values."""
    settings = parse_settings(config_file)
    rows = [
        ("Target User", settings.target_user),
        ("Target Home", settings.home),
        ("VHDX Path", settings.vhdx_path),
        ("VHDX Mount Name", settings.vhdx_mount_name),
        ("Custom Mount Point", settings.custom_mount_point),
        ("Mount Script Path", settings.mount_script_path),
        ("Enable Backups", settings.enable_backups),
        ("Log File", settings.log_file),
        ("Files Dir", settings.files_dir),
        ("Dotfiles Dir", settings.dotfiles_dir),
    ]
    typer.echo("Current Configuration:")
    for label, value in rows:
        typer.echo(f"  {label + ':':<22}{value}")


@app.command()
def check(config_file: ConfigOption = "") -> None:
    """Validate prerequisites before running apply."""
    settings = parse_settings(config_file)
    problems: list[str] = []

    try:
        on_wsl = "microsoft" in PROC_VERSION.read_text().lower()
    except OSError:
        on_wsl = False
    if not on_wsl:
        problems.append("This must run on WSL (Windows Subsystem for Linux)")

    if is_root():
        problems.append("Do not run as root; elevated writes use sudo")

    if not settings.files_dir.is_dir():
        problems.append(f"Files directory not found: {settings.files_dir}")

    if not settings.dotfiles_dir.is_dir():
        typer.echo(f"[WARN] Dotfiles directory not found: {settings.dotfiles_dir}")

    for problem in problems:
        typer.echo(f"[ERROR] {problem}", err=True)
    if problems:
        raise typer.Exit(code=1)
    typer.echo("[SUCCESS] All prerequisites met")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()

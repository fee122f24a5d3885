"""CLI commands for macsetup - an interactive Mac development setup."""

import json
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table
from typing_extensions import Annotated

from .catalog import CATALOG
from .core import (
    create_backup,
    get_config_value,
    get_setup_paths,
    list_backups,
    load_config,
    read_latest_backup,
    reset_config,
    resolve_dotfiles_repo,
    restore_backup,
    set_config_value,
)
from .exceptions import BackupError, ConfigurationError, PrerequisiteError
from .log import SetupLogger
from .packages import Homebrew
from .prerequisites import default_prerequisites, setup_prerequisites
from .ui import GumUI
from .workflow import (
    SetupContext,
    install_all,
    run_main_menu,
    show_status,
    uninstall_all,
)

# Constants
DEFAULT_VERSION = "0.1.0"

# Global app and console instances
app = typer.Typer(help="macsetup - interactive Mac development environment setup")
console = Console()


# ============================================================================
# CONTEXT
# ============================================================================


def build_context(dotfiles_repo: Optional[str] = None) -> SetupContext:
    """Resolve paths, config and collaborators for one run."""
    paths = get_setup_paths()
    config = load_config(paths["config_file"])
    return SetupContext(
        paths=paths,
        ui=GumUI(),
        log=SetupLogger(paths["log_file"]),
        brew=Homebrew(),
        dotfiles_repo=resolve_dotfiles_repo(dotfiles_repo, config),
        preselect_all=bool(config.get("preselect_all", True)),
    )


def ensure_prerequisites(ctx: SetupContext) -> None:
    try:
        setup_prerequisites(default_prerequisites(ctx.brew, ctx.paths["home"]))
    except PrerequisiteError:
        raise typer.Exit(code=1)


def _context_from(typer_ctx: typer.Context) -> SetupContext:
    options = typer_ctx.obj or {}
    return build_context(options.get("dotfiles_repo"))


def _cancelled() -> None:
    typer.secho("Operation cancelled by user", fg=typer.colors.YELLOW, err=True)
    raise typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main(
    typer_ctx: typer.Context,
    dotfiles_repo: Annotated[
        Optional[str],
        typer.Option(
            "--dotfiles-repo",
            help="Dotfiles repository URL (overrides $DOTFILES_REPO and config).",
        ),
    ] = None,
) -> None:
    """
    Set up a Mac development environment. Without a command, checks
    prerequisites and opens the main menu.
    """
    typer_ctx.obj = {"dotfiles_repo": dotfiles_repo}
    if typer_ctx.invoked_subcommand is not None:
        return

    ctx = build_context(dotfiles_repo)
    ensure_prerequisites(ctx)
    try:
        run_main_menu(ctx)
    except KeyboardInterrupt:
        _cancelled()


# ============================================================================
# FLOW COMMANDS
# ============================================================================


@app.command()
def install(typer_ctx: typer.Context) -> None:
    """Back up your config, then walk through every install step."""
    ctx = _context_from(typer_ctx)
    ensure_prerequisites(ctx)
    try:
        install_all(ctx)
    except KeyboardInterrupt:
        _cancelled()


@app.command()
def uninstall(typer_ctx: typer.Context) -> None:
    """Restore the latest backup and remove installed components."""
    ctx = _context_from(typer_ctx)
    ensure_prerequisites(ctx)
    try:
        uninstall_all(ctx)
    except KeyboardInterrupt:
        _cancelled()


@app.command()
def status(typer_ctx: typer.Context) -> None:
    """Show what is installed and the latest backup."""
    show_status(_context_from(typer_ctx))


@app.command()
def catalog() -> None:
    """List the applications and tools the setup can install."""
    table = Table(title="Available applications and tools")
    table.add_column("Name", style="cyan")
    table.add_column("Kind")
    table.add_column("Description")
    for entry in CATALOG:
        table.add_row(entry.name, entry.kind.value, entry.description)
    console.print(table)


@app.command()
def version() -> None:
    """Show macsetup version."""
    try:
        from importlib.metadata import version as get_version

        version_str = get_version("macsetup")
    except Exception:
        version_str = DEFAULT_VERSION

    typer.secho(f"macsetup version {version_str}", fg=typer.colors.GREEN)


# ============================================================================
# BACKUP COMMANDS
# ============================================================================

backup_app = typer.Typer(help="Manage configuration backups")
app.add_typer(backup_app, name="backup")


@backup_app.command("create")
def backup_create() -> None:
    """Back up .zshrc, .gitconfig and .config now."""
    paths = get_setup_paths()
    log = SetupLogger(paths["log_file"])
    try:
        record = create_backup(paths, log)
    except BackupError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if not record.copied:
        typer.secho("Nothing to back up.", fg=typer.colors.YELLOW)


@backup_app.command("list")
def backup_list() -> None:
    """List backups, newest first."""
    paths = get_setup_paths()
    backups = list_backups(paths)
    if not backups:
        typer.secho("No backups found.", fg=typer.colors.YELLOW)
        return

    latest = read_latest_backup(paths)
    typer.secho(f"Found {len(backups)} backup(s):", fg=typer.colors.WHITE, bold=True)
    for backup_path in backups:
        is_latest = latest is not None and backup_path.name == latest.name
        marker = " (latest)" if is_latest else ""
        typer.secho(f"  {backup_path.name}{marker}", fg=typer.colors.CYAN)


@backup_app.command("restore")
def backup_restore(
    confirm: Annotated[
        bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")
    ] = False,
) -> None:
    """Copy the latest backup back over your home directory."""
    paths = get_setup_paths()
    latest = read_latest_backup(paths)
    if latest is None or not latest.is_dir():
        typer.secho("No backups found.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if not confirm:
        typer.secho(
            f"This will restore files from {latest.name}.", fg=typer.colors.CYAN
        )
        typer.secho(
            "WARNING: Existing files in your home directory will be overwritten",
            fg=typer.colors.YELLOW,
            bold=True,
        )
        if not typer.confirm("Do you want to continue?"):
            typer.secho("Restore cancelled.", fg=typer.colors.YELLOW)
            return

    log = SetupLogger(paths["log_file"])
    record = restore_backup(latest, paths["home"], log)
    for name in record.copied:
        log.success(f"Restored {name}")
    if record.failed:
        log.error(f"Could not restore: {', '.join(record.failed)}")
        raise typer.Exit(code=1)


# ============================================================================
# CONFIGURATION COMMANDS
# ============================================================================

config_app = typer.Typer(help="Manage macsetup configuration")
app.add_typer(config_app, name="config")


@config_app.command("show")
def config_show(
    key: Annotated[
        Optional[str], typer.Argument(help="Configuration key to show")
    ] = None,
) -> None:
    """Show the configuration, or a single value."""
    config_file = get_setup_paths()["config_file"]
    if key is None:
        typer.echo(json.dumps(load_config(config_file), indent=2))
        return

    try:
        value = get_config_value(key, config_file)
    except ConfigurationError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(value) if not isinstance(value, str) else value)


@config_app.command("set")
def config_set(
    key: Annotated[str, typer.Argument(help="Configuration key")],
    value: Annotated[str, typer.Argument(help="New value")],
) -> None:
    """Set a configuration value (true/false and JSON values are parsed)."""
    config_file = get_setup_paths()["config_file"]
    try:
        stored = set_config_value(key, value, config_file)
    except ConfigurationError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.secho(f"✓ Set {key} = {stored}", fg=typer.colors.GREEN)


@config_app.command("reset")
def config_reset(
    confirm: Annotated[
        bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")
    ] = False,
) -> None:
    """Reset configuration to defaults."""
    if not confirm and not typer.confirm("Reset configuration to defaults?"):
        typer.secho("Reset cancelled.", fg=typer.colors.YELLOW)
        return
    reset_config(get_setup_paths()["config_file"])
    typer.secho("✓ Configuration reset to defaults", fg=typer.colors.GREEN)


def run() -> None:
    app()


if __name__ == "__main__":
    run()

"""Install, uninstall and status flows."""

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import typer
from rich.table import Table

from .catalog import CATALOG, SOURCE_CLONE_ENTRY
from .core import (
    CommandResult,
    create_backup,
    fetch_script,
    read_latest_backup,
    restore_backup,
    run_command,
)
from .dotfiles import find_shell_config, remove_alias, setup_dotfiles
from .exceptions import (
    BackupError,
    ComponentStatusDict,
    SetupError,
    StatusReportDict,
)
from .log import SetupLogger
from .menu import select_packages
from .packages import Homebrew, install_selection, run_with_spinner
from .ui import DANGER_BANNER_COLOR, Prompter, console

OHMYZSH_INSTALL_URL = (
    "https://raw.githubusercontent.com/ohmyzsh/ohmyzsh/master/tools/install.sh"
)

MENU_INSTALL = "Install Development Environment"
MENU_UNINSTALL = "Uninstall Everything"
MENU_STATUS = "Show Status"
MENU_EXIT = "Exit"
MAIN_MENU = (MENU_INSTALL, MENU_UNINSTALL, MENU_STATUS, MENU_EXIT)


@dataclass
class SetupContext:
    """Everything a flow needs, resolved once at startup."""

    paths: Dict[str, Path]
    ui: Prompter
    log: SetupLogger
    brew: Homebrew = field(default_factory=Homebrew)
    dotfiles_repo: Optional[str] = None
    preselect_all: bool = True


# ============================================================================
# INSTALL STEPS
# ============================================================================


def install_homebrew(ctx: SetupContext) -> bool:
    if ctx.brew.is_present():
        ctx.log.success("Homebrew already installed, skipping")
        return True

    # attached to the terminal: the installer prompts for sudo
    ctx.log.info("Installing Homebrew...")
    result = ctx.brew.bootstrap(ctx.paths["home"])
    if result.ok:
        ctx.log.success("Homebrew installed successfully")
    else:
        ctx.log.error("Failed to install Homebrew")
    return result.ok


def _install_ohmyzsh_script() -> CommandResult:
    script = fetch_script(OHMYZSH_INSTALL_URL)
    if not script.ok:
        return script
    return run_command(["sh", "-c", script.output, "sh", "--unattended"])


def install_ohmyzsh(ctx: SetupContext) -> bool:
    if ctx.paths["ohmyzsh_dir"].is_dir():
        ctx.log.success("Oh My Zsh already installed, skipping")
        return True

    result = run_with_spinner(
        "Installing Oh My Zsh",
        _install_ohmyzsh_script,
        "Oh My Zsh installed successfully",
        "Failed to install Oh My Zsh",
        ctx.log,
    )
    return result.ok


def setup_dev_directory(ctx: SetupContext) -> bool:
    dev_dir = ctx.paths["dev_dir"]
    if dev_dir.is_dir():
        ctx.log.success("Development directory already exists, skipping")
        return True

    ctx.log.info("Setting up Development directory")
    dev_dir.mkdir(parents=True, exist_ok=True)
    ctx.log.success("Development directory created")
    return True


def install_apps(ctx: SetupContext) -> bool:
    selection = select_packages(ctx.ui, ctx.log, CATALOG, ctx.preselect_all)
    if not selection:
        return True

    typer.echo()
    summary = install_selection(selection, ctx.brew, ctx.log, ctx.paths["dev_dir"])
    typer.echo()
    return not summary.failed


def configure_dotfiles(ctx: SetupContext) -> bool:
    return setup_dotfiles(ctx.ui, ctx.log, ctx.paths, ctx.dotfiles_repo)


INSTALL_STEPS: Tuple[Tuple[str, Callable[[SetupContext], bool]], ...] = (
    ("Install Homebrew", install_homebrew),
    ("Install Oh My Zsh", install_ohmyzsh),
    ("Setup Development Directory", setup_dev_directory),
    ("Install Applications & Tools", install_apps),
    ("Setup Dotfiles", configure_dotfiles),
)


def install_all(ctx: SetupContext) -> Dict[str, Optional[bool]]:
    """
    Back up, then offer each install step in order.

    Steps are independent: a declined or failed step is logged and the next
    one is still offered. Returns step description -> outcome (None when the
    step was declined).
    """
    ctx.ui.panel("Mac Development Setup", "Starting installation...")

    try:
        create_backup(ctx.paths, ctx.log)
    except BackupError as e:
        ctx.log.error(str(e))

    results: Dict[str, Optional[bool]] = {}
    for description, step in INSTALL_STEPS:
        typer.echo()
        if not ctx.ui.confirm(f"Proceed with: {description}?"):
            ctx.log.skip(description)
            results[description] = None
            continue
        try:
            results[description] = step(ctx)
        except (SetupError, OSError) as e:
            ctx.log.error(f"{description} failed: {e}")
            results[description] = False

    ctx.ui.panel(
        "Installation Complete!",
        "Please restart your terminal or run: source ~/.zshrc",
    )
    return results


# ============================================================================
# UNINSTALL
# ============================================================================


def _remove_tree(path: Path) -> None:
    shutil.rmtree(path, ignore_errors=True)


def uninstall_all(ctx: SetupContext) -> bool:
    """
    Offer to undo the install, one confirmation per action.

    Returns False when the user backs out at the first question (nothing is
    touched in that case).
    """
    ctx.ui.panel(
        "Uninstall Development Setup",
        "This will remove installed components",
        color=DANGER_BANNER_COLOR,
    )

    if not ctx.ui.confirm("Are you sure you want to uninstall everything?"):
        ctx.log.log("Uninstall cancelled")
        return False

    ctx.log.info("Starting uninstall process...")
    home = ctx.paths["home"]

    latest = read_latest_backup(ctx.paths)
    if latest is not None and latest.is_dir():
        if ctx.ui.confirm("Restore files from backup?"):
            ctx.log.log(f"Restoring from backup: {latest}")
            record = restore_backup(latest, home, ctx.log)
            if record.failed:
                ctx.log.warning(
                    f"Some files could not be restored: {', '.join(record.failed)}"
                )
            ctx.log.success("Files restored from backup")

    if ctx.ui.confirm("Remove Homebrew and all installed packages?"):
        ctx.log.log("Removing Homebrew...")
        if not ctx.brew.remove().ok:
            ctx.log.warning("Homebrew uninstaller did not finish cleanly")

    if ctx.ui.confirm("Remove Oh My Zsh?"):
        ctx.log.log("Removing Oh My Zsh...")
        _remove_tree(ctx.paths["ohmyzsh_dir"])

    if ctx.ui.confirm("Remove Development directory?"):
        ctx.log.log("Removing Development directory...")
        _remove_tree(ctx.paths["dev_dir"])

    if ctx.ui.confirm("Remove dotfiles repository?"):
        ctx.log.log("Removing dotfiles...")
        _remove_tree(ctx.paths["dotfiles_dir"])
        shell_config = find_shell_config(home)
        if shell_config is not None and remove_alias(shell_config):
            ctx.log.log(f"Removed config alias from {shell_config}")

    ctx.log.success("Uninstall completed")
    return True


# ============================================================================
# STATUS
# ============================================================================


def get_status(paths: Dict[str, Path], brew: Homebrew) -> StatusReportDict:
    """Read-only snapshot of what the install flow manages."""
    fzf_git_path = SOURCE_CLONE_ENTRY.clone_path(paths["dev_dir"])
    rows: List[Tuple[str, bool, str, str]] = [
        ("Homebrew", brew.is_present(), "Installed", "Not installed"),
        ("Oh My Zsh", paths["ohmyzsh_dir"].is_dir(), "Installed", "Not installed"),
        ("Development Directory", paths["dev_dir"].is_dir(), "Exists", "Not found"),
        ("Dotfiles", paths["dotfiles_dir"].is_dir(), "Setup", "Not setup"),
        (
            "fzf-git.sh",
            fzf_git_path is not None and fzf_git_path.is_dir(),
            "Cloned",
            "Not found",
        ),
    ]
    components: List[ComponentStatusDict] = [
        {"name": name, "present": present, "label": yes if present else no}
        for name, present, yes, no in rows
    ]

    latest = read_latest_backup(paths)
    return {
        "homebrew": components[0]["present"],
        "ohmyzsh": components[1]["present"],
        "dev_directory": components[2]["present"],
        "dotfiles": components[3]["present"],
        "fzf_git": components[4]["present"],
        "latest_backup": latest.name if latest is not None else None,
        "components": components,
    }


def show_status(ctx: SetupContext) -> StatusReportDict:
    ctx.ui.panel("Development Environment Status")
    report = get_status(ctx.paths, ctx.brew)

    table = Table(show_header=False, box=None)
    table.add_column("Component", style="bold")
    table.add_column("Status")
    for component in report["components"]:
        if component["present"]:
            status = f"[green]✓[/green] {component['label']}"
        else:
            status = f"[red]✗[/red] {component['label']}"
        table.add_row(f"{component['name']}:", status)
    console.print(table)
    console.print()

    if report["latest_backup"]:
        console.print(f"Latest backup: {report['latest_backup']}")
    else:
        console.print("No backups found")
    return report


# ============================================================================
# MAIN MENU
# ============================================================================


def run_main_menu(ctx: SetupContext) -> Optional[str]:
    """Ask once what to do and run that flow."""
    choice = ctx.ui.choose(list(MAIN_MENU))
    if choice == MENU_INSTALL:
        install_all(ctx)
    elif choice == MENU_UNINSTALL:
        uninstall_all(ctx)
    elif choice == MENU_STATUS:
        show_status(ctx)
    else:
        ctx.log.log("Goodbye!")
    return choice

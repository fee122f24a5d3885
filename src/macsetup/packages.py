"""Homebrew wrapper and the idempotent package installer built on it."""

import os
import platform
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Sequence

import typer
from git import GitCommandError, Repo

from .catalog import CatalogEntry, InstallKind, SourceClone
from .core import CommandResult, fetch_script, run_command
from .log import SetupLogger
from .ui import spinner

HOMEBREW_INSTALL_URL = (
    "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
)
HOMEBREW_UNINSTALL_URL = (
    "https://raw.githubusercontent.com/Homebrew/install/HEAD/uninstall.sh"
)
APPLE_SILICON_BREW_BIN = "/opt/homebrew/bin"
BREW_SHELLENV_LINE = 'eval "$(/opt/homebrew/bin/brew shellenv)"'

OUTPUT_TAIL_LINES = 20


# ============================================================================
# PACKAGE MANAGER
# ============================================================================


class Homebrew:
    """Thin wrapper over the ``brew`` executable."""

    def __init__(self, executable: str = "brew") -> None:
        self.executable = executable

    def is_present(self) -> bool:
        return shutil.which(self.executable) is not None

    def is_installed(self, name: str, kind: InstallKind) -> bool:
        args = [self.executable, "list"]
        if kind is InstallKind.CASK:
            args.append("--cask")
        args.append(name)
        return run_command(args).ok

    def install(self, tokens: Sequence[str], kind: InstallKind) -> CommandResult:
        args = [self.executable, "install"]
        if kind is InstallKind.CASK:
            args.append("--cask")
        return run_command(args + list(tokens))

    def bootstrap(self, home: Path) -> CommandResult:
        """Run the official Homebrew installer attached to the terminal."""
        script = fetch_script(HOMEBREW_INSTALL_URL)
        if not script.ok:
            return script
        result = run_command(["/bin/bash", "-c", script.output], capture=False)
        if result.ok:
            add_brew_to_path(home)
        return result

    def remove(self) -> CommandResult:
        """Run the official Homebrew uninstaller attached to the terminal."""
        script = fetch_script(HOMEBREW_UNINSTALL_URL)
        if not script.ok:
            return script
        return run_command(["/bin/bash", "-c", script.output], capture=False)


def add_brew_to_path(home: Path) -> None:
    """
    On Apple Silicon, Homebrew lives outside the default PATH: persist the
    shellenv line in ~/.zprofile and expose brew to this process.
    """
    if platform.machine() != "arm64":
        return

    zprofile = home / ".zprofile"
    existing = zprofile.read_text() if zprofile.exists() else ""
    if BREW_SHELLENV_LINE not in existing:
        with open(zprofile, "a") as f:
            if existing and not existing.endswith("\n"):
                f.write("\n")
            f.write(BREW_SHELLENV_LINE + "\n")

    path_entries = os.environ.get("PATH", "").split(os.pathsep)
    if APPLE_SILICON_BREW_BIN not in path_entries:
        os.environ["PATH"] = os.pathsep.join([APPLE_SILICON_BREW_BIN, *path_entries])


# ============================================================================
# INSTALLER
# ============================================================================


@dataclass
class InstallSummary:
    """What happened to each entry of one install pass."""

    skipped: List[str] = field(default_factory=list)
    installed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def run_with_spinner(
    title: str,
    action: Callable[[], CommandResult],
    success_msg: str,
    error_msg: str,
    log: SetupLogger,
) -> CommandResult:
    """Run ``action()`` under a spinner and log the outcome."""
    with spinner(title):
        result = action()
    if result.ok:
        log.success(success_msg)
    else:
        log.error(error_msg)
        if result.output:
            tail = result.output.rstrip().splitlines()[-OUTPUT_TAIL_LINES:]
            typer.echo("\n".join(tail), err=True)
    return result


def is_installed(entry: CatalogEntry, brew: Homebrew, dev_dir: Path) -> bool:
    """Query-only presence check for one catalog entry."""
    if entry.kind is InstallKind.SPECIAL:
        clone_path = entry.clone_path(dev_dir)
        return clone_path is not None and clone_path.is_dir()
    return brew.is_installed(entry.query_name, entry.kind)


def clone_source(entry: CatalogEntry, dev_dir: Path) -> CommandResult:
    """Clone a source-clone entry into the work directory."""
    if not isinstance(entry.source, SourceClone):
        raise ValueError(f"{entry.name} is not a source clone")

    dest = dev_dir / entry.source.directory
    args = ["git", "clone", entry.source.url, str(dest)]
    try:
        dev_dir.mkdir(parents=True, exist_ok=True)
        Repo.clone_from(entry.source.url, str(dest))
    except GitCommandError as e:
        status = e.status if isinstance(e.status, int) else 1
        return CommandResult(args, status, str(e))
    except OSError as e:
        return CommandResult(args, 1, str(e))
    return CommandResult(args, 0)


def _install_one(
    entry: CatalogEntry, brew: Homebrew, log: SetupLogger, dev_dir: Path
) -> CommandResult:
    if entry.kind is InstallKind.SPECIAL:
        action = lambda: clone_source(entry, dev_dir)  # noqa: E731
    else:
        action = lambda: brew.install([entry.package_id], entry.kind)  # noqa: E731
    return run_with_spinner(
        f"Installing {entry.name}",
        action,
        f"{entry.name} installed successfully",
        f"Failed to install {entry.name}",
        log,
    )


def install_entry(
    entry: CatalogEntry, brew: Homebrew, log: SetupLogger, dev_dir: Path
) -> bool:
    """
    Install a single catalog entry unless it is already present.

    Returns True when the entry ends up installed (including when it already
    was).
    """
    if is_installed(entry, brew, dev_dir):
        log.success(f"{entry.name} already installed")
        return True
    return _install_one(entry, brew, log, dev_dir).ok


def install_selection(
    entries: Iterable[CatalogEntry],
    brew: Homebrew,
    log: SetupLogger,
    dev_dir: Path,
) -> InstallSummary:
    """
    Install a confirmed selection with one brew invocation per kind.

    Entries already present are logged and left out of the batches. Source
    clones do not go through brew and are handled one by one.
    """
    summary = InstallSummary()
    casks: List[CatalogEntry] = []
    formulae: List[CatalogEntry] = []

    for entry in entries:
        if is_installed(entry, brew, dev_dir):
            log.success(f"{entry.name} already installed")
            summary.skipped.append(entry.name)
        elif entry.kind is InstallKind.SPECIAL:
            result = _install_one(entry, brew, log, dev_dir)
            if result.ok:
                summary.installed.append(entry.name)
            else:
                summary.failed.append(entry.name)
        elif entry.kind is InstallKind.CASK:
            casks.append(entry)
        else:
            formulae.append(entry)

    for kind, group in ((InstallKind.CASK, casks), (InstallKind.FORMULA, formulae)):
        if not group:
            continue
        tokens = [entry.package_id for entry in group]
        result = run_with_spinner(
            f"Installing {kind.value} apps",
            lambda: brew.install(tokens, kind),
            f"{kind.value.capitalize()} apps installed successfully",
            f"Failed to install some {kind.value} apps",
            log,
        )
        names = [entry.name for entry in group]
        if result.ok:
            summary.installed.extend(names)
        else:
            summary.failed.extend(names)

    log.success("Installation of selected applications completed")
    return summary

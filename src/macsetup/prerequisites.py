"""Prerequisite checks for Homebrew and gum.

gum may be missing at this point, so everything here talks to the terminal
through typer directly.
"""

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List

import typer

from .catalog import InstallKind
from .core import CommandResult
from .exceptions import PrerequisiteError
from .packages import HOMEBREW_INSTALL_URL, Homebrew
from .ui import GUM


@dataclass
class Prerequisite:
    name: str
    rationale: str
    is_present: Callable[[], bool]
    install: Callable[[], CommandResult]
    manual_command: str


def default_prerequisites(brew: Homebrew, home: Path) -> List[Prerequisite]:
    return [
        Prerequisite(
            name="Homebrew",
            rationale=(
                "Homebrew is the package manager for macOS and is required "
                "for this setup."
            ),
            is_present=brew.is_present,
            install=lambda: brew.bootstrap(home),
            manual_command=f'/bin/bash -c "$(curl -fsSL {HOMEBREW_INSTALL_URL})"',
        ),
        Prerequisite(
            name="gum",
            rationale="gum provides the interactive interface for this setup script.",
            is_present=lambda: shutil.which(GUM) is not None,
            install=lambda: brew.install([GUM], InstallKind.FORMULA),
            manual_command="brew install gum",
        ),
    ]


def _print_intro(missing: List[str]) -> None:
    typer.secho(
        "=== Mac Development Setup Prerequisites ===", fg=typer.colors.YELLOW
    )
    typer.echo()
    typer.echo(
        f"This script requires {' and '.join(missing)} to provide an "
        "interactive setup experience."
    )
    typer.echo()


def _require(prereq: Prerequisite) -> None:
    typer.secho(f"⚠️  {prereq.name} is not installed.", fg=typer.colors.YELLOW)
    typer.echo(prereq.rationale)
    typer.echo()

    if not typer.confirm(
        f"Would you like to install {prereq.name} now?", default=False
    ):
        typer.secho(
            f"✗ {prereq.name} is required for this setup. Exiting.",
            fg=typer.colors.RED,
        )
        typer.echo()
        typer.echo(f"To install {prereq.name} manually, run:")
        typer.echo(prereq.manual_command)
        raise PrerequisiteError(prereq.name)

    typer.secho(f"Installing {prereq.name}...", fg=typer.colors.YELLOW)
    result = prereq.install()
    if not result.ok or not prereq.is_present():
        typer.secho(f"✗ Failed to install {prereq.name}.", fg=typer.colors.RED)
        typer.echo(f"To install {prereq.name} manually, run:")
        typer.echo(prereq.manual_command)
        raise PrerequisiteError(prereq.name, f"{prereq.name} installation failed")
    typer.echo(
        f"{typer.style('✓', fg=typer.colors.GREEN)} "
        f"{prereq.name} installed successfully"
    )


def setup_prerequisites(prerequisites: List[Prerequisite]) -> bool:
    """
    Make sure every prerequisite is on PATH, offering to install the missing
    ones in order.

    Prints nothing when all of them are already present. Raises
    PrerequisiteError when the user declines an install or it fails. Returns
    True when something had to be installed.
    """
    missing = [p for p in prerequisites if not p.is_present()]
    if not missing:
        return False

    _print_intro([p.name for p in missing])
    for prereq in prerequisites:
        # an earlier install can satisfy a later gate
        if prereq.is_present():
            continue
        _require(prereq)

    typer.echo()
    typer.secho("🎉 All prerequisites are ready!", fg=typer.colors.GREEN)
    typer.echo()
    typer.prompt(
        "Press Enter to continue to the main setup menu...",
        default="",
        show_default=False,
    )
    typer.echo()
    return True

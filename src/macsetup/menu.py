"""Package selection menu."""

from typing import List, Sequence

import typer

from .catalog import CATALOG, CatalogEntry, entry_for_label
from .log import SetupLogger
from .ui import Prompter

SELECT_HEADER = (
    "Select applications and tools to install "
    "(use space to toggle, enter when done):"
)
CONFIRM_CHOICE = "Confirm and install these tools"
BACK_CHOICE = "Go back to selection"
SKIP_CHOICE = "Skip this step"


def select_packages(
    ui: Prompter,
    log: SetupLogger,
    catalog: Sequence[CatalogEntry] = CATALOG,
    preselect_all: bool = True,
) -> List[CatalogEntry]:
    """
    Let the user pick catalog entries, looping until they confirm or skip.

    "Go back" re-opens the picker with the previous answer checked. An empty
    pick or "Skip" returns an empty list.
    """
    options = [entry.label for entry in catalog]
    current: List[str] = list(options) if preselect_all else []

    while True:
        chosen = ui.choose_many(options, selected=current, header=SELECT_HEADER)
        if not chosen:
            log.warning("No applications selected, skipping installation")
            return []

        current = list(chosen)

        typer.echo()
        typer.secho("You selected the following tools:", fg=typer.colors.BLUE)
        for line in chosen:
            typer.echo(f"  • {line}")
        typer.echo()

        choice = ui.choose(
            [CONFIRM_CHOICE, BACK_CHOICE, SKIP_CHOICE],
            header="What would you like to do?",
        )
        if choice == CONFIRM_CHOICE:
            return [entry_for_label(line) for line in chosen]
        if choice == BACK_CHOICE:
            continue

        log.warning("Skipped applications installation")
        return []

"""Terminal UI: gum for interaction, rich for banners and spinners."""

from contextlib import contextmanager
from typing import Iterator, List, Optional, Protocol, Sequence

from rich.align import Align
from rich.box import DOUBLE
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .core import CommandResult, run_command

GUM = "gum"
DEFAULT_BANNER_COLOR = "color(212)"
DANGER_BANNER_COLOR = "color(196)"
MENU_HEIGHT = 20

console = Console()


class Prompter(Protocol):
    """Interactive primitives the setup flows depend on."""

    def panel(self, *lines: str, color: str = DEFAULT_BANNER_COLOR) -> None: ...

    def confirm(self, prompt: str) -> bool: ...

    def input(self, placeholder: str) -> str: ...

    def choose(self, options: Sequence[str], header: str = "") -> Optional[str]: ...

    def choose_many(
        self,
        options: Sequence[str],
        selected: Sequence[str] = (),
        header: str = "",
    ) -> List[str]: ...


def render_panel(*lines: str, color: str = DEFAULT_BANNER_COLOR) -> None:
    """Print a double-bordered, centred banner."""
    body = Text("\n".join(lines), justify="center", style=f"bold {color}")
    console.print(
        Panel(
            Align.center(body),
            box=DOUBLE,
            border_style=color,
            width=50,
            padding=(2, 4),
        )
    )


@contextmanager
def spinner(title: str) -> Iterator[None]:
    """Show a spinner while a blocking command runs."""
    with console.status(title, spinner="dots"):
        yield


class GumUI:
    """Prompter backed by the gum binary."""

    def __init__(self, executable: str = GUM) -> None:
        self.executable = executable

    def _gum(self, *args: str) -> CommandResult:
        return run_command([self.executable, *args], merge_stderr=False)

    def panel(self, *lines: str, color: str = DEFAULT_BANNER_COLOR) -> None:
        render_panel(*lines, color=color)

    def confirm(self, prompt: str) -> bool:
        # gum exits 1 for "No" and 130 when interrupted
        return self._gum("confirm", prompt).ok

    def input(self, placeholder: str) -> str:
        result = self._gum("input", "--placeholder", placeholder)
        if not result.ok:
            return ""
        return result.output.strip()

    def choose(self, options: Sequence[str], header: str = "") -> Optional[str]:
        args = ["choose"]
        if header:
            args += ["--header", header]
        result = self._gum(*args, *options)
        choice = result.output.strip()
        if not result.ok or not choice:
            return None
        return choice

    def choose_many(
        self,
        options: Sequence[str],
        selected: Sequence[str] = (),
        header: str = "",
    ) -> List[str]:
        args = ["choose", "--no-limit", f"--height={MENU_HEIGHT}"]
        if selected:
            args.append(f"--selected={','.join(selected)}")
        if header:
            args += ["--header", header]
        result = self._gum(*args, *options)
        if not result.ok:
            return []
        return [line for line in result.output.splitlines() if line.strip()]

"""Shared pytest fixtures and configuration."""

import tempfile
from pathlib import Path
from typing import Dict, Generator, Iterable, List, Optional, Sequence

import pytest
from git import Repo

from macsetup.catalog import InstallKind
from macsetup.core import CommandResult, get_setup_paths
from macsetup.log import SetupLogger
from macsetup.workflow import SetupContext


class FakeUI:
    """Scripted stand-in for the gum prompter."""

    def __init__(
        self,
        confirms: Optional[Dict[str, bool]] = None,
        default_confirm: bool = True,
        inputs: Optional[List[str]] = None,
        choices: Optional[List[Optional[str]]] = None,
        picks: Optional[List[List[str]]] = None,
    ) -> None:
        self.confirms = confirms or {}
        self.default_confirm = default_confirm
        self.inputs = list(inputs or [])
        self.choices = list(choices or [])
        self.picks = list(picks or [])
        self.confirm_prompts: List[str] = []
        self.input_prompts: List[str] = []
        self.choose_calls: List[List[str]] = []
        self.choose_many_calls: List[Dict[str, List[str]]] = []
        self.panels: List[Sequence[str]] = []

    def panel(self, *lines: str, color: str = "") -> None:
        self.panels.append(lines)

    def confirm(self, prompt: str) -> bool:
        self.confirm_prompts.append(prompt)
        return self.confirms.get(prompt, self.default_confirm)

    def input(self, placeholder: str) -> str:
        self.input_prompts.append(placeholder)
        return self.inputs.pop(0) if self.inputs else ""

    def choose(self, options: Sequence[str], header: str = "") -> Optional[str]:
        self.choose_calls.append(list(options))
        return self.choices.pop(0) if self.choices else None

    def choose_many(
        self, options: Sequence[str], selected: Sequence[str] = (), header: str = ""
    ) -> List[str]:
        self.choose_many_calls.append(
            {"options": list(options), "selected": list(selected)}
        )
        if self.picks:
            return self.picks.pop(0)
        return list(selected)


class FakeBrew:
    """In-memory package manager that records every call."""

    def __init__(
        self,
        present: bool = True,
        installed: Iterable[str] = (),
        fail_kinds: Iterable[InstallKind] = (),
    ) -> None:
        self.present = present
        self.installed = set(installed)
        self.fail_kinds = set(fail_kinds)
        self.events: List[tuple] = []
        self.install_calls: List[tuple] = []
        self.removed = False

    def is_present(self) -> bool:
        return self.present

    def is_installed(self, name: str, kind: InstallKind) -> bool:
        self.events.append(("query", name, kind))
        return name in self.installed

    def install(self, tokens: Sequence[str], kind: InstallKind) -> CommandResult:
        self.events.append(("install", list(tokens), kind))
        self.install_calls.append((list(tokens), kind))
        args = ["brew", "install"] + list(tokens)
        if kind in self.fail_kinds:
            return CommandResult(args, 1, "Error: no such package")
        for token in tokens:
            self.installed.add(token.rsplit("/", 1)[-1])
        return CommandResult(args, 0)

    def bootstrap(self, home: Path) -> CommandResult:
        self.present = True
        return CommandResult(["install.sh"], 0)

    def remove(self) -> CommandResult:
        self.removed = True
        self.present = False
        return CommandResult(["uninstall.sh"], 0)


@pytest.fixture
def temp_home() -> Generator[Path, None, None]:
    """Create a temporary home directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def paths(temp_home: Path) -> Dict[str, Path]:
    return get_setup_paths(temp_home)


@pytest.fixture
def log(paths: Dict[str, Path]) -> Generator[SetupLogger, None, None]:
    logger = SetupLogger(paths["log_file"], quiet=True)
    yield logger
    logger.close()


@pytest.fixture
def fake_ui_factory():
    return FakeUI


@pytest.fixture
def fake_brew_factory():
    return FakeBrew


@pytest.fixture
def make_context(paths: Dict[str, Path], log: SetupLogger):
    """Build a SetupContext around fakes."""

    def _make(
        ui: Optional[FakeUI] = None,
        brew: Optional[FakeBrew] = None,
        dotfiles_repo: Optional[str] = None,
    ) -> SetupContext:
        return SetupContext(
            paths=paths,
            ui=ui or FakeUI(),
            log=log,
            brew=brew or FakeBrew(),
            dotfiles_repo=dotfiles_repo,
        )

    return _make


@pytest.fixture
def dotfiles_source(tmp_path: Path) -> Path:
    """A regular repository holding a couple of dotfiles, usable as a remote."""
    source = tmp_path / "dotfiles-source"
    source.mkdir()
    repo = Repo.init(str(source))
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "macsetup tests")
        writer.set_value("user", "email", "tests@example.com")

    (source / ".zshrc").write_text("# managed zshrc\nexport EDITOR=vim\n")
    (source / ".gitconfig").write_text("[user]\n    name = Dotfiles User\n")
    repo.index.add([".zshrc", ".gitconfig"])
    repo.index.commit("Add dotfiles")
    return source

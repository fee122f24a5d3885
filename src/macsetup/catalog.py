"""Static catalog of the applications and tools offered by the setup menu."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union


class InstallKind(str, Enum):
    """Which subsystem handles an entry."""

    CASK = "cask"
    FORMULA = "formula"
    SPECIAL = "special"


@dataclass(frozen=True)
class Cask:
    """A GUI application installed with ``brew install --cask``."""

    token: str


@dataclass(frozen=True)
class Formula:
    """A command-line package installed with ``brew install``."""

    token: str


@dataclass(frozen=True)
class SourceClone:
    """A git repository cloned into the work directory."""

    url: str
    directory: str


Source = Union[Cask, Formula, SourceClone]


@dataclass(frozen=True)
class CatalogEntry:
    name: str
    description: str
    source: Source

    @property
    def kind(self) -> InstallKind:
        if isinstance(self.source, Cask):
            return InstallKind.CASK
        if isinstance(self.source, Formula):
            return InstallKind.FORMULA
        return InstallKind.SPECIAL

    @property
    def package_id(self) -> Optional[str]:
        """Identifier handed to the package manager at install time."""
        if isinstance(self.source, (Cask, Formula)):
            return self.source.token
        return None

    @property
    def query_name(self) -> str:
        """Name used to ask the package manager whether the entry is present."""
        if isinstance(self.source, Cask):
            # tap-qualified casks are listed under their short name
            return self.source.token.rsplit("/", 1)[-1]
        if isinstance(self.source, Formula):
            return self.source.token
        return self.name

    @property
    def label(self) -> str:
        """Menu line: padded name followed by the description."""
        return f"{self.name:<16} - {self.description}"

    def clone_path(self, dev_dir: Path) -> Optional[Path]:
        if isinstance(self.source, SourceClone):
            return dev_dir / self.source.directory
        return None


CATALOG: Tuple[CatalogEntry, ...] = (
    CatalogEntry(
        "aerospace",
        "i3-like tiling window manager for macOS",
        Cask("nikitabobko/tap/aerospace"),
    ),
    CatalogEntry("bat", "Cat clone with syntax highlighting", Formula("bat")),
    CatalogEntry("brave-browser", "Privacy focused browser", Cask("brave-browser")),
    CatalogEntry("btop", "Terminal based resource monitor", Formula("btop")),
    CatalogEntry("datagrip", "Database and SQL IDE", Cask("datagrip")),
    CatalogEntry("eza", "Modern replacement for ls", Formula("eza")),
    CatalogEntry("fd", "Simple fast alternative to find", Formula("fd")),
    CatalogEntry("fzf", "Command-line fuzzy finder", Formula("fzf")),
    CatalogEntry(
        "fzf-git.sh",
        "Git integration for fzf (enhances git workflows)",
        SourceClone("https://github.com/guillermoap/fzf-git.sh", "fzf-git.sh"),
    ),
    CatalogEntry("gh", "GitHub CLI tool", Formula("gh")),
    CatalogEntry(
        "ghostty",
        "A fast native GPU-accelerated terminal emulator",
        Cask("ghostty"),
    ),
    CatalogEntry(
        "git-delta", "Syntax-highlighting pager for git", Formula("git-delta")
    ),
    CatalogEntry(
        "hey-desktop", "Opinionated email & calendar service", Cask("hey-desktop")
    ),
    CatalogEntry("lazydocker", "Terminal UI for Docker", Formula("lazydocker")),
    CatalogEntry(
        "mise",
        "Development environment manager (replaces asdf and nvm)",
        Formula("mise"),
    ),
    CatalogEntry(
        "sst/tap/opencode",
        "AI coding agent built for the terminal",
        Formula("sst/tap/opencode"),
    ),
    CatalogEntry("serpl", "Search and replace tool", Formula("serpl")),
    CatalogEntry("spotify", "Music streaming service", Cask("spotify")),
    CatalogEntry(
        "thefuck", "Corrects errors in previous console commands", Formula("thefuck")
    ),
    CatalogEntry("wget", "Internet file retriever", Formula("wget")),
    CatalogEntry("yazi", "Blazing fast terminal file manager", Formula("yazi")),
    CatalogEntry("zellij", "Terminal multiplexer", Formula("zellij")),
    CatalogEntry("zoxide", "Smarter cd command", Formula("zoxide")),
)

_BY_NAME: Dict[str, CatalogEntry] = {entry.name: entry for entry in CATALOG}
_BY_LABEL: Dict[str, CatalogEntry] = {entry.label: entry for entry in CATALOG}


def get_entry(name: str) -> CatalogEntry:
    """Look up a catalog entry by name; raises KeyError for unknown names."""
    return _BY_NAME[name]


def entry_for_label(label: str) -> CatalogEntry:
    """Map a menu line back to its entry (tolerates reformatted whitespace)."""
    if label in _BY_LABEL:
        return _BY_LABEL[label]
    return _BY_NAME[label.split()[0]]


def entries_by_kind(
    entries: Iterable[CatalogEntry], kind: InstallKind
) -> List[CatalogEntry]:
    return [entry for entry in entries if entry.kind is kind]


SOURCE_CLONE_ENTRY = get_entry("fzf-git.sh")

"""
macsetup - an interactive Mac development environment setup.

macsetup backs up your shell and git configuration, installs Homebrew,
Oh My Zsh and a curated set of tools, and checks out your dotfiles from a
bare git repository. Every step can be skipped, re-run or undone.
"""

__version__ = "0.1.0"
__license__ = "GPL-3.0-or-later"

from .core import create_backup, get_setup_paths, restore_backup
from .dotfiles import setup_dotfiles
from .packages import install_entry, install_selection
from .workflow import get_status, install_all, uninstall_all

__all__ = [
    "get_setup_paths",
    "create_backup",
    "restore_backup",
    "install_entry",
    "install_selection",
    "setup_dotfiles",
    "install_all",
    "uninstall_all",
    "get_status",
]

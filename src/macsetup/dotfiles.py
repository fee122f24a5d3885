"""Dotfiles managed as a bare git repository checked out over $HOME."""

import re
from pathlib import Path
from typing import Dict, List, Optional

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo
from git.cmd import Git

from .core import normalize_repo_url
from .exceptions import DotfilesCheckoutError
from .log import SetupLogger
from .ui import Prompter

# Constants
SHELL_CONFIG_CANDIDATES = (".zshrc", ".bashrc")
ALIAS_BLOCK_START = "# >>> macsetup dotfiles >>>"
ALIAS_BLOCK_END = "# <<< macsetup dotfiles <<<"
LEGACY_ALIAS_PREFIX = "alias config="

# startup files may hold bytes that are not valid UTF-8
SHELL_CONFIG_ENCODING = "utf-8"
SHELL_CONFIG_ERRORS = "surrogateescape"

_CONFLICT_LINE = re.compile(r"^\t+(\S.*?)\s*$", re.MULTILINE)


# ============================================================================
# SHELL ALIAS
# ============================================================================


def find_shell_config(home: Path) -> Optional[Path]:
    """Return the first existing shell startup file, in priority order."""
    for name in SHELL_CONFIG_CANDIDATES:
        candidate = home / name
        if candidate.is_file():
            return candidate
    return None


def alias_line(dotfiles_dir: Path, home: Path) -> str:
    if dotfiles_dir.is_relative_to(home):
        git_dir = f"$HOME/{dotfiles_dir.relative_to(home).as_posix()}/"
    else:
        git_dir = f"{dotfiles_dir}/"
    return f'alias config="/usr/bin/git --git-dir={git_dir} --work-tree=$HOME"'


def _read_shell_config(shell_config: Path) -> str:
    return shell_config.read_text(
        encoding=SHELL_CONFIG_ENCODING, errors=SHELL_CONFIG_ERRORS
    )


def has_alias(shell_config: Optional[Path]) -> bool:
    """True if the startup file holds our alias block or a hand-written alias."""
    if shell_config is None or not shell_config.is_file():
        return False
    for line in _read_shell_config(shell_config).splitlines():
        stripped = line.strip()
        if stripped == ALIAS_BLOCK_START or stripped.startswith(LEGACY_ALIAS_PREFIX):
            return True
    return False


def add_alias(shell_config: Path, line: str) -> bool:
    """Append the guarded alias block unless an alias is already there."""
    if has_alias(shell_config):
        return False

    existing = _read_shell_config(shell_config) if shell_config.exists() else ""
    with open(
        shell_config, "a", encoding=SHELL_CONFIG_ENCODING, errors=SHELL_CONFIG_ERRORS
    ) as f:
        if existing and not existing.endswith("\n"):
            f.write("\n")
        f.write(f"{ALIAS_BLOCK_START}\n{line}\n{ALIAS_BLOCK_END}\n")
    return True


def remove_alias(shell_config: Path) -> bool:
    """Strip the guarded alias block. Hand-written aliases are left alone."""
    if not shell_config.is_file():
        return False

    kept: List[str] = []
    inside = False
    removed = False
    for line in _read_shell_config(shell_config).splitlines(keepends=True):
        stripped = line.strip()
        if stripped == ALIAS_BLOCK_START:
            inside = removed = True
            continue
        if inside:
            if stripped == ALIAS_BLOCK_END:
                inside = False
            continue
        kept.append(line)

    if removed:
        shell_config.write_text(
            "".join(kept), encoding=SHELL_CONFIG_ENCODING, errors=SHELL_CONFIG_ERRORS
        )
    return removed


# ============================================================================
# BARE REPOSITORY
# ============================================================================


def is_dotfiles_configured(paths: Dict[str, Path]) -> bool:
    return paths["dotfiles_dir"].exists() and has_alias(
        find_shell_config(paths["home"])
    )


def clone_bare(url: str, dotfiles_dir: Path) -> Repo:
    return Repo.clone_from(url, str(dotfiles_dir), bare=True)


def dotfiles_git(dotfiles_dir: Path, home: Path) -> Git:
    """Git command object bound to the bare repo with $HOME as work tree."""
    git = Repo(str(dotfiles_dir)).git
    git.set_persistent_git_options(git_dir=str(dotfiles_dir), work_tree=str(home))
    return git


def parse_checkout_conflicts(stderr: str) -> List[str]:
    """
    Extract the paths git lists (tab-indented) when a checkout would overwrite
    existing files.
    """
    conflicts = []
    for match in _CONFLICT_LINE.finditer(stderr or ""):
        path = match.group(1).strip().strip('"')
        if path and path not in conflicts:
            conflicts.append(path)
    return conflicts


def remove_conflicts(home: Path, conflicts: List[str], log: SetupLogger) -> List[Path]:
    """Delete conflicting files inside ``home``; returns what was removed."""
    removed = []
    home_resolved = home.resolve()
    for rel in conflicts:
        target = home / rel
        try:
            if not target.resolve().is_relative_to(home_resolved):
                log.warning(f"Refusing to remove {rel}: outside the home directory")
                continue
        except (OSError, ValueError):
            continue
        if target.is_symlink() or target.is_file():
            target.unlink()
            removed.append(target)
            log.log(f"Removed conflicting file: {rel}")
    return removed


def _checkout(git: Git) -> None:
    try:
        git.checkout()
    except GitCommandError as e:
        stderr = str(e.stderr)
        raise DotfilesCheckoutError(
            stderr.strip() or str(e), parse_checkout_conflicts(stderr)
        )


def checkout_dotfiles(
    git: Git, home: Path, ui: Prompter, log: SetupLogger
) -> bool:
    """
    Check the bare repository out over ``home``.

    When the first attempt trips over existing files, and the user agrees,
    the files git names are deleted and the checkout is retried once.
    """
    try:
        _checkout(git)
        log.success("Dotfiles checked out successfully")
        return True
    except DotfilesCheckoutError as e:
        conflicts = e.conflicts
        log.warning("Dotfiles checkout failed, likely due to existing files")

    if not ui.confirm("Remove conflicting files and try again?"):
        log.skip("dotfiles checkout")
        return False

    remove_conflicts(home, conflicts, log)
    try:
        _checkout(git)
    except DotfilesCheckoutError as e:
        log.error(f"Dotfiles checkout failed again: {e}")
        return False

    log.success("Dotfiles checked out after removing conflicts")
    return True


def setup_dotfiles(
    ui: Prompter,
    log: SetupLogger,
    paths: Dict[str, Path],
    repo_url: Optional[str] = None,
) -> bool:
    """
    Clone the dotfiles bare repository, check it out over $HOME and register
    the ``config`` alias. Returns True when dotfiles end up configured.
    """
    home = paths["home"]
    dotfiles_dir = paths["dotfiles_dir"]

    if is_dotfiles_configured(paths):
        log.success("Dotfiles already set up, skipping")
        return True

    if not ui.confirm("Setup dotfiles repository?"):
        log.skip("dotfiles setup")
        return False

    log.info("Setting up dotfiles...")

    if repo_url is None:
        repo_url = normalize_repo_url(
            ui.input("Enter your dotfiles repository URL")
        )
        if repo_url is None:
            log.error("No repository URL provided, skipping dotfiles setup")
            return False

    if not dotfiles_dir.exists():
        try:
            clone_bare(repo_url, dotfiles_dir)
        except GitCommandError as e:
            log.error(f"Failed to clone {repo_url}: {str(e.stderr).strip()}")
            return False

    try:
        git = dotfiles_git(dotfiles_dir, home)
    except (InvalidGitRepositoryError, NoSuchPathError):
        log.error(f"{dotfiles_dir} exists but is not a git repository")
        return False

    if not checkout_dotfiles(git, home, ui, log):
        return False

    try:
        git.config("--local", "status.showUntrackedFiles", "no")
    except GitCommandError as e:
        log.warning(f"Could not hide untracked files: {str(e.stderr).strip()}")

    shell_config = find_shell_config(home)
    if shell_config is None:
        log.warning(
            "No .zshrc or .bashrc found; add this alias yourself: "
            + alias_line(dotfiles_dir, home)
        )
    elif add_alias(shell_config, alias_line(dotfiles_dir, home)):
        log.log(f"Added config alias to {shell_config}")

    log.success("Dotfiles setup completed")
    return True

"""Core functionality for macsetup - paths, configuration, commands and backups."""

import json
import os
import shutil
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import typer

from .exceptions import BackupError, ConfigurationError
from .log import SetupLogger

# Constants
BACKUP_DIR_NAME = ".dev-setup-backups"
LATEST_POINTER_FILENAME = "latest_backup.txt"
DOTFILES_DIR_NAME = ".dotfiles"
LOG_FILENAME = ".dev-setup.log"
DEV_DIR_NAME = "Development"
OHMYZSH_DIR_NAME = ".oh-my-zsh"
CONFIG_FILENAME = ".dev-setup.json"

# Home-relative paths archived before every install run
BACKUP_ITEMS = (".zshrc", ".gitconfig", ".config")

DOTFILES_REPO_ENV = "DOTFILES_REPO"
PLACEHOLDER_REPO = "https://github.com/yourusername/dotfiles.git"

COMMAND_NOT_FOUND = 127


# ============================================================================
# PATH MANAGEMENT
# ============================================================================


def get_home_dir() -> Path:
    """Get the home directory, respecting environment variables for testing."""
    if "HOME" in os.environ:
        return Path(os.environ["HOME"])
    return Path.home()


def get_setup_paths(home_dir: Optional[Path] = None) -> Dict[str, Path]:
    """Get all macsetup-related paths based on home directory."""
    if home_dir is None:
        home_dir = get_home_dir()

    backup_dir = home_dir / BACKUP_DIR_NAME

    return {
        "home": home_dir,
        "backup_dir": backup_dir,
        "latest_pointer": backup_dir / LATEST_POINTER_FILENAME,
        "dotfiles_dir": home_dir / DOTFILES_DIR_NAME,
        "log_file": home_dir / LOG_FILENAME,
        "dev_dir": home_dir / DEV_DIR_NAME,
        "ohmyzsh_dir": home_dir / OHMYZSH_DIR_NAME,
        "config_file": home_dir / CONFIG_FILENAME,
    }


# ============================================================================
# CONFIGURATION MANAGEMENT
# ============================================================================

DEFAULT_CONFIG: Dict[str, Any] = {
    "dotfiles_repo": "",  # empty means "ask when needed"
    "preselect_all": True,  # start the package menu with everything checked
}


def _config_file(config_file: Optional[Path]) -> Path:
    if config_file is None:
        return get_setup_paths()["config_file"]
    return config_file


def load_config(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from config file, or return default if not exists."""
    config_file = _config_file(config_file)
    if not config_file.exists():
        return DEFAULT_CONFIG.copy()

    try:
        with open(config_file, "r") as f:
            config = json.load(f)
        if not isinstance(config, dict):
            raise ValueError("top-level value must be an object")

        # Merge with defaults to ensure all keys exist
        merged_config = DEFAULT_CONFIG.copy()
        merged_config.update(config)
        return merged_config
    except (json.JSONDecodeError, ValueError) as e:
        typer.secho(
            f"Warning: Error reading config file: {e}. Using defaults.",
            fg=typer.colors.YELLOW,
            err=True,
        )
        return DEFAULT_CONFIG.copy()


def save_config(config: Dict[str, Any], config_file: Optional[Path] = None) -> None:
    """Save configuration to config file."""
    config_file = _config_file(config_file)
    config_file.parent.mkdir(parents=True, exist_ok=True)
    with open(config_file, "w") as f:
        json.dump(config, f, indent=2)


def get_config_value(key_path: str, config_file: Optional[Path] = None) -> Any:
    """Get a configuration value by key path (e.g., 'dotfiles_repo')."""
    config = load_config(config_file)
    value: Any = config
    try:
        for key in key_path.split("."):
            value = value[key]
        return value
    except (KeyError, TypeError):
        raise ConfigurationError(f"Configuration key '{key_path}' not found")


def parse_config_value(value: str) -> Any:
    """Turn a command-line string into a config value."""
    lowered = value.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if value.startswith("[") or value.startswith("{"):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            raise ConfigurationError(f"Invalid JSON value: {value}")
    return value


def set_config_value(
    key_path: str, value: str, config_file: Optional[Path] = None
) -> Any:
    """Set a configuration value by key path and return the stored value."""
    config = load_config(config_file)
    keys = key_path.split(".")

    current = config
    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]

    current[keys[-1]] = parse_config_value(value)
    save_config(config, config_file)
    return current[keys[-1]]


def reset_config(config_file: Optional[Path] = None) -> None:
    """Reset configuration to defaults."""
    save_config(DEFAULT_CONFIG.copy(), config_file)


def normalize_repo_url(url: Optional[str]) -> Optional[str]:
    """Return None for an empty or placeholder dotfiles URL."""
    if url is None:
        return None
    url = url.strip()
    if not url or url == PLACEHOLDER_REPO:
        return None
    return url


def resolve_dotfiles_repo(
    cli_value: Optional[str] = None,
    config: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    """
    Resolve the dotfiles remote once: command-line option first, then the
    DOTFILES_REPO environment variable, then the config file.
    """
    if environ is None:
        environ = os.environ
    if config is None:
        config = DEFAULT_CONFIG

    for candidate in (
        cli_value,
        environ.get(DOTFILES_REPO_ENV),
        config.get("dotfiles_repo"),
    ):
        url = normalize_repo_url(candidate)
        if url:
            return url
    return None


# ============================================================================
# EXTERNAL COMMANDS
# ============================================================================


@dataclass
class CommandResult:
    """Outcome of one external command."""

    args: List[str]
    returncode: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_command(
    args: Sequence[str],
    capture: bool = True,
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
    input_text: Optional[str] = None,
    merge_stderr: bool = True,
) -> CommandResult:
    """
    Run an external command to completion and report its exit status.

    With ``merge_stderr=False`` stderr is left attached to the terminal;
    gum draws its widgets there.
    """
    cmd = [str(a) for a in args]
    try:
        completed = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            env=dict(env) if env is not None else None,
            input=input_text,
            stdout=subprocess.PIPE if capture else None,
            stderr=subprocess.STDOUT if capture and merge_stderr else None,
            text=True,
            check=False,
        )
    except FileNotFoundError:
        return CommandResult(cmd, COMMAND_NOT_FOUND, f"{cmd[0]}: command not found")
    return CommandResult(cmd, completed.returncode, completed.stdout or "")


def fetch_script(url: str) -> CommandResult:
    """Download an installer script with curl; output holds the script text."""
    return run_command(["curl", "-fsSL", url])


# ============================================================================
# BACKUP MANAGEMENT
# ============================================================================


@dataclass
class BackupRecord:
    """One timestamped backup directory and what went into it."""

    timestamp: str
    directory: Path
    copied: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def _copy_item(src: Path, dest_dir: Path) -> None:
    target = dest_dir / src.name
    if src.is_dir() and not src.is_symlink():
        shutil.copytree(src, target, symlinks=True, dirs_exist_ok=True)
    else:
        # copy2 cannot create a link over an existing path, and would write
        # through a link at the destination
        if (src.is_symlink() or target.is_symlink()) and (
            target.is_symlink() or target.is_file()
        ):
            target.unlink()
        shutil.copy2(src, target, follow_symlinks=False)


def create_backup(
    paths: Dict[str, Path],
    log: Optional[SetupLogger] = None,
    items: Sequence[str] = BACKUP_ITEMS,
) -> BackupRecord:
    """
    Copy the configured home files into ``backup_<timestamp>`` under the
    backup root and point ``latest_backup.txt`` at it.

    Copy failures never abort the backup; they are recorded on the returned
    record and logged as warnings. The pointer is only rewritten once every
    item has been attempted.
    """
    home = paths["home"]
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_subdir = paths["backup_dir"] / f"backup_{timestamp}"

    try:
        backup_subdir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise BackupError(f"Cannot create backup directory {backup_subdir}: {e}")

    record = BackupRecord(timestamp=timestamp, directory=backup_subdir.absolute())

    for item in items:
        src = home / item
        if not (src.exists() or src.is_symlink()):
            record.missing.append(item)
            continue
        try:
            _copy_item(src, backup_subdir)
        except (OSError, shutil.Error) as e:
            record.failed.append(item)
            if log:
                log.warning(f"Could not fully back up {item}: {e}")
            continue
        record.copied.append(item)
        if log:
            log.success(f"Backed up: {item}")

    paths["latest_pointer"].write_text(f"{record.directory}\n")
    if log:
        log.success(f"Backup created at: {record.directory}")
    return record


def read_latest_backup(paths: Dict[str, Path]) -> Optional[Path]:
    """Return the directory named by the latest pointer, if any."""
    pointer = paths["latest_pointer"]
    if not pointer.is_file():
        return None
    content = pointer.read_text().strip()
    if not content:
        return None
    return Path(content)


def list_backups(paths: Dict[str, Path]) -> List[Path]:
    """List backup directories, newest first."""
    backup_dir = paths["backup_dir"]
    if not backup_dir.exists():
        return []

    backups = [
        p for p in backup_dir.iterdir() if p.is_dir() and p.name.startswith("backup_")
    ]
    return sorted(backups, key=lambda p: p.name, reverse=True)


def restore_backup(
    backup_path: Path, home: Path, log: Optional[SetupLogger] = None
) -> BackupRecord:
    """
    Copy the contents of a backup directory back over the home directory.

    Existing files are overwritten and directories are merged. Like the
    backup itself this is best-effort: failures are collected, not raised.
    """
    if not backup_path.is_dir():
        raise BackupError(f"Backup directory {backup_path} not found")

    record = BackupRecord(
        timestamp=backup_path.name.replace("backup_", "", 1), directory=backup_path
    )
    for child in sorted(backup_path.iterdir()):
        try:
            _copy_item(child, home)
        except (OSError, shutil.Error) as e:
            record.failed.append(child.name)
            if log:
                log.warning(f"Could not restore {child.name}: {e}")
            continue
        record.copied.append(child.name)
    return record

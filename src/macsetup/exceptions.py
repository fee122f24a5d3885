"""Exception classes for macsetup - an interactive Mac development setup."""

from typing import List, Optional, TypedDict


# Type definitions for structured data
class ComponentStatusDict(TypedDict):
    """Type definition for a single row of the status report."""

    name: str
    present: bool
    label: str


class StatusReportDict(TypedDict):
    """Type definition for the environment status report."""

    homebrew: bool
    ohmyzsh: bool
    dev_directory: bool
    dotfiles: bool
    fzf_git: bool
    latest_backup: Optional[str]
    components: List[ComponentStatusDict]


class SetupError(Exception):
    """Base exception for all macsetup-related errors."""

    pass


class PrerequisiteError(SetupError):
    """Raised when a required tool is missing and was not installed."""

    def __init__(self, tool: str, message: str = "") -> None:
        self.tool = tool
        super().__init__(message or f"{tool} is required for this setup")


class BackupError(SetupError):
    """Errors related to backup and restore operations."""

    pass


class DotfilesError(SetupError):
    """Errors related to the dotfiles bare repository."""

    pass


class DotfilesCheckoutError(DotfilesError):
    """Raised when the dotfiles checkout cannot be completed."""

    def __init__(self, message: str, conflicts: Optional[List[str]] = None) -> None:
        self.conflicts = conflicts or []
        super().__init__(message)


class ConfigurationError(SetupError):
    """Errors related to configuration management."""

    pass

"""Timestamped setup log mirrored to the terminal."""

import logging
from pathlib import Path
from typing import Optional

import typer

LOG_FORMAT = "%(asctime)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SUCCESS_MARK = "✓"
ERROR_MARK = "✗"


class SetupLogger:
    """
    Append-only log of a setup run.

    Every message is written to the log file as ``<timestamp> - <message>`` and
    echoed to the terminal. The success/error/info/warning/skip helpers only
    change the marker and colour; they all end up in the same file.
    """

    def __init__(self, log_file: Optional[Path] = None, quiet: bool = False) -> None:
        self.log_file = log_file
        self.quiet = quiet
        name = f"macsetup.{log_file}" if log_file else "macsetup"
        self._logger = logging.getLogger(name)
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()

        if log_file is not None:
            try:
                log_file.parent.mkdir(parents=True, exist_ok=True)
                handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            except OSError as e:
                # The terminal mirror keeps working without the file
                typer.secho(
                    f"Warning: cannot write log file {log_file}: {e}",
                    fg=typer.colors.YELLOW,
                    err=True,
                )
            else:
                handler.setFormatter(
                    logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
                )
                self._logger.addHandler(handler)

    def close(self) -> None:
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()

    def _emit(
        self, message: str, marker: str = "", fg: Optional[str] = None
    ) -> None:
        text = f"{marker} {message}" if marker else message
        self._logger.info(text)
        if self.quiet:
            return
        if marker:
            typer.echo(f"{typer.style(marker, fg=fg)} {message}")
        else:
            typer.secho(message, fg=fg)

    def log(self, message: str) -> None:
        self._emit(message)

    def success(self, message: str) -> None:
        self._emit(message, SUCCESS_MARK, typer.colors.GREEN)

    def error(self, message: str) -> None:
        self._emit(message, ERROR_MARK, typer.colors.RED)

    def info(self, message: str) -> None:
        self._emit(message, fg=typer.colors.BLUE)

    def warning(self, message: str) -> None:
        self._emit(message, fg=typer.colors.YELLOW)

    def skip(self, message: str) -> None:
        self._emit(f"Skipped: {message}", fg=typer.colors.YELLOW)

"""Append-only run log mirrored to the console."""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from .core.errors import RunLogUnavailable
from .core.models import Severity

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: SUCCESS,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}

_COLORS = {
    Severity.INFO: "\033[36m",
    Severity.SUCCESS: "\033[32m",
    Severity.WARN: "\033[33m",
    Severity.ERROR: "\033[31m",
}
_RESET = "\033[0m"

LOGGER_NAME = "wslsetup.run"


class _ConsoleFormatter(logging.Formatter):
    def __init__(self, color: bool) -> None:
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        severity: Severity = record.severity  # type: ignore[attr-defined]
        tag = f"[{severity.value.upper()}]"
        if self.color:
            tag = f"{_COLORS[severity]}{tag}{_RESET}"
        return f"{tag} {record.getMessage()}"


class _FileFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        severity: Severity = record.severity  # type: ignore[attr-defined]
        stamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        return f"{stamp} [{severity.value.upper()}] {record.getMessage()}"


class _BelowError(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.ERROR


def _console_handler(stream: TextIO, *, errors: bool) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setFormatter(_ConsoleFormatter(color=stream.isatty()))
    if errors:
        handler.setLevel(logging.ERROR)
    else:
        handler.addFilter(_BelowError())
    return handler


class RunLog:
    """Timestamped record of every action taken during one run.

    Each entry lands in the log file and on the console as it is
    written; errors go to stderr, everything else to stdout.
    """

    def __init__(self, path: Path, logger: logging.Logger) -> None:
        self.path = path
        self._logger = logger

    @classmethod
    def open(cls, path: Path, *, console: bool = True) -> RunLog:
        """Create (or truncate) the log file and attach both sinks."""
        logger = logging.getLogger(LOGGER_NAME)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.INFO)
        logger.propagate = False

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as handle:
                handle.write(f"=== WSL Setup Started at {datetime.now():%c} ===\n")
            file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        except OSError as exc:
            raise RunLogUnavailable(f"Cannot open run log {path}: {exc}") from exc

        file_handler.setFormatter(_FileFormatter())
        logger.addHandler(file_handler)
        if console:
            logger.addHandler(_console_handler(sys.stdout, errors=False))
            logger.addHandler(_console_handler(sys.stderr, errors=True))
        return cls(path, logger)

    def log(self, severity: Severity, message: str) -> None:
        self._logger.log(_LEVELS[severity], message, extra={"severity": severity})

    def info(self, message: str) -> None:
        self.log(Severity.INFO, message)

    def success(self, message: str) -> None:
        self.log(Severity.SUCCESS, message)

    def warn(self, message: str) -> None:
        self.log(Severity.WARN, message)

    def error(self, message: str) -> None:
        self.log(Severity.ERROR, message)

    def close(self) -> None:
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()

    def __enter__(self) -> RunLog:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

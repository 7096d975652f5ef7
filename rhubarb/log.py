"""Minimal levelled console logging."""

from __future__ import annotations

import enum
import sys


class LogLevel(enum.Enum):
    """Severity of a log message."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


def log(msg: str, level: LogLevel) -> None:
    """Print ``msg`` tagged with ``level``; errors go to stderr, the rest to stdout."""
    stream = sys.stderr if level is LogLevel.ERROR else sys.stdout
    print(f"[{level.value}]: {msg}", file=stream)
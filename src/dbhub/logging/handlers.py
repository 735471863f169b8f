"""Log handlers.

stdout carries the stdio protocol stream, so console output always goes to
stderr.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional, TextIO, Union

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET = "\033[0m"


class ConsoleHandler(logging.StreamHandler):
    """stderr handler that colors whole lines by level on a color terminal."""

    def __init__(self, stream: Optional[TextIO] = None, *, colors: bool = True) -> None:
        super().__init__(stream or sys.stderr)
        self.colors = colors and self._supports_color()

    def _supports_color(self) -> bool:
        if os.environ.get("NO_COLOR"):
            return False
        if os.environ.get("FORCE_COLOR"):
            return True
        return hasattr(self.stream, "isatty") and self.stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        color = LEVEL_COLORS.get(record.levelname) if self.colors else None
        return f"{color}{formatted}{RESET}" if color else formatted


class RotatingFileHandler(logging.handlers.RotatingFileHandler):
    """Size-based rotating file handler that creates the log directory."""

    def __init__(
        self,
        filename: Union[str, Path],
        *,
        max_bytes: int = 10485760,
        backup_count: int = 5,
        encoding: str = "utf-8",
    ) -> None:
        path = Path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(str(path), maxBytes=max_bytes, backupCount=backup_count, encoding=encoding)

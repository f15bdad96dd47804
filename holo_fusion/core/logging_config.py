"""Root logger setup for the fusion service."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Union

# Thread names matter here: driver callbacks and fusion passes run off the loop.
LOG_FORMAT = "%(asctime)s.%(msecs)03d | %(levelname)-8s | %(threadName)-18s | %(name)s | %(message)s"
LOG_DATEFMT = "%H:%M:%S"
MAX_LOG_BYTES = 1024 * 1024
LOG_BACKUP_COUNT = 3

_installed: List[logging.Handler] = []


def parse_level(level: Union[int, str]) -> int:
    """Turn ``"info"``/``"DEBUG"``/``20`` into a numeric level."""
    if isinstance(level, int):
        return level
    numeric = logging.getLevelName(level.strip().upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level '{level}'")
    return numeric


def _file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    console: bool = True,
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """Install console and rotating-file handlers on the root logger.

    Calling again replaces the handlers installed by the previous call and
    leaves any other root handlers alone.
    """
    numeric_level = parse_level(level)
    root = logging.getLogger()

    while _installed:
        handler = _installed.pop()
        root.removeHandler(handler)
        handler.close()

    handlers: List[logging.Handler] = []
    if console:
        handlers.append(logging.StreamHandler(sys.stdout))
    if log_file:
        handlers.append(_file_handler(Path(log_file)))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(numeric_level)
        root.addHandler(handler)
        _installed.append(handler)

    root.setLevel(numeric_level)


__all__ = [
    "LOG_FORMAT",
    "LOG_DATEFMT",
    "configure_logging",
    "parse_level",
]

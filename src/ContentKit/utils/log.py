"""ContentKit logging utilities.

The package logger stays silent (NullHandler) until an application, or the
CLI, calls `configure_logging`. Records use the format
``mm-dd HH:MM:SS [LVL] message`` with LVL in DEBG/INFO/WARN/ERRO.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Final, TextIO


_LEVEL_ABBREV: Final[dict[int, str]] = {
    logging.DEBUG: "DEBG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERRO",
    logging.CRITICAL: "ERRO",
}


class _AbbrevLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 - record is stdlib name
        record.levelabbr = _LEVEL_ABBREV.get(record.levelno, record.levelname[:4])
        return super().format(record)


log = logging.getLogger("ContentKit")
log.addHandler(logging.NullHandler())


def configure_logging(
    *,
    level: str = "INFO",
    action: str | None = None,
    log_to_file: bool = False,
    log_dir: str = "log",
    stream: TextIO | None = None,
) -> Path | None:
    """Attach console and optional file handlers to the ContentKit logger.

    Console output goes to stderr by default so command output on stdout
    stays machine-readable.

    Args:
        level: Console logging level (e.g., INFO, DEBUG).
        action: CLI action name used for the log file path.
        log_to_file: Whether to mirror DEBUG-level logs to a file.
        log_dir: Base directory for log files.
        stream: Console stream; defaults to ``sys.stderr``.

    Returns:
        Path of the log file, or None when no file handler was added.
    """
    resolved_level = getattr(logging, (level or "INFO").upper(), logging.INFO)

    formatter = _AbbrevLevelFormatter(
        fmt="%(asctime)s [%(levelabbr)s] %(message)s",
        datefmt="%m-%d %H:%M:%S",
    )

    stream_handler = logging.StreamHandler(stream or sys.stderr)
    stream_handler.setLevel(resolved_level)
    stream_handler.setFormatter(formatter)

    handlers: list[logging.Handler] = [stream_handler]
    log_path: Path | None = None
    if log_to_file and action:
        action_dir = Path(log_dir or "log") / action
        action_dir.mkdir(parents=True, exist_ok=True)
        log_path = action_dir / f"{action}_{datetime.now().strftime('%m%d%H%M%S')}.log"
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()
    for handler in handlers:
        log.addHandler(handler)
    log.setLevel(logging.DEBUG if log_path else resolved_level)
    log.propagate = False
    return log_path

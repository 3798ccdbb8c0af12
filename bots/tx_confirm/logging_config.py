#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Logging setup shared by the confirmation engine modules.

Modules call ``get_logger(__name__)``. The first call installs a stderr
handler (stdout is reserved for outcome narratives) at ``LOG_LEVEL`` and,
when ``LOG_PATH`` is set, a file handler as well. The CLI overrides the
level afterwards with ``set_log_level``.

Fields passed through ``extra`` are appended to the line, e.g.::

    logger.warning("Simulation reverted", extra={"tx_hash": h, "anchor": "latest"})
    # 2026-01-01 12:00:00 [WARNING] simulation: Simulation reverted [anchor=latest tx_hash=0xab..]
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

LINE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_FIELDS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_configured = False


class ContextFormatter(logging.Formatter):
    """Formatter that renders ``extra`` fields as ``[key=value ...]``."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {k: v for k, v in vars(record).items() if k not in _RECORD_FIELDS}
        if not context:
            return line
        fields = " ".join(f"{k}={_short(v)}" for k, v in sorted(context.items()))
        return f"{line} [{fields}]"


def _short(value: object) -> str:
    text = str(value)
    # full 32-byte hashes are noise in a log line
    if text.startswith("0x") and len(text) == 66:
        return text[:10] + ".."
    return text


def _level_from_env() -> str:
    raw = os.getenv("LOG_LEVEL", "INFO").upper()
    return raw if raw in VALID_LOG_LEVELS else "INFO"


def configure_logging(
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    console: bool = True,
) -> None:
    """Install the handlers on the root logger. Later calls are no-ops.

    Args:
        level: Log level name; defaults to ``LOG_LEVEL`` (INFO if unset or invalid)
        log_file: Optional file to append to, parent directories are created
        console: Whether to log to stderr
    """
    global _configured
    if _configured:
        return

    level_name = (level or _level_from_env()).upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    root = logging.getLogger()
    root.setLevel(log_level)
    formatter = ContextFormatter(LINE_FORMAT, datefmt=DATE_FORMAT)

    handlers: list[logging.Handler] = []
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
        except OSError as e:
            print(f"Warning: cannot open log file {log_file}: {e}", file=sys.stderr)

    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name``, configuring logging from the environment on first use."""
    if not _configured:
        log_path = os.getenv("LOG_PATH")
        configure_logging(log_file=Path(log_path) if log_path else None)
    return logging.getLogger(name)


def set_log_level(level: str) -> None:
    """Change the level of the root logger and of its handlers."""
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        print(f"Warning: invalid log level '{level}'", file=sys.stderr)
        return
    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in root.handlers:
        handler.setLevel(log_level)

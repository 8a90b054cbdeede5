# src/parlaypro/logging_config.py
"""
Logging setup for ParlayPro.

Key concepts:

    **Display filter**: When ``console_enabled=False`` (the default), the
    console handler still exists but only passes records that carry
    ``extra={"display": True}``.  Status lines such as "Local Storage Mode"
    reach the user while cache hit/miss chatter stays out of the terminal.

    **File logging**: optional, a single ``RotatingFileHandler`` per app.

Usage:
    from parlaypro.logging_config import configure_logging, log_display

    configure_logging(app_name="parlaypro")

    logger = logging.getLogger("parlaypro.cli")
    log_display(logger, logging.INFO, "Cloud Connected")
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from pydantic import BaseModel

DEFAULT_LOGGING_CONFIG: dict[str, Any] = {
    "console_enabled": False,
    "console_level": "WARNING",
    "console_format": "%(levelname)s - %(message)s",
    "file_enabled": False,
    "file_level": "DEBUG",
    "file_directory": "~/.local/share/parlaypro/logs",
    "file_name": "{app}.log",
    "file_format": "%(asctime)s [%(levelname)-8s] %(name)-30s - %(message)s (%(filename)s:%(lineno)d)",
    "rotation_max_bytes": 5 * 1024 * 1024,
    "rotation_backup_count": 3,
    "display_min_level": "INFO",
    "components": {
        "parlaypro": "INFO",
        "httpx": "WARNING",
        "httpcore": "WARNING",
        "aiosqlite": "WARNING",
        "google_genai": "WARNING",
        "asyncio": "WARNING",
    },
}

_configured = False


def _level(value: str | int, default: int) -> int:
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value).upper())
    return level if isinstance(level, int) else default


class DisplayFilter(logging.Filter):
    """Controls which log records pass through to the console handler.

    With the console globally enabled (``-v``) everything passes and the
    handler level decides.  Otherwise only records flagged ``display=True``
    at or above ``display_min_level`` pass.
    """

    def __init__(
        self,
        console_globally_enabled: bool = False,
        display_min_level: int = logging.INFO,
    ) -> None:
        super().__init__()
        self.console_globally_enabled = console_globally_enabled
        self.display_min_level = display_min_level

    def filter(self, record: logging.LogRecord) -> bool:
        if self.console_globally_enabled:
            return True
        if getattr(record, "display", False):
            return record.levelno >= self.display_min_level
        return False


def _file_handler(config: dict[str, Any], app_name: str) -> logging.Handler | None:
    log_dir = Path(os.path.expanduser(config["file_directory"]))
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_dir / config["file_name"].format(app=app_name),
            maxBytes=config["rotation_max_bytes"],
            backupCount=config["rotation_backup_count"],
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"Warning: Cannot create log file in {log_dir}: {e}\n")
        return None
    handler.setLevel(_level(config["file_level"], logging.DEBUG))
    handler.setFormatter(logging.Formatter(config["file_format"]))
    return handler


def configure_logging(
    app_name: str = "parlaypro",
    config: BaseModel | dict[str, Any] | None = None,
    verbose: bool = False,
    force_reconfigure: bool = False,
) -> None:
    """
    Configure root logging once per process.

    Args:
        app_name: Used in the log file name.
        config: A ``LoggingConfig`` or plain dict overriding the defaults.
        verbose: Force the console on at DEBUG (CLI ``-v``).
        force_reconfigure: Replace handlers installed by an earlier call.
    """
    global _configured
    if _configured and not force_reconfigure:
        return

    if isinstance(config, BaseModel):
        config = config.model_dump()
    merged = {**DEFAULT_LOGGING_CONFIG, **(config or {})}
    merged["components"] = {**DEFAULT_LOGGING_CONFIG["components"], **merged.get("components", {})}
    if verbose:
        merged["console_enabled"] = True
        merged["console_level"] = "DEBUG"
        merged["components"]["parlaypro"] = "DEBUG"

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.DEBUG)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(merged["console_format"]))
    if merged["console_enabled"]:
        console.setLevel(_level(merged["console_level"], logging.WARNING))
    else:
        # filter is the sole gate
        console.setLevel(logging.DEBUG)
    console.addFilter(
        DisplayFilter(
            console_globally_enabled=merged["console_enabled"],
            display_min_level=_level(merged["display_min_level"], logging.INFO),
        )
    )
    root.addHandler(console)

    if merged["file_enabled"]:
        handler = _file_handler(merged, app_name)
        if handler:
            root.addHandler(handler)

    for component, level in merged["components"].items():
        logging.getLogger(component).setLevel(_level(level, logging.INFO))

    _configured = True


def log_display(logger: logging.Logger, level: int, msg: str, *args: Any) -> None:
    """Log a message that reaches the console even in quiet mode."""
    logger.log(level, msg, *args, extra={"display": True})

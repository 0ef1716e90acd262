"""Logging setup for the intakeassist command line and services."""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from pathlib import Path

__all__ = ["setup_logging", "get_logger", "get_log_path", "resolve_level"]

_DEFAULT_LOG_DIR = Path.home() / ".intakeassist" / "logs"
_LOG_FILE_NAME = "intakeassist.log"
_NOISY_LOGGERS: tuple[str, ...] = ("asyncio", "httpx", "httpcore", "openai")
_LEVEL_ENV = "INTAKEASSIST_LOG_LEVEL"
_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_CONFIGURED = False
_LOG_PATH: Path | None = None


def resolve_level(debug: bool = False) -> int:
    """Pick the root log level from the debug flag or ``INTAKEASSIST_LOG_LEVEL``."""

    if debug:
        return logging.DEBUG
    named = os.environ.get(_LEVEL_ENV, "").strip().upper()
    if named:
        value = logging.getLevelName(named)
        if isinstance(value, int):
            return value
    return logging.INFO


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    log_to_file: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path | None:
    """Configure root logging.

    Console output always goes to stderr so that stdout stays reserved for the
    JSON payloads printed by the CLI. A rotating file handler is added unless
    ``log_to_file`` is false. Returns the log file path when one is in use.
    """

    global _CONFIGURED, _LOG_PATH
    if _CONFIGURED and not force:
        return _LOG_PATH

    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [console_handler]

    log_path: Path | None = None
    if log_to_file:
        target_dir = _resolve_log_dir(log_dir)
        target_dir.mkdir(parents=True, exist_ok=True)
        log_path = target_dir / _LOG_FILE_NAME
        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.captureWarnings(True)
    _quiet_http_loggers(level)

    _CONFIGURED = True
    _LOG_PATH = log_path
    return log_path


def get_logger(name: str) -> logging.Logger:
    """Return a module-specific logger."""

    return logging.getLogger(name)


def get_log_path() -> Path | None:
    """Return the currently configured log file if available."""

    return _LOG_PATH


def _resolve_log_dir(log_dir: Path | str | None) -> Path:
    env_override = os.environ.get("INTAKEASSIST_LOG_DIR")
    return Path(log_dir or env_override or _DEFAULT_LOG_DIR).expanduser()


def _quiet_http_loggers(root_level: int) -> None:
    # The SDK logs every request at INFO/DEBUG; keep them out unless debugging.
    quiet_level = logging.WARNING if root_level > logging.DEBUG else logging.DEBUG
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(quiet_level)

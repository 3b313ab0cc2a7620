"""
Logging utility module.

Provides centralized logging configuration with file and console handlers,
plus a small helper for emitting structured events at fetch boundaries.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Optional

ROOT_LOGGER_NAME = "btcpulse"


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Set up a logger with console and optional file handlers.

    Args:
        name: Logger name
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file. If None, logs only to console.
        format_string: Optional custom format string

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    if format_string is None:
        format_string = (
            "%(asctime)s - %(name)s - %(levelname)s - "
            "[%(filename)s:%(lineno)d] - %(message)s"
        )

    formatter = logging.Formatter(format_string, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger namespaced under the package root logger.

    Child loggers propagate to the root ``btcpulse`` logger, so configuring
    that one (via ``setup_logger``) controls every component.

    Args:
        name: Logger name, e.g. ``provider.ecb``

    Returns:
        Logger instance
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def format_event(event: str, fields: dict) -> str:
    """Render an event name and its fields as ``event k1=v1 k2=v2``."""
    parts = [event]
    for key, value in fields.items():
        if isinstance(value, float):
            value = f"{value:.6g}"
        parts.append(f"{key}={value}")
    return " ".join(parts)


def log_event(
    logger: logging.Logger,
    event: str,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """
    Emit a structured log event.

    The rendered message is human readable; the raw event name and fields are
    attached to the record as ``record.event`` and ``record.fields``.

    Args:
        logger: Logger to emit on
        event: Dotted event name (e.g. 'fetch.start', 'fx.fallback')
        level: Logging level
        **fields: Event attributes
    """
    if not logger.isEnabledFor(level):
        return
    logger.log(
        level,
        format_event(event, fields),
        extra={"event": event, "fields": fields},
        stacklevel=2,
    )

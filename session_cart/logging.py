"""
Logging helpers for session_cart.

Modules log through `get_logger(__name__)`. The library never configures
logging on import; hosts without their own setup can call
`configure_logging()` once at startup.
"""

import logging
import os
import sys
from functools import cache

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_SIMPLE = "%(levelname)s - %(name)s - %(message)s"

# Loggers of the Upstash REST transport, one line per request at INFO
_TRANSPORT_LOGGERS = ("httpx", "httpcore")

_CONTROL_CHARS = {"\n": "\\n", "\r": "\\r", "\t": "\\t", "\x00": ""}


def _level_from_env() -> int:
    name = os.environ.get("LOG_LEVEL", "INFO").upper()
    return getattr(logging, name, logging.INFO)


def configure_logging(simple: bool | None = None) -> None:
    """
    Send log records to stdout unless the root logger is already set up.

    `simple` picks the short format; when None, LOG_FORMAT=simple in the
    environment decides. LOG_LEVEL sets the level (default INFO).
    """
    root = logging.getLogger()
    if root.handlers:
        return

    if simple is None:
        simple = os.environ.get("LOG_FORMAT", "").lower() == "simple"

    level = _level_from_env()
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT_SIMPLE if simple else LOG_FORMAT))

    root.setLevel(level)
    root.addHandler(handler)

    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@cache
def get_logger(name: str) -> logging.Logger:
    """Module logger, shared per name."""
    return logging.getLogger(name)


def _sanitize(value: object, max_length: int, suffix: str) -> str:
    text = "".join(_CONTROL_CHARS.get(char, char) for char in str(value))
    if len(text) <= max_length:
        return text
    return text[:max_length] + suffix


def sanitize_id_for_logging(id_value: object | None) -> str:
    """Short, single-line form of an id (first 8 characters)."""
    if id_value is None or id_value == "":
        return "N/A"
    return _sanitize(id_value, 8, "")


def sanitize_string_for_logging(value: str | None, max_length: int = 50) -> str:
    """
    Single-line form of caller-supplied text.

    Control characters are escaped so a value cannot forge extra log
    lines; text longer than max_length is cut and marked with "...".
    """
    if not value:
        return "N/A"
    return _sanitize(value, max_length, "...")


__all__ = [
    "LOG_FORMAT",
    "LOG_FORMAT_SIMPLE",
    "configure_logging",
    "get_logger",
    "sanitize_id_for_logging",
    "sanitize_string_for_logging",
]

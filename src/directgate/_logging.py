from __future__ import annotations

import logging
import os

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}


def _env_log_level(default: int = logging.WARNING) -> int:
    """Resolve the log level from ``DIRECTGATE_LOG_LEVEL``.

    Accepts level names (any case) or numeric strings. Anything else falls
    back to ``default``.
    """
    raw = (os.getenv("DIRECTGATE_LOG_LEVEL") or "").strip()
    if not raw:
        return default
    if raw.isdigit():
        return int(raw)
    return _LEVELS.get(raw.upper(), default)


logger = logging.getLogger("directgate")
logger.setLevel(_env_log_level())
logger.addHandler(logging.NullHandler())

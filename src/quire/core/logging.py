from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

_QUIRE_HANDLER: Optional[logging.Handler] = None

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.WARNING


def configure_logging(level: str = "WARNING", *, stream: Optional[TextIO] = None) -> logging.Handler:
    """Send ``quire.*`` log records at ``level`` or above to stderr.

    Idempotent per-process: calling it again replaces the handler installed
    by the previous call instead of adding another one.
    """
    global _QUIRE_HANDLER

    logger = logging.getLogger("quire")
    logger.setLevel(_level_from_name(level))

    if _QUIRE_HANDLER is not None:
        logger.removeHandler(_QUIRE_HANDLER)
        _QUIRE_HANDLER.close()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    _QUIRE_HANDLER = handler
    return handler


def reset_logging_for_tests() -> None:
    """Test-only: remove the handler installed by ``configure_logging``."""
    global _QUIRE_HANDLER
    logger = logging.getLogger("quire")
    if _QUIRE_HANDLER is not None:
        logger.removeHandler(_QUIRE_HANDLER)
        _QUIRE_HANDLER.close()
        _QUIRE_HANDLER = None
    logger.setLevel(logging.NOTSET)


__all__ = ["configure_logging", "reset_logging_for_tests"]

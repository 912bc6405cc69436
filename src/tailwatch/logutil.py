"""Project-wide logging utilities.

Provides a single logger configured lazily; applications embedding tailwatch
can override handlers or levels as needed. We default to WARNING to stay quiet
unless something noteworthy happens (e.g., a watcher fault or read error).
"""
from __future__ import annotations

import logging
from typing import Optional

_LOGGER: Optional[logging.Logger] = None


def get_logger() -> logging.Logger:
    global _LOGGER
    if _LOGGER is None:
        logger = logging.getLogger("tailwatch")
        # Only add a handler if the application hasn't configured logging.
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("[%(name)s] %(levelname)s: %(message)s")
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        logger.setLevel(logging.WARNING)
        _LOGGER = logger
    return _LOGGER


def set_verbosity(verbose: int) -> None:
    """Map a -v count onto the project logger level (1 = INFO, 2+ = DEBUG)."""
    if verbose <= 0:
        return
    get_logger().setLevel(logging.INFO if verbose == 1 else logging.DEBUG)

__all__ = ["get_logger", "set_verbosity"]

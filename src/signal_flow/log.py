"""Process-wide logging setup for the signal-flow CLI."""

from __future__ import annotations

import logging
import os
import sys

_VERBOSITY_LEVELS = {0: None, 1: logging.INFO, 2: logging.DEBUG}


def configure_logging(default_level: str = "WARNING", verbosity: int = 0) -> int:
    """Configure the root logger and return the resolved level.

    The level comes from ``LOG_LEVEL`` (falling back to *default_level*).
    A positive *verbosity* (``-v`` / ``-vv`` on the command line) overrides
    it with INFO or DEBUG.
    """
    level_name = os.environ.get("LOG_LEVEL", default_level).upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = getattr(logging, default_level.upper(), logging.WARNING)
        invalid_level = level_name
    else:
        invalid_level = None

    forced = _VERBOSITY_LEVELS.get(min(verbosity, 2))
    if forced is not None:
        level = min(level, forced)

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )

    if invalid_level is not None:
        logging.getLogger(__name__).warning(
            "Invalid LOG_LEVEL '%s'; using %s", invalid_level, logging.getLevelName(level)
        )

    return level

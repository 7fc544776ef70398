"""Logging setup for the inventory command line."""

from __future__ import annotations

import logging
import sys


def setup_logging(level: str = "WARNING") -> None:
    """Configure logging with timestamps and module names.

    Records go to stderr; stdout carries the rendered tables.
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
    # Quiet down noisy libraries
    logging.getLogger("aiohttp").setLevel(logging.WARNING)

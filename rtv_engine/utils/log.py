"""Logging setup for scripts and local runs."""

import logging
from typing import Optional

from .config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None, verbose: bool = False) -> None:
    """
    Configure root logging.

    Level precedence: ``verbose`` (DEBUG), then ``level``, then
    ``Settings.LOG_LEVEL``.
    """
    if verbose:
        resolved = logging.DEBUG
    else:
        name = (level or get_settings().LOG_LEVEL).upper()
        resolved = logging.getLevelName(name)
        if not isinstance(resolved, int):
            resolved = logging.INFO

    logging.basicConfig(
        level=resolved,
        format=LOG_FORMAT,
        force=True,  # Override any existing config
    )

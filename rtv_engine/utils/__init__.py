"""Utility modules for the RTV engine."""

from .config import Settings, get_settings
from .log import setup_logging

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
]

"""Utility functions for QuotaBoard."""

from .log import log_with_timestamp, setup_debug_logging
from .settings import SettingsManager

__all__ = [
    "log_with_timestamp",
    "setup_debug_logging",
    "SettingsManager",
]

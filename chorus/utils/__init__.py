"""Utility functions for Chorus."""

from .logging import (
    LogCapture,
    get_logger,
    setup_logging,
    setup_logging_from_config,
)

__all__ = [
    "LogCapture",
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
]

"""Logging configuration for Chorus.

Library modules log through ``logging.getLogger(__name__)`` and never
install handlers themselves; applications call ``setup_logging`` (or
``setup_logging_from_config``) once to route the ``chorus`` logger tree to
a Rich console and, optionally, a file.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from chorus.config.settings import LoggingConfig

ROOT_LOGGER = "chorus"

# Console lines carry only the message; Rich adds time and level columns
CONSOLE_FORMAT = "%(message)s"
CONSOLE_DATE_FORMAT = "[%X]"

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _console_handler(level: int, verbose: bool) -> logging.Handler:
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=True,
        show_path=verbose,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,  # Agent replies may contain [brackets]
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=CONSOLE_DATE_FORMAT))
    return handler


def _file_handler(log_file: Path) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    # Transcripts are worth keeping in full on disk
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
    return handler


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    verbose: bool = False,
) -> logging.Logger:
    """Route the ``chorus`` logger tree to the console and an optional file.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Console level (default: INFO)
        log_file: Optional path for a debug-level log file
        verbose: Force DEBUG and show source paths and locals

    Returns:
        The ``chorus`` logger
    """
    if verbose:
        level = logging.DEBUG

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_console_handler(level, verbose))
    if log_file:
        logger.addHandler(_file_handler(log_file))

    return logger


def setup_logging_from_config(config: "LoggingConfig") -> logging.Logger:
    """Set up logging from the ``logging`` settings section."""
    return setup_logging(
        level=logging.getLevelName(config.level),
        log_file=config.resolved_log_file,
        verbose=config.verbose,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get the ``chorus`` logger or one of its children.

    Args:
        name: Dotted suffix, e.g. ``"orchestrator.engine"``

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"{ROOT_LOGGER}.{name}")
    return logging.getLogger(ROOT_LOGGER)


class LogCapture:
    """Context manager collecting records from a logger (for tests).

    The logger's level is lowered to ``level`` for the duration of the
    block so debug output from the orchestrator can be asserted on.
    """

    def __init__(self, logger_name: str = ROOT_LOGGER, level: int = logging.DEBUG):
        self.logger_name = logger_name
        self.level = level
        self.records: list[logging.LogRecord] = []
        self._handler: Optional[logging.Handler] = None
        self._previous_level: Optional[int] = None

    def __enter__(self) -> "LogCapture":
        logger = logging.getLogger(self.logger_name)
        self._handler = CaptureHandler(self.records)
        self._previous_level = logger.level
        logger.setLevel(self.level)
        logger.addHandler(self._handler)
        return self

    def __exit__(self, *args) -> None:
        logger = logging.getLogger(self.logger_name)
        if self._handler:
            logger.removeHandler(self._handler)
        if self._previous_level is not None:
            logger.setLevel(self._previous_level)

    @property
    def messages(self) -> list[str]:
        """Formatted messages in the order they were logged."""
        return [record.getMessage() for record in self.records]

    def has_message(self, substring: str) -> bool:
        """Check if any captured message contains the substring."""
        return any(substring in msg for msg in self.messages)


class CaptureHandler(logging.Handler):
    """Handler appending every record to a shared list."""

    def __init__(self, records: list[logging.LogRecord]):
        super().__init__()
        self.records = records

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

"""
Logging setup for Part Fuzzer.

Everything logs below the ``part_fuzzer`` logger; modules use
``logging.getLogger(__name__)`` and inherit the handlers installed here.
Console output goes to stderr through rich so generated request tables on
stdout stay clean.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "part_fuzzer"

FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s:%(lineno)d %(message)s"
PLAIN_FORMAT = "%(levelname)s %(name)s: %(message)s"

_stderr = Console(stderr=True)
_configured = False


def _console_handler(rich_console: bool, show_time: bool, show_path: bool) -> logging.Handler:
    if not rich_console:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
        return handler

    handler = RichHandler(
        console=_stderr,
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=True,
        markup=False
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def _file_handler(log_file: Path) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def _drop_handlers(logger: logging.Logger):
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def configure_logging(
        level: str = "INFO",
        log_file: Optional[Path] = None,
        rich_console: bool = True,
        show_time: bool = True,
        show_path: bool = False
) -> logging.Logger:
    """
    Install the Part Fuzzer handlers, replacing any previous ones.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Also write detailed records to this file
        rich_console: Render console records with rich
        show_time: Show timestamps on the console
        show_path: Show the emitting source line on the console

    Returns:
        The package root logger
    """
    global _configured

    logger = logging.getLogger(ROOT_LOGGER)
    _drop_handlers(logger)
    logger.setLevel(level.upper())

    logger.addHandler(_console_handler(rich_console, show_time, show_path))
    if log_file:
        logger.addHandler(_file_handler(log_file))

    _configured = True
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get the package logger, or one of its children.

    The root logger is configured with defaults on first use when
    configure_logging has not run yet.

    Args:
        name: Child name relative to the package, e.g. ``"cli"``
    """
    if not _configured:
        configure_logging()
    if name:
        return logging.getLogger(f"{ROOT_LOGGER}.{name}")
    return logging.getLogger(ROOT_LOGGER)

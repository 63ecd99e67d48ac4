"""
Logging Module - Rich-backed logging for the planit_graph package.
==================================================================

Handlers are attached to the ``planit_graph`` package logger, not the root
logger, so an application embedding the engine keeps its own logging setup.
Log records go to stderr through Rich; command output goes to the shared
stdout console returned by ``get_console``.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "planit_graph"
DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_configured = False
_console = Console()
_log_console = Console(stderr=True)


def _console_handler(use_rich: bool, log_format: str) -> logging.Handler:
    if not use_rich:
        handler: logging.Handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(log_format))
        return handler

    handler = RichHandler(
        console=_log_console,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def setup_logging(
    level: str = "INFO",
    use_rich: bool = True,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    force: bool = False,
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_rich: Rich console handler instead of a plain stderr stream
        log_file: Optional file that also receives every record
        log_format: Format for plain and file handlers
        force: Replace handlers installed by an earlier call

    Returns:
        The ``planit_graph`` logger
    """
    global _configured

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if _configured and not force:
        return package_logger

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    log_format = log_format or DEFAULT_FORMAT

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    handlers = [_console_handler(use_rich, log_format)]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(log_format))
        handlers.append(file_handler)

    for handler in handlers:
        package_logger.addHandler(handler)
    package_logger.setLevel(numeric_level)
    _configured = True

    package_logger.debug(f"Logging ready: level={logging.getLevelName(numeric_level)}, file={log_file}")
    return package_logger


def setup_logging_from_settings() -> logging.Logger:
    """Configure the package logger from the ``logging`` settings section."""
    from planit_graph.shared.config import get_settings

    settings = get_settings()
    return setup_logging(
        level=settings.get_effective_log_level(),
        use_rich=settings.logging.rich_console,
        log_file=settings.logging.file or None,
        log_format=settings.logging.format,
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module, configuring package defaults on first use.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Layout started")
    """
    if not _configured:
        setup_logging()
    return logging.getLogger(name)


def get_console() -> Console:
    """Shared stdout console for command output."""
    return _console

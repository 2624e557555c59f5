"""
Logging configuration for Code Warden.

Terminal output goes through rich on stderr so that ``--json`` output on
stdout stays machine-readable.  Everything logs under the ``code_warden``
namespace; third-party server loggers are held at WARNING unless verbose.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "code_warden"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Chatty libraries pulled in by ``code-warden serve``
_NOISY_LOGGERS = ("uvicorn.access", "httpx", "asyncio")


def _level_for(verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return logging.WARNING


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Route Code Warden logs to a rich stderr handler and optionally a file.

    Safe to call more than once per process: handlers installed by an
    earlier call are replaced rather than stacked.

    Args:
        verbose: DEBUG level, with source paths and locals in tracebacks
        quiet: ERROR level only; wins over *verbose*
        log_file: Append plain-text logs here as well

    Returns:
        The ``code_warden`` logger
    """
    level = _level_for(verbose, quiet)

    rich_handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
        show_path=verbose,
    )
    rich_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    handlers: list[logging.Handler] = [rich_handler]
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)

    logger = logging.getLogger(ROOT_LOGGER)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Logger for a module, always inside the ``code_warden`` namespace.

    ``get_logger("pipeline")`` and ``get_logger("code_warden.pipeline")``
    return the same logger.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER)
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)

"""Logging setup for the command line."""

import sys

from loguru import logger

_FORMAT = "<green>{time:HH:mm:ss}</green> <level>{level: <7}</level> {message}"


def configure_logging(verbose: bool = False) -> None:
    """Route library logs to stderr.

    Args:
        verbose: Show DEBUG records (state transitions, retries) instead of WARNING and up
    """
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING", format=_FORMAT)

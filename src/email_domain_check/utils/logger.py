"""Logging setup for the command-line tool."""

import logging
import sys
from enum import Enum

# Libraries whose INFO output is per-request noise below debug verbosity
NOISY_LOGGERS = ("httpx", "httpcore")


class VerbosityLevel(Enum):
    """Output verbosity levels."""

    QUIET = "quiet"
    NORMAL = "normal"
    VERBOSE = "verbose"
    DEBUG = "debug"


LEVELS = {
    VerbosityLevel.QUIET: logging.ERROR,
    VerbosityLevel.NORMAL: logging.WARNING,
    VerbosityLevel.VERBOSE: logging.INFO,
    VerbosityLevel.DEBUG: logging.DEBUG,
}


def setup_logger(
    name: str = "email_domain_check",
    level: VerbosityLevel = VerbosityLevel.NORMAL,
) -> logging.Logger:
    """
    Send the package's log records to stderr at the chosen verbosity.

    Calling it again replaces the previous handler, so commands can be
    invoked repeatedly in one process.

    Args:
        name: Logger name
        level: Verbosity level enum

    Returns:
        Configured logger
    """
    log_level = LEVELS[level]
    logger = logging.getLogger(name)
    logger.handlers.clear()
    logger.setLevel(log_level)
    logger.propagate = False

    if level == VerbosityLevel.DEBUG:
        fmt = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        fmt = logging.Formatter("%(levelname)s: %(message)s")

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(fmt)
    logger.addHandler(handler)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.DEBUG if level == VerbosityLevel.DEBUG else logging.WARNING)

    return logger

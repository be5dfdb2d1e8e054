"""Logging configuration for FleetDeck.

All modules obtain their logger through :func:`get_logger` so that a single
call to :func:`setup_logging` from the CLI controls verbosity everywhere.
"""

from __future__ import annotations

import logging
import sys

ROOT_LOGGER_NAME = "fleetdeck"

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under the ``fleetdeck`` root logger.

    Args:
        name: Usually ``__name__`` of the calling module

    Returns:
        Logger instance
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure the ``fleetdeck`` logger hierarchy.

    Args:
        verbose: Emit DEBUG records
        quiet: Only emit WARNING and above (ignored when verbose is set)
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)

    # Replace handlers so repeated calls (tests, nested commands) don't stack
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
    root.propagate = False

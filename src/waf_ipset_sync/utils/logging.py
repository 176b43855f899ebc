"""Logging setup shared by the Lambda handler and the CLI."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str | int = logging.INFO) -> None:
    """Configure root logging.

    The Lambda runtime installs its own handler before our code runs; in that
    case only the level is adjusted.

    Args:
        level: Logging level name or number.
    """
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=DATE_FORMAT)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger."""
    return logging.getLogger(name)

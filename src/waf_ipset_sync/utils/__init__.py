"""Utility modules for logging and common functions."""

from waf_ipset_sync.utils.logging import get_logger, setup_logging

__all__ = [
    "get_logger",
    "setup_logging",
]

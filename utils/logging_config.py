"""
Centralized logger access for the zone view factor tools.
All modules should import get_logger from here so handlers configured by the
CLI apply everywhere.
"""
import logging


def get_logger(name):
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)

"""
Logging configuration for the Portfolio API
"""

import logging
import sys

import settings


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def setup_logging():
    """Send every module logger to stdout through the root logger."""
    logging.basicConfig(
        stream=sys.stdout,
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT,
        force=True,
    )
    # pymongo is chatty at DEBUG (heartbeats, topology changes)
    logging.getLogger("pymongo").setLevel(logging.WARNING)

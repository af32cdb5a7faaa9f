"""
Logging setup - plain stdlib logging with one shared format.

Modules just do `logger = logging.getLogger(__name__)`;
main.py calls configure_logging() once at import time.
"""

import logging

from app.core.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging():
    """Configure root logging. Safe to call more than once (uvicorn --reload)."""
    if logging.getLogger().handlers:
        return
    level = get_settings().log_level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)

    # pymongo is chatty at DEBUG
    logging.getLogger("pymongo").setLevel(logging.WARNING)

"""Core application configuration and utilities.

This package contains core functionality including:
- Configuration management (config.py)
- Logging setup (logging.py)
"""

from dag_engine.core.config import settings
from dag_engine.core.logging import get_logger, setup_logging

__all__ = [
    "get_logger",
    "settings",
    "setup_logging",
]

"""Core application configuration and utilities.

This package contains:
- Configuration management (config.py)
- Logging setup (logging.py)
- Base exceptions (exceptions.py)
"""

from workflow_builder.core.config import settings
from workflow_builder.core.exceptions import AppError

__all__ = [
    "AppError",
    "settings",
]

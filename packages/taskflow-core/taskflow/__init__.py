"""
TaskFlow Core Library

Gamified personal task management with support for PostgreSQL and SQLite.
"""

__version__ = "0.1.0"

from taskflow.config import TaskflowConfig, load_config
from taskflow.db import DatabaseAdapter, get_adapter

__all__ = [
    "load_config",
    "TaskflowConfig",
    "get_adapter",
    "DatabaseAdapter",
]

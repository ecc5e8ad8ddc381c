"""
Database abstraction layer supporting PostgreSQL and SQLite.
"""

from taskflow.db.factory import close_adapter, get_adapter, init_adapter, reset_adapter, set_adapter
from taskflow.db.interface import DatabaseAdapter, affected_rows
from taskflow.db.migrations import run_migrations

__all__ = [
    "DatabaseAdapter",
    "affected_rows",
    "close_adapter",
    "get_adapter",
    "init_adapter",
    "reset_adapter",
    "run_migrations",
    "set_adapter",
]

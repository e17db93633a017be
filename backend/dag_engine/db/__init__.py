"""Database module.

TAG: [DATABASE]

This module provides database session management and engine configuration
for the audit store.
"""

from dag_engine.db.session import async_session, engine, get_db, init_db

__all__ = [
    "async_session",
    "engine",
    "get_db",
    "init_db",
]

"""Database initialization for the playoff pool schema.

This module provides utilities for setting up and managing the database schema.
It's typically used during:
1. Initial application setup (`playoff-pool init-db`)
2. Development environment resets

Database Lifecycle Operations:
- create_database(): Initialize schema from SQLAlchemy models
- drop_database(): Remove all tables (destructive operation)
- reset_database(): Complete refresh (drop + create)

For Beginners:

Idempotent Operations: create_all() safely skips tables that already exist,
while drop_all() safely skips tables that don't.

Directory Management: For file-based databases (SQLite), the directory must
exist before SQLite can create the database file.
"""

import logging
from pathlib import Path

from sqlalchemy.engine import Engine, make_url

from .connection import engine as default_engine
from .models import Base

logger = logging.getLogger(__name__)


def _ensure_sqlite_directory(bind: Engine) -> None:
    url = make_url(str(bind.url))
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def create_database(bind: Engine | None = None):
    """Create database schema and all tables from SQLAlchemy models.

    Safe to run multiple times. Exceptions are logged with their stack trace
    and re-raised so the caller knows the operation failed.
    """
    bind = bind or default_engine
    try:
        _ensure_sqlite_directory(bind)
        Base.metadata.create_all(bind=bind)
        logger.info("Database tables created successfully")
    except Exception:
        logger.exception("Failed to create database")
        raise


def drop_database(bind: Engine | None = None):
    """Drop all database tables - DESTRUCTIVE OPERATION.

    WARNING: This operation cannot be undone. All teams, players, stats and
    entries will be lost.
    """
    bind = bind or default_engine
    try:
        Base.metadata.drop_all(bind=bind)
        logger.info("Database tables dropped successfully")
    except Exception:
        logger.exception("Failed to drop database")
        raise


def reset_database(bind: Engine | None = None):
    """Reset database by dropping and recreating all tables."""
    logger.info("Resetting database...")
    drop_database(bind)
    create_database(bind)
    logger.info("Database reset complete")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_database()

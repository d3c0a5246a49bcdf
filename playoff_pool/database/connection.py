"""Database connection and session management using SQLAlchemy.

This module implements the core database connectivity patterns for the application.
It handles:
1. Database engine creation with connection pooling
2. Session factory configuration for ORM operations
3. Session patterns for the CLI, the importer and FastAPI routes

Key Concepts for Beginners:

Database Engine: The core interface to the database. Think of it as the
"connection factory" that manages the actual database connections.

Session: A workspace for ORM operations. All database operations (queries,
inserts, updates) happen within a session context.

Transactions and the importer: an import runs inside ONE session. Every stat
row upsert is flushed before the recalculation step reads the table back, and
the commit happens when the session context exits successfully.

Session Patterns Provided:
1. get_session(): Generator with automatic commit/rollback
2. get_session_context(): Context manager for with statements
3. get_db(): FastAPI dependency injection pattern
"""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from ..config.settings import settings


def _engine_options(database_url: str) -> dict:
    """Pool options that suit the configured backend.

    SQLite connections are shared across FastAPI worker threads, and in-memory
    SQLite does not take a pool size at all.
    """
    if database_url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if ":memory:" not in database_url:
            options["pool_size"] = settings.database_pool_size
        return options
    return {"pool_size": settings.database_pool_size, "pool_pre_ping": True}


# Create the database engine - created once at module load time and reused
engine = create_engine(
    settings.database_url,
    echo=settings.database_echo,  # Log all SQL queries (useful for debugging)
    **_engine_options(settings.database_url),
)

# Session factory - produces database sessions throughout the app
SessionLocal = sessionmaker(
    autocommit=False,  # Require explicit session.commit() for transactions
    autoflush=False,  # Don't automatically flush changes before queries
    bind=engine,
)


def get_session() -> Generator[Session, None, None]:
    """Get database session with automatic commit/rollback and cleanup.

    Usage:
        for session in get_session():
            team = session.query(Team).first()

    Error Handling:
    If any exception occurs, the transaction is rolled back and the
    exception is re-raised. This ensures database consistency.
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def get_session_context() -> Generator[Session, None, None]:
    """Context manager wrapper for database sessions.

    Usage:
        with get_session_context() as session:
            result = import_stats(session, records)
            # Automatically committed and closed when exiting 'with' block
    """
    yield from get_session()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency for database sessions.

    Unlike get_session(), it does NOT commit: route handlers call
    db.commit() themselves once the operation has succeeded. It only
    guarantees cleanup.

    Usage in FastAPI routes:
        @router.post("/recalculate")
        def recalculate(db: Session = Depends(get_db)):
            ...
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()

"""
Database Configuration Module

This module sets up SQLAlchemy 2.0 for the Library API.

We use SYNCHRONOUS SQLAlchemy: FastAPI runs sync route handlers in its
threadpool, and each request gets its own session.

Session Management Pattern
==========================
We use the "session per request" pattern:
1. Request arrives → create a new session
2. Use session for all database operations in that request
3. Commit on success (repositories call commit), rollback on failure
4. Close session when request ends

This is implemented using FastAPI's dependency injection.
"""

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from app.config import get_settings

settings = get_settings()


def engine_options(database_url: str) -> dict[str, Any]:
    """
    Engine keyword arguments for a database URL.

    SQLite uses a single-file (or in-memory) database that doesn't support
    the pool sizing options, and its connections must be usable from the
    threadpool that runs sync handlers.
    """
    if database_url.startswith("sqlite"):
        return {
            "connect_args": {"check_same_thread": False},
            "echo": settings.debug,
        }
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": True,  # Verify connections are alive before using
        "echo": settings.debug,  # Log SQL in debug mode
    }


# =============================================================================
# Database Engine
# =============================================================================
engine = create_engine(settings.database_url, **engine_options(settings.database_url))


# =============================================================================
# Session Factory
# =============================================================================
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# =============================================================================
# Base Model Class
# =============================================================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Alembic uses Base.metadata to discover models for migrations.
    """
    pass


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Code before yield creates the session; the finally block closes it
    when the request ends, even if the handler raised.

    Yields:
        SQLAlchemy Session instance
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =============================================================================
# Utility Functions
# =============================================================================
def create_tables() -> None:
    """
    Create all database tables.

    Used by the seed script for local development. In production, use
    Alembic migrations instead.
    """
    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    """
    Drop all database tables.

    DANGER: This deletes all data! Development and testing only.
    """
    Base.metadata.drop_all(bind=engine)

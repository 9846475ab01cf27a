"""
Database connection and session management.

Provides SQLAlchemy engine, session factory, and dependency injection
for database sessions in FastAPI endpoints.
"""

import logging
from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from sqlalchemy.pool import QueuePool, StaticPool

from .config import settings


logger = logging.getLogger(__name__)


# =============================================================================
# SQLAlchemy Base
# =============================================================================

Base = declarative_base()


# =============================================================================
# Engine Configuration
# =============================================================================

def get_engine_url() -> str:
    """
    Get database URL from settings.

    Returns:
        Database connection URL string
    """
    return settings.database_url


def _engine_options() -> dict:
    """
    Pool options for the configured backend.

    SQLite (used by the test suite and local demos) cannot take the
    QueuePool sizing arguments; an in-memory database must share one
    connection or every session would see an empty schema.
    """
    if settings.is_sqlite:
        options = {
            "connect_args": {"check_same_thread": False},
            "echo": settings.debug,
        }
        if get_engine_url() in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return options

    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "poolclass": QueuePool,
        "pool_pre_ping": True,  # Enable connection health checks
        "pool_recycle": settings.db_pool_recycle,
        "pool_timeout": settings.db_pool_timeout,
        "echo": settings.debug,  # Log SQL queries in debug mode
    }


engine = create_engine(get_engine_url(), **_engine_options())


# =============================================================================
# Session Factory
# =============================================================================

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


# =============================================================================
# Event Listeners for Connection Management
# =============================================================================

@event.listens_for(engine, "connect")
def set_connection_settings(dbapi_connection, connection_record):
    """
    Configure connection settings when a new connection is created.

    PostgreSQL sessions run in UTC with a statement timeout; SQLite
    connections get foreign key enforcement switched on.
    """
    cursor = dbapi_connection.cursor()
    if settings.is_sqlite:
        cursor.execute("PRAGMA foreign_keys=ON")
    else:
        cursor.execute("SET timezone='UTC'")
        cursor.execute("SET statement_timeout = '30s'")
    cursor.close()


# =============================================================================
# Dependency Injection
# =============================================================================

def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database session injection.

    Creates a new session for each request and ensures proper cleanup.

    Yields:
        SQLAlchemy Session instance

    Example:
        @router.get("/leads")
        def get_leads(db: Session = Depends(get_db)):
            return db.query(Lead).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =============================================================================
# Database Utilities
# =============================================================================

def init_db() -> None:
    """
    Initialize database tables.

    Creates all tables defined in models. Safe to call repeatedly; existing
    tables are left untouched.
    """
    # Import models so they register on Base.metadata
    from .. import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def check_db_connection() -> bool:
    """
    Check if database connection is healthy.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection check failed: {e}")
        return False

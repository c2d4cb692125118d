"""Database configuration and setup."""

import logging
import time

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Query performance logger
query_logger = logging.getLogger("sqlalchemy.query_performance")

# Base class for models
Base = declarative_base()


def _is_sqlite_url(url: str) -> bool:
    """Check if database URL is for SQLite."""
    return url.startswith("sqlite:")


def _is_memory_sqlite_url(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def _setup_sqlite_pragma(dbapi_connection, connection_record):
    """Set SQLite pragmas for durability under concurrent access."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA busy_timeout=5000")  # 5 second timeout for concurrent access
    cursor.close()


def _setup_query_logging(engine: Engine, enable_query_logging: bool = False):
    """Set up query performance logging if enabled."""
    if not enable_query_logging:
        return

    @event.listens_for(engine, "before_cursor_execute")
    def receive_before_cursor_execute(
        conn, cursor, statement, parameters, context, executemany
    ):
        context._query_start_time = time.time()

    @event.listens_for(engine, "after_cursor_execute")
    def receive_after_cursor_execute(
        conn, cursor, statement, parameters, context, executemany
    ):
        total = time.time() - context._query_start_time

        # Log slow queries (>100ms) as warnings, others as debug
        if total > 0.1:
            query_logger.warning(f"Slow query ({total:.3f}s): {statement[:200]}")
        else:
            query_logger.debug(f"Query ({total:.3f}s): {statement[:100]}")


def create_database_engine(
    database_url: str, echo: bool = False, enable_query_logging: bool = False
) -> Engine:
    """Create database engine with appropriate configuration."""
    if _is_memory_sqlite_url(database_url):
        # One shared connection, otherwise every session sees an empty database
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )
    elif _is_sqlite_url(database_url):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=echo,
        )
        event.listen(engine, "connect", _setup_sqlite_pragma)
    else:
        engine = create_engine(database_url, echo=echo, pool_pre_ping=True)

    _setup_query_logging(engine, enable_query_logging)

    return engine


def create_session_factory(engine: Engine, create_tables: bool = True) -> sessionmaker:
    """Create a session factory bound to ``engine``, creating tables if asked."""
    if create_tables:
        # Register models on the metadata before creating tables
        from . import models  # noqa: F401

        Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_database(database_url: str, echo: bool = False) -> sessionmaker:
    """Create an engine and session factory for ``database_url``."""
    engine = create_database_engine(database_url, echo=echo)
    return create_session_factory(engine)

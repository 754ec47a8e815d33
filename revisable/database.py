"""Database configuration and session management."""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .core.config import Settings, get_settings
from .core.logging_config import mask_url

logger = logging.getLogger(__name__)

# Create base class for models
Base = declarative_base()


def _is_memory_url(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def build_engine(settings: Optional[Settings] = None, database_url: Optional[str] = None) -> Engine:
    """Create an engine with database-specific tuning.

    *database_url* overrides ``settings.database_url`` when given.
    """
    settings = settings or get_settings()
    url = database_url or settings.database_url

    if url.startswith("sqlite"):
        kwargs: dict = {
            "connect_args": {"check_same_thread": False, "timeout": settings.sqlite_busy_timeout},
        }
        if _is_memory_url(url):
            # One shared connection, otherwise each checkout sees an empty database.
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)

        # SQLite defaults foreign_keys to OFF, and pysqlite's implicit BEGIN
        # breaks SAVEPOINT. Take over transaction control on every connection.
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _do_begin(conn):
            # Every unit of work holds the write lock from its first statement,
            # so concurrent appenders queue for up to sqlite_busy_timeout.
            conn.exec_driver_sql("BEGIN IMMEDIATE")
    else:
        engine = create_engine(
            url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
            # Detects stale connections before use.
            pool_pre_ping=True,
        )

    logger.debug(f"Engine created for {mask_url(url)}")
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to *engine*."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create the live-entity and revision tables for every registered model."""
    # Import models so their tables are attached to Base.metadata.
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    """Unit of work: commit on success, roll back on any exception.

    A failed block leaves no partial revision row and no partial re-parenting.
    """
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

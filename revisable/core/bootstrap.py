"""Startup wiring: logging, engine, tables, session factory."""

import logging
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Engine, text
from sqlalchemy.orm import Session, sessionmaker

from ..database import build_engine, init_db, make_session_factory, session_scope
from .config import Settings, get_settings
from .logging_config import mask_url, setup_logging

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Everything a caller needs to open units of work."""
    settings: Settings
    engine: Engine
    session_factory: sessionmaker

    def session(self) -> AbstractContextManager[Session]:
        """Unit of work that commits on success and rolls back on error."""
        return session_scope(self.session_factory)


def bootstrap(settings: Optional[Settings] = None, configure_logging: bool = True) -> Runtime:
    """Configure logging, connect, and create tables.

    Raises whatever SQLAlchemy raises when the database is unreachable.
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(log_level=settings.log_level, log_format=settings.log_format)

    engine = build_engine(settings)
    logger.info(f"Connecting to database: {mask_url(settings.database_url)}")
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))

    init_db(engine)
    logger.info("Revision tables ready")
    return Runtime(settings=settings, engine=engine, session_factory=make_session_factory(engine))

"""Engine and session management."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .config import Settings, settings
from .models import Base

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given URL.

    SQLite connections get foreign keys enabled so batch files are
    removed together with their batch.

    Args:
        database_url: SQLAlchemy database URL
        echo: Log all SQL statements

    Returns:
        Configured engine
    """
    if database_url.startswith("sqlite:///"):
        db_file = database_url[len("sqlite:///") :]
        if db_file and db_file != ":memory:":
            Path(db_file).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(database_url, echo=echo, future=True)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def init_db(engine: Engine) -> None:
    """Create all tables if they don't exist yet."""
    Base.metadata.create_all(bind=engine)


def get_session_factory(
    app_settings: Optional[Settings] = None,
) -> sessionmaker:
    """
    Build a session factory for the configured database, creating tables.

    Args:
        app_settings: Settings to use (defaults to the global settings)

    Returns:
        Session factory bound to a fresh engine
    """
    app_settings = app_settings or settings
    engine = create_db_engine(app_settings.database_url, echo=app_settings.sql_echo)
    init_db(engine)
    logger.debug(f"Using database {app_settings.database_url}")
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Provide a transactional scope around a series of operations.

    Commits on success and rolls back on any exception.
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

"""Engine, session scope and schema creation for the resume store.

The engine is created lazily on first use from ``DB_URL`` (default: a
``resume_builder.db`` SQLite file at the project root) and the schema is
created at the same moment. Services open a ``get_session()`` block per
operation; everything inside it commits together or rolls back together,
which is what keeps a rejected resume update from leaving partial writes.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base shared by every resume_builder model."""


_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None


def get_database_url() -> str:
    """Return ``DB_URL`` if set, else the project-local SQLite file."""
    env_url = os.getenv("DB_URL")
    if env_url:
        return env_url

    db_path = Path(__file__).resolve().parents[3] / "resume_builder.db"
    return URL.create("sqlite", database=str(db_path)).render_as_string(hide_password=False)


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """Turn on FK enforcement (and ON DELETE CASCADE) for SQLite connections."""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, _connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _get_engine() -> Engine:
    global _engine
    if _engine is None:
        url = get_database_url()
        _engine = create_engine(url, echo=False)
        enable_sqlite_foreign_keys(_engine)
        _create_schema(_engine)
        logger.info("Connected to %s", _engine.url.render_as_string(hide_password=True))
    return _engine


def _create_schema(engine: Engine) -> None:
    # Models must be imported so their tables are registered on Base.metadata
    import resume_builder.data.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def _get_session_factory() -> sessionmaker[Session]:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(bind=_get_engine(), autoflush=False, expire_on_commit=False)
    return _SessionLocal


def init_db() -> None:
    """Connect and create any missing tables now instead of on first query."""
    _get_engine()


def reset_engine() -> None:
    """Dispose the current engine so the next session reconnects using ``DB_URL``."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


@contextmanager
def get_session() -> Iterator[Session]:
    """Yield a session that commits on success and rolls back on any error."""
    session = _get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

"""SQLAlchemy 2.x engine and session (SQLite and Postgres)."""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from logging import getLogger

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from consult_review.models import Base

logger = getLogger(__name__)

# Module-level engine/session_factory; set via init_db()
_engine = None
_SessionLocal: sessionmaker[Session] | None = None

_IS_SQLITE = False


def init_db(database_url: str, echo: bool = False) -> None:
    """Create engine and session factory. Call once at startup.
    SQLite: create_all. Postgres: engine only (schema via Alembic).
    """
    global _engine, _SessionLocal, _IS_SQLITE
    _IS_SQLITE = "sqlite" in database_url
    kwargs: dict = {}
    if _IS_SQLITE:
        kwargs["connect_args"] = {"check_same_thread": False}
        # One shared connection, otherwise every session gets its own empty :memory: db
        if ":memory:" in database_url:
            kwargs["poolclass"] = StaticPool
    _engine = create_engine(database_url, echo=echo, **kwargs)
    _SessionLocal = sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=_engine
    )
    if _IS_SQLITE:
        Base.metadata.create_all(bind=_engine)
        logger.info("SQLite schema ensured at %s", database_url)
    # Postgres: schema is applied via Alembic (migrate target); do not create_all here


def get_engine():
    """Return the global engine. Raises if init_db() was not called."""
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    if _SessionLocal is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _SessionLocal


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Provide a transactional scope for a block."""
    factory = get_session_factory()
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

"""Engine and unit-of-work helpers shared by every record store."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from mealmerge.config import get_settings
from mealmerge.db.models import Base

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def _database_url(database_path: Path) -> str:
    if str(database_path) == ":memory:":
        return "sqlite://"
    database_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{database_path}"


def get_engine(database_path: Path | None = None) -> Engine:
    """Return the process-wide engine, creating the schema on first use."""
    global _engine, _session_factory

    if _engine is not None:
        return _engine

    target = database_path or get_settings().database_path
    # Handlers run in a thread pool, so connections may cross threads.
    _engine = create_engine(
        _database_url(target),
        future=True,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(_engine)
    logger.debug("Record stores initialized at %s", target)
    _session_factory = sessionmaker(bind=_engine, autoflush=False, expire_on_commit=False, future=True)
    return _engine


def get_session() -> Session:
    """Return a new session bound to the shared engine."""

    if _session_factory is None:
        get_engine()
    assert _session_factory is not None  # for mypy
    return _session_factory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Yield a session that commits on success and rolls back on any error."""
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def reset_repository_state() -> None:
    """Dispose the cached engine so the next call picks up fresh settings."""

    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


__all__ = ["get_engine", "get_session", "session_scope", "reset_repository_state"]

"""Engine and session lifecycle owned by the caller of the repositories.

Repositories only borrow sessions. This module is where they come from:
``session_scope()`` opens one, commits or rolls back, and closes it.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import MetaData, create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from simpledao.core.settings import settings

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def engine_options(database_url: str) -> dict[str, Any]:
    """Keyword arguments for ``create_engine`` tuned per backend."""

    backend = make_url(database_url).get_backend_name()
    connect_args: dict[str, Any] = {}
    if backend == "sqlite":
        # sessions may be handed across threads by the calling framework
        connect_args["check_same_thread"] = False
    elif backend == "postgresql":
        connect_args["connect_timeout"] = 1
    return {
        "connect_args": connect_args,
        "echo": settings.database_echo,
        "pool_pre_ping": settings.database_pool_pre_ping,
    }


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_engine(
            settings.database_url, **engine_options(settings.database_url)
        )
    return _engine


def get_session() -> Session:
    """Open a session on the shared engine; the caller must close it."""

    global _session_factory
    if _session_factory is None:
        # autoflush stays off so repositories decide when SQL is flushed
        _session_factory = sessionmaker(
            bind=get_engine(),
            autoflush=False,
            expire_on_commit=False,
        )
    return _session_factory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Transaction boundary for repository calls."""

    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(metadata: MetaData | None = None) -> None:
    """Create every table known to ``metadata`` (defaults to ``Base.metadata``)."""

    if metadata is None:
        from simpledao.models import Base

        metadata = Base.metadata
    metadata.create_all(get_engine())


def dispose_engine() -> None:
    """Drop the cached engine so the next call honours a new ``database_url``."""

    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None

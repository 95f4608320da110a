# bookshelf/database.py
"""Database engine and session factory used across the application."""

from __future__ import annotations

from functools import lru_cache
from typing import Iterator, Optional

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from .config import get_settings


def build_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine for ``url``.

    SQLite connections are shared across FastAPI's worker threads, and an
    in-memory database only lives as long as its single connection, so
    it is pinned with ``StaticPool``.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, echo=echo)
    kwargs = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, echo=echo, **kwargs)
    event.listen(engine, "connect", _register_sqlite_functions)
    return engine


def _unicode_lower(value: Optional[str]) -> Optional[str]:
    return value.lower() if isinstance(value, str) else value


def _register_sqlite_functions(dbapi_connection, connection_record) -> None:
    # SQLite's built-in lower() only folds ASCII; title search compares
    # against Python's str.lower(), so both sides must fold the same way.
    dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


@lru_cache
def get_engine() -> Engine:
    settings = get_settings()
    return build_engine(settings.database_url, echo=settings.database_echo)


def init_db(engine: Engine) -> None:
    """Create all tables."""
    # Registers the table models with the metadata.
    from .catalog import tables  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session() -> Iterator[Session]:
    """Yield one session per request."""
    with Session(get_engine(), expire_on_commit=False) as session:
        yield session

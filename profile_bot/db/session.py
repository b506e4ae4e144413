"""Database engine and session factory."""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker


@lru_cache(maxsize=None)
def get_engine(database_url: str) -> Engine:
    """Return a shared engine for a database URL."""
    if not database_url:
        raise RuntimeError("DATABASE_URL is not set. Configure it in the environment or .env file.")
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Build the session factory used by the SQL storage backend."""
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )

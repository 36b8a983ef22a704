# backend/equipdb/database.py
"""
Database configuration for equipdb.

Key goals:
- The engine and session factory belong to one `Database` object that the
  application creates at startup and disposes at shutdown. Nothing here is
  created at import time.
- Sensible connection pooling for 24/7 uptime on PostgreSQL.
- SQLite (dev + tests) works without extra setup.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import Settings

# Declarative base for all models
Base = declarative_base()


def _engine_kwargs(url: str, settings: Optional[Settings]) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        kwargs: Dict[str, Any] = {
            "connect_args": {"check_same_thread": False},
        }
        # One shared connection, otherwise every pool checkout gets a new
        # empty in-memory database.
        if ":memory:" in url or url in {"sqlite://", "sqlite+pysqlite://"}:
            kwargs["poolclass"] = StaticPool
        return kwargs

    return {
        "pool_pre_ping": True,                # detect dead connections
        "pool_size": settings.db_pool_size if settings else 10,
        "max_overflow": settings.db_max_overflow if settings else 20,
        "pool_timeout": settings.db_pool_timeout if settings else 30,
        "pool_recycle": settings.db_pool_recycle if settings else 1800,
    }


class Database:
    """Owns the engine and session factory for one running application."""

    def __init__(self, url: str, settings: Optional[Settings] = None) -> None:
        self.url = url
        self.engine: Engine = create_engine(url, **_engine_kwargs(url, settings))
        self.session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(settings.database_url, settings)

    def create_all(self) -> None:
        # Model modules must be imported so their tables are on Base.metadata.
        import equipdb  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        return self.session_factory()

    def dispose(self) -> None:
        self.engine.dispose()


# -------------------------------------------------------------------
# DEPENDENCIES (for FastAPI)
# -------------------------------------------------------------------


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_db(request: Request) -> Iterator[Session]:
    """
    Per-request session bound to the application's Database.
    """
    db = get_database(request).session()
    try:
        yield db
    finally:
        db.close()

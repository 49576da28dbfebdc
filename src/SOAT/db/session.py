# src/SOAT/db/session.py
from __future__ import annotations

import os
from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from SOAT.core.config import settings
from SOAT.db.base import Base

# ---------------------------------------------------------------------------
# Engine configuration
# ---------------------------------------------------------------------------

# Use NullPool in tests (or when explicitly requested) to avoid sharing the same
# connection across tasks.
USE_NULLPOOL = (
    os.getenv("SQLALCHEMY_NULLPOOL", "0") == "1"
    or bool(getattr(settings, "TESTING", False))
)


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def build_engine(url: Optional[str] = None, *, echo: Optional[bool] = None) -> AsyncEngine:
    """Create an async engine for ``url`` (defaults to settings.DATABASE_URL)."""
    url = url or settings.DATABASE_URL
    kwargs: dict = {"echo": settings.DB_ECHO if echo is None else echo}

    if _is_sqlite(url):
        # one connection per unit of work; sqlite serializes writers itself
        kwargs["poolclass"] = NullPool
        kwargs["connect_args"] = {"timeout": 30}
    else:
        kwargs["pool_pre_ping"] = True  # protects against stale connections
        if USE_NULLPOOL:
            kwargs["poolclass"] = NullPool

    engine = create_async_engine(url, **kwargs)

    if _is_sqlite(url):
        @event.listens_for(engine.sync_engine, "connect")
        def _sqlite_pragmas(dbapi_conn, _record):  # pragma: no cover - driver hook
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.close()

    return engine


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


# ---------------------------------------------------------------------------
# Process-wide defaults (CLI and scripts). The FastAPI app builds its own pair
# in its lifespan and stores them on app.state.
# ---------------------------------------------------------------------------
_engine: Optional[AsyncEngine] = None
_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None


def get_engine() -> AsyncEngine:
    """Expose the default engine (e.g., for health checks / pings)."""
    global _engine
    if _engine is None:
        _engine = build_engine()
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Return the process-wide async sessionmaker."""
    global _sessionmaker
    if _sessionmaker is None:
        _sessionmaker = build_sessionmaker(get_engine())
    return _sessionmaker


async def create_all(engine: Optional[AsyncEngine] = None) -> None:
    """Create every table known to the metadata (dev/test convenience; prod uses Alembic)."""
    import SOAT.db.models  # noqa: F401  (register mappers)

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ---------------------------------------------------------------------------
# FastAPI dependencies (bound to the app-scoped sessionmaker)
# ---------------------------------------------------------------------------

def app_sessionmaker(request: Request) -> async_sessionmaker[AsyncSession]:
    return getattr(request.app.state, "async_sessionmaker", None) or get_sessionmaker()


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with app_sessionmaker(request)() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise

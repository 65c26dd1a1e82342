"""
iamauth.db.session

Async SQLAlchemy engine and session factory for the role store and audit trail.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from iamauth.settings import Settings

# Seconds SQLite waits on a locked database before failing; audit writes from concurrent
# logins contend on the same file.
SQLITE_BUSY_TIMEOUT = 30


def create_engine(settings: Settings) -> AsyncEngine:
    connect_args: dict[str, Any] = {}
    if settings.database_url.startswith("sqlite"):
        connect_args["timeout"] = SQLITE_BUSY_TIMEOUT
    return create_async_engine(
        settings.database_url,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False lets role snapshots outlive the session that loaded them.
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)

"""
iamauth.db.init_db

DB initialization helper.

Responsibilities:
- Create the role and audit tables if they don't exist.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from iamauth.db import models  # noqa: F401  # register tables on Base.metadata
from iamauth.db.base import Base


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

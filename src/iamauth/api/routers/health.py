"""
iamauth.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Liveness probe (`/healthz`).
- Readiness probe (`/readyz`): role store database reachable.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from iamauth.api.deps import db_session

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(session: AsyncSession = Depends(db_session)) -> dict[str, str]:
    # The STS endpoint is not probed; an outage there surfaces as upstream login failures.
    await session.execute(text("SELECT 1"))
    return {"status": "ready"}

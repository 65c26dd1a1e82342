"""
iamauth.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Encapsulate app.state access patterns (sessionmaker, role store, login service).
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from iamauth.services.login_service import LoginService
from iamauth.services.role_store import RoleStore


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # Created on app startup in `iamauth.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


def role_store(request: Request) -> RoleStore:
    return request.app.state.role_store  # type: ignore[attr-defined]


def login_service(request: Request) -> LoginService:
    return request.app.state.login_service  # type: ignore[attr-defined]

"""
iamauth.services.role_store

Role store collaborator with a narrow get/set interface.

Responsibilities:
- Serialize access to role bindings behind one lock owned by the store.
- Hand out immutable `RoleEntry` snapshots so callers never hold live ORM rows.
- Canonicalize bound principal ARNs on write.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from iamauth.db.models import CURRENT_ROLE_VERSION, AuthType, IamRole
from iamauth.db.repositories.roles import RoleRepo
from iamauth.iam.arn import canonicalize_arn
from iamauth.iam.errors import MalformedInput


@dataclass(frozen=True, slots=True)
class RoleEntry:
    name: str
    auth_type: AuthType
    bound_iam_principal_arn: str = ""
    token_roles: tuple[str, ...] = field(default_factory=tuple)
    version: int = CURRENT_ROLE_VERSION

    @classmethod
    def from_row(cls, row: IamRole) -> RoleEntry:
        return cls(
            name=row.name,
            auth_type=AuthType(row.auth_type),
            bound_iam_principal_arn=row.bound_iam_principal_arn or "",
            token_roles=tuple(row.token_roles or ()),
            version=row.version,
        )


class RoleStore:
    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        lock: asyncio.Lock | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._lock = lock or asyncio.Lock()

    async def get_role(self, name: str) -> RoleEntry | None:
        async with self._lock:
            async with self._session_factory() as session:
                row = await RoleRepo(session).get(name.lower())
                return RoleEntry.from_row(row) if row is not None else None

    async def list_roles(self) -> list[str]:
        async with self._lock:
            async with self._session_factory() as session:
                return await RoleRepo(session).list_names()

    async def set_role(self, name: str, entry: RoleEntry) -> RoleEntry:
        if not name:
            raise MalformedInput("missing role name", reason="role_name")
        bound = entry.bound_iam_principal_arn
        if entry.auth_type is AuthType.iam and not bound:
            raise MalformedInput(
                "iam roles need a bound_iam_principal_arn", reason="role_bound_arn"
            )
        if bound:
            bound = canonicalize_arn(bound)

        async with self._lock:
            async with self._session_factory() as session:
                row = await RoleRepo(session).upsert(
                    name=name.lower(),
                    auth_type=entry.auth_type,
                    bound_iam_principal_arn=bound,
                    token_roles=list(entry.token_roles),
                )
                stored = RoleEntry.from_row(row)
                await session.commit()
                return stored

    async def delete_role(self, name: str) -> bool:
        async with self._lock:
            async with self._session_factory() as session:
                deleted = await RoleRepo(session).delete(name.lower())
                await session.commit()
                return deleted


# --- Module Notes -----------------------------------------------------------
# Role names are case-insensitive (stored lowercased). One `RoleStore` lock is created per app
# in `api.app.create_app` so readers and writers in the same process never interleave.

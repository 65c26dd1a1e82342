"""
iamauth.db.repositories.roles

Repository for `IamRole` entities.

Responsibilities:
- Fetch, upsert, list and delete role bindings by name.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from iamauth.db.models import CURRENT_ROLE_VERSION, AuthType, IamRole


class RoleRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, name: str) -> IamRole | None:
        return await self._session.get(IamRole, name)

    async def list_names(self) -> list[str]:
        stmt = select(IamRole.name).order_by(IamRole.name)
        return list((await self._session.execute(stmt)).scalars().all())

    async def upsert(
        self,
        *,
        name: str,
        auth_type: AuthType,
        bound_iam_principal_arn: str,
        token_roles: list[str],
    ) -> IamRole:
        role = await self._session.get(IamRole, name, with_for_update=True)
        if role is None:
            role = IamRole(name=name)
            self._session.add(role)
        role.auth_type = auth_type
        role.bound_iam_principal_arn = bound_iam_principal_arn
        role.token_roles = list(token_roles)
        role.version = CURRENT_ROLE_VERSION
        await self._session.flush()
        return role

    async def delete(self, name: str) -> bool:
        role = await self._session.get(IamRole, name, with_for_update=True)
        if role is None:
            return False
        await self._session.delete(role)
        await self._session.flush()
        return True

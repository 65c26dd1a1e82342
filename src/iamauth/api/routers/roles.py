"""
iamauth.api.routers.roles

Role administration endpoints.

Responsibilities:
- Create/replace, read, list and delete role bindings (admin only).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field
from starlette.status import HTTP_204_NO_CONTENT, HTTP_404_NOT_FOUND

from iamauth.api.deps import role_store
from iamauth.auth.deps import require_roles
from iamauth.db.models import AuthType
from iamauth.services.role_store import RoleEntry, RoleStore

router = APIRouter(
    prefix="/v1/roles",
    tags=["roles"],
    dependencies=[Depends(require_roles("admin"))],
)


class RoleWriteRequest(BaseModel):
    auth_type: AuthType = AuthType.iam
    bound_iam_principal_arn: str = Field(default="", max_length=2048)
    token_roles: list[str] = Field(default_factory=list)


class RoleResponse(BaseModel):
    name: str
    auth_type: AuthType
    bound_iam_principal_arn: str
    token_roles: list[str]
    version: int

    @classmethod
    def from_entry(cls, entry: RoleEntry) -> RoleResponse:
        return cls(
            name=entry.name,
            auth_type=entry.auth_type,
            bound_iam_principal_arn=entry.bound_iam_principal_arn,
            token_roles=list(entry.token_roles),
            version=entry.version,
        )


@router.get("")
async def list_roles(roles: RoleStore = Depends(role_store)) -> dict[str, list[str]]:
    return {"roles": await roles.list_roles()}


@router.put("/{name}", response_model=RoleResponse)
async def put_role(
    name: str,
    body: RoleWriteRequest,
    roles: RoleStore = Depends(role_store),
) -> RoleResponse:
    entry = RoleEntry(
        name=name,
        auth_type=body.auth_type,
        bound_iam_principal_arn=body.bound_iam_principal_arn,
        token_roles=tuple(body.token_roles),
    )
    return RoleResponse.from_entry(await roles.set_role(name, entry))


@router.get("/{name}", response_model=RoleResponse)
async def get_role(name: str, roles: RoleStore = Depends(role_store)) -> RoleResponse:
    entry = await roles.get_role(name)
    if entry is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Role not found")
    return RoleResponse.from_entry(entry)


@router.delete("/{name}", status_code=HTTP_204_NO_CONTENT)
async def delete_role(name: str, roles: RoleStore = Depends(role_store)) -> Response:
    if not await roles.delete_role(name):
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Role not found")
    return Response(status_code=HTTP_204_NO_CONTENT)

"""
iamauth.api.routers.dev_auth

Bootstrap tokens for the role admin API in non-production environments.
"""

from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from starlette.status import HTTP_404_NOT_FOUND

from iamauth.auth.jwt import JwtConfig, issue_token
from iamauth.auth.models import ADMIN_ROLE
from iamauth.observability.logging import get_logger
from iamauth.settings import Settings, get_settings

log = get_logger(__name__)

router = APIRouter(prefix="/v1/dev", tags=["dev"])


class BootstrapTokenRequest(BaseModel):
    subject: str = Field(min_length=1, max_length=256)
    roles: list[str] = Field(default_factory=lambda: [ADMIN_ROLE])
    ttl_minutes: int = Field(default=60, ge=1, le=24 * 60)


class BootstrapTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/token", response_model=BootstrapTokenResponse)
async def mint_bootstrap_token(
    body: BootstrapTokenRequest,
    settings: Settings = Depends(get_settings),
) -> BootstrapTokenResponse:
    # Until some IAM role grants "admin", this is the only way to reach /v1/roles.
    if settings.env == "prod":
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Not found")

    log.warning("bootstrap_token_issued", subject=body.subject, roles=body.roles)
    token = issue_token(
        cfg=JwtConfig.from_settings(settings),
        subject=body.subject,
        roles=body.roles,
        ttl=timedelta(minutes=body.ttl_minutes),
    )
    return BootstrapTokenResponse(access_token=token)

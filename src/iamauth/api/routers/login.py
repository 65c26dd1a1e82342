"""
iamauth.api.routers.login

Login endpoint consumed by callers holding AWS credentials.

Responsibilities:
- Accept the login payload produced by `iam.signing.generate_login_data`.
- Run the identity verifier and mint a session token for the matched role.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from iamauth.api.deps import login_service
from iamauth.auth.jwt import JwtConfig, issue_token
from iamauth.services.login_service import LoginService
from iamauth.settings import Settings, get_settings

router = APIRouter(prefix="/v1", tags=["login"])


class LoginRequest(BaseModel):
    # Everything optional so a missing field is rejected by the verifier like any other bad input.
    role: str | None = None
    iam_http_request_method: str | None = None
    iam_request_url: str | None = None
    iam_request_body: str | None = None
    iam_request_headers: str | None = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    principal_arn: str
    account_id: str
    role: str


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    service: LoginService = Depends(login_service),
    settings: Settings = Depends(get_settings),
) -> LoginResponse:
    result = await service.login(body.model_dump(exclude_none=True))

    cfg = JwtConfig.from_settings(settings)
    token = issue_token(
        cfg=cfg,
        subject=result.principal_canonical_arn,
        roles=result.token_roles,
        account_id=result.account_number,
        iam_role=result.role_name,
    )
    return LoginResponse(
        access_token=token,
        expires_in=int(cfg.ttl.total_seconds()),
        principal_arn=result.principal_canonical_arn,
        account_id=result.account_number,
        role=result.role_name,
    )

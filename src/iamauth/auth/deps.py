"""
iamauth.auth.deps

FastAPI dependencies guarding the role administration surface.

Responsibilities:
- Turn a bearer token into a `Principal`.
- Gate routes on token roles (`admin` passes every gate).
"""

from __future__ import annotations

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from iamauth.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from iamauth.auth.models import Principal
from iamauth.observability.logging import get_logger
from iamauth.settings import Settings, get_settings

log = get_logger(__name__)

_bearer = HTTPBearer(auto_error=False)


def get_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(get_settings),
) -> Principal:
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    try:
        claims = decode_and_validate(cfg=JwtConfig.from_settings(settings), token=creds.credentials)
    except JwtValidationError as e:
        log.info("bearer_token_rejected", error=str(e))
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token") from e
    return Principal.from_claims(claims)


def require_roles(*required: str):
    required_set = frozenset(required)

    def _dep(principal: Principal = Depends(get_principal)) -> Principal:
        if not principal.is_admin and not required_set <= principal.roles:
            log.warning(
                "admin_access_denied",
                subject=principal.subject,
                missing=sorted(required_set - principal.roles),
            )
            raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Insufficient role")
        return principal

    return _dep

"""
iamauth.auth.jwt

Session tokens minted after a successful IAM login.

Responsibilities:
- Sign a token whose subject is the canonical principal ARN and whose roles come from
  the matched role entry.
- Verify tokens presented to the admin surface and hand back typed `TokenClaims`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from iamauth.settings import Settings

_REQUIRED_CLAIMS = ["exp", "iat", "iss", "aud", "sub"]


@dataclass(frozen=True, slots=True)
class JwtConfig:
    alg: str
    issuer: str
    audience: str
    secret: str
    ttl: timedelta

    @classmethod
    def from_settings(cls, settings: Settings) -> JwtConfig:
        return cls(
            alg=settings.jwt_alg,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            secret=settings.jwt_secret,
            ttl=timedelta(minutes=settings.token_ttl_minutes),
        )


@dataclass(frozen=True, slots=True)
class TokenClaims:
    subject: str
    roles: tuple[str, ...]
    expires_at: datetime
    account_id: str | None = None
    iam_role: str | None = None


class JwtValidationError(Exception):
    pass


def issue_token(
    *,
    cfg: JwtConfig,
    subject: str,
    roles: list[str] | tuple[str, ...],
    ttl: timedelta | None = None,
    account_id: str | None = None,
    iam_role: str | None = None,
) -> str:
    now = datetime.now(tz=UTC)
    payload: dict[str, Any] = {
        "iss": cfg.issuer,
        "aud": cfg.audience,
        "sub": subject,
        "roles": list(roles),
        "iat": int(now.timestamp()),
        "exp": int((now + (ttl or cfg.ttl)).timestamp()),
    }
    # Only tokens minted by /v1/login carry the IAM binding.
    if account_id:
        payload["account_id"] = account_id
    if iam_role:
        payload["iam_role"] = iam_role
    return jwt.encode(payload, cfg.secret, algorithm=cfg.alg)


def decode_and_validate(*, cfg: JwtConfig, token: str) -> TokenClaims:
    try:
        payload = jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            issuer=cfg.issuer,
            audience=cfg.audience,
            options={"require": _REQUIRED_CLAIMS},
        )
    except InvalidTokenError as e:
        raise JwtValidationError(str(e)) from e

    subject = payload.get("sub")
    roles = payload.get("roles", [])
    if not isinstance(subject, str) or not subject:
        raise JwtValidationError("token subject must be a non-empty string")
    if not isinstance(roles, list) or not all(isinstance(r, str) for r in roles):
        raise JwtValidationError("token roles must be a list of strings")

    return TokenClaims(
        subject=subject,
        roles=tuple(roles),
        expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=UTC),
        account_id=payload.get("account_id") or None,
        iam_role=payload.get("iam_role") or None,
    )

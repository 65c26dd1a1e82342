"""
iamauth.auth.models

Identity of the bearer calling the admin surface.
"""

from __future__ import annotations

from dataclasses import dataclass

from iamauth.auth.jwt import TokenClaims

ADMIN_ROLE = "admin"


@dataclass(frozen=True, slots=True)
class Principal:
    # `subject` is a canonical IAM ARN for tokens minted by /v1/login.
    subject: str
    roles: frozenset[str]
    account_id: str | None = None
    iam_role: str | None = None

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> Principal:
        return cls(
            subject=claims.subject,
            roles=frozenset(claims.roles),
            account_id=claims.account_id,
            iam_role=claims.iam_role,
        )

    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles

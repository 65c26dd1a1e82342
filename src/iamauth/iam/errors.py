"""
iamauth.iam.errors

Error taxonomy for the login pipeline.

Responsibilities:
- Separate client mistakes, possible forgery/replay attempts, identity service
  failures and authorization denials so logs and audit rows can tell them apart.
- Give the API layer one base type to collapse into an opaque 401.
"""

from __future__ import annotations

from typing import ClassVar


class AuthError(Exception):
    """
    Base class for every login failure.

    `reason` is a short machine-readable slug; the message is for logs only and
    must never be returned to the caller.
    """

    category: ClassVar[str] = "auth_error"

    def __init__(self, message: str, *, reason: str = "unspecified") -> None:
        super().__init__(message)
        self.reason = reason

    def log_fields(self) -> dict[str, object]:
        return {"category": self.category, "reason": self.reason, "error": str(self)}


class MalformedInput(AuthError):
    # Unparsable ARN, response XML or header encoding.
    category = "malformed_input"


class SecurityValidationFailed(AuthError):
    # Missing/wrong anti-replay header, or present but not covered by the signature.
    category = "security_validation_failed"


class UpstreamFailure(AuthError):
    category = "upstream_failure"

    def __init__(
        self,
        message: str,
        *,
        reason: str = "sts_request_failed",
        status_code: int | None = None,
        aws_error_code: str | None = None,
    ) -> None:
        super().__init__(message, reason=reason)
        self.status_code = status_code
        self.aws_error_code = aws_error_code

    def log_fields(self) -> dict[str, object]:
        fields = super().log_fields()
        if self.status_code is not None:
            fields["status_code"] = self.status_code
        if self.aws_error_code:
            fields["aws_error_code"] = self.aws_error_code
        return fields


class AuthorizationDenied(AuthError):
    # Identity was established but it is not bound to the requested role.
    category = "authorization_denied"


# --- Module Notes -----------------------------------------------------------
# All four categories map to the same response at the HTTP boundary (`api.routers.login`).

"""
iamauth.db.models

Persistence schema.

Responsibilities:
- IamRole: a named role bound to one canonical IAM principal ARN.
- LoginAuditEvent: append-only record of every login outcome and its failure category.
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Enum, Index, String, Text, Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column

from iamauth.db.base import Base

CURRENT_ROLE_VERSION = 1


def _utcnow() -> datetime:
    # Stored naive, always UTC.
    return datetime.now(tz=UTC).replace(tzinfo=None)


class AuthType(enum.StrEnum):
    # Only "iam" roles can be used by this login flow.
    iam = "iam"
    ec2 = "ec2"


class LoginOutcome(enum.StrEnum):
    succeeded = "SUCCEEDED"
    rejected = "REJECTED"


class IamRole(Base):
    __tablename__ = "iam_roles"

    name: Mapped[str] = mapped_column(String(128), primary_key=True)
    auth_type: Mapped[AuthType] = mapped_column(Enum(AuthType), nullable=False)
    # Stored canonicalized (see `iam.arn.IamEntity.canonical_arn`).
    bound_iam_principal_arn: Mapped[str] = mapped_column(String(2048), nullable=False, default="")
    token_roles: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    version: Mapped[int] = mapped_column(nullable=False, default=CURRENT_ROLE_VERSION)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


class LoginAuditEvent(Base):
    __tablename__ = "login_audit_events"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    request_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    role_name: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    principal_arn: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    outcome: Mapped[LoginOutcome] = mapped_column(Enum(LoginOutcome), nullable=False, index=True)
    category: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    reason: Mapped[str | None] = mapped_column(String(64), nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, index=True)

    __table_args__ = (Index("ix_login_audit_outcome_created", "outcome", "created_at"),)

"""
iamauth.db.repositories.audit

Repository for `LoginAuditEvent` entities.

Responsibilities:
- Append login outcomes (success, or rejection with its category).
- Query recent events for operational triage.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from iamauth.db.models import LoginAuditEvent, LoginOutcome


class AuditRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(
        self,
        *,
        outcome: LoginOutcome,
        request_id: str | None = None,
        role_name: str | None = None,
        principal_arn: str | None = None,
        category: str | None = None,
        reason: str | None = None,
        error: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> LoginAuditEvent:
        # Append-only; rows are never updated.
        ev = LoginAuditEvent(
            outcome=outcome,
            request_id=request_id,
            role_name=role_name,
            principal_arn=principal_arn,
            category=category,
            reason=reason,
            error=error,
            details=details or {},
        )
        self._session.add(ev)
        await self._session.flush()
        return ev

    async def list_recent(
        self, *, outcome: LoginOutcome | None = None, limit: int = 200
    ) -> list[LoginAuditEvent]:
        stmt = select(LoginAuditEvent)
        if outcome is not None:
            stmt = stmt.where(LoginAuditEvent.outcome == outcome)
        stmt = stmt.order_by(desc(LoginAuditEvent.created_at)).limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())

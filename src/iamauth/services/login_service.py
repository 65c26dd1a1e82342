"""
iamauth.services.login_service

Login lifecycle service (the identity verifier).

Responsibilities:
- Drive the login graph for one attempt and track the stage it reached.
- Fail closed: any `AuthError` ends the attempt in `Rejected` with the originating error.
- Log and audit every outcome with its failure category.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx
import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from iamauth.db.models import LoginOutcome
from iamauth.db.repositories.audit import AuditRepo
from iamauth.iam.errors import (
    AuthError,
    AuthorizationDenied,
    MalformedInput,
    SecurityValidationFailed,
    UpstreamFailure,
)
from iamauth.observability.logging import get_logger
from iamauth.orchestrator.graph import build_graph
from iamauth.orchestrator.reducers import append_transitions
from iamauth.orchestrator.state import LoginStage, LoginState
from iamauth.services.role_store import RoleStore
from iamauth.settings import Settings
from iamauth.sts_client.http import StsClient

log = get_logger(__name__)

# Replay/forgery attempts and upstream outages page differently from client bugs.
_LOG_LEVELS: dict[type[AuthError], str] = {
    MalformedInput: "info",
    SecurityValidationFailed: "warning",
    UpstreamFailure: "error",
    AuthorizationDenied: "warning",
}


@dataclass(frozen=True, slots=True)
class LoginResult:
    principal_canonical_arn: str
    account_number: str
    role_name: str
    token_roles: tuple[str, ...]
    principal_arn: str
    principal_full_arn: str
    sts_request_id: str


class LoginRejected(Exception):
    """
    Wraps the `AuthError` that ended an attempt together with the last stage reached.
    """

    def __init__(self, error: AuthError, *, stage: LoginStage) -> None:
        super().__init__(str(error))
        self.error = error
        self.stage = stage

    @property
    def category(self) -> str:
        return self.error.category


class LoginService:
    def __init__(
        self,
        *,
        settings: Settings,
        http: httpx.AsyncClient,
        roles: RoleStore,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self._session_factory = session_factory
        self._graph = build_graph(
            settings=settings,
            client=StsClient(settings=settings, http=http),
            roles=roles,
        )

    async def login(self, login_data: Mapping[str, Any]) -> LoginResult:
        """
        Verify the caller-signed request in `login_data` and match it to a role.

        Raises `LoginRejected` for every failure; the wrapped error carries the category.
        """

        state: LoginState = {"login_data": dict(login_data), "transitions": []}
        last_state: LoginState = dict(state)  # type: ignore[assignment]
        try:
            async for update in self._graph.astream(state, stream_mode="updates"):
                if not isinstance(update, dict) or not update:
                    continue
                _node, node_update = next(iter(update.items()))
                if isinstance(node_update, dict):
                    _merge(last_state, node_update)
        except AuthError as e:
            stage = last_state.get("stage", LoginStage.received_login)
            await self._record_rejection(e, stage=stage, state=last_state)
            raise LoginRejected(e, stage=stage) from e

        if last_state.get("stage") is not LoginStage.role_matched:
            # Every path through the graph ends in role_matched or raises.
            error = AuthorizationDenied("login graph ended without a role match", reason="incomplete")
            await self._record_rejection(error, stage=LoginStage.rejected, state=last_state)
            raise LoginRejected(error, stage=LoginStage.rejected)

        entity = last_state["entity"]
        role = last_state["role"]
        result = LoginResult(
            principal_canonical_arn=last_state["canonical_arn"],
            account_number=entity.account_number,
            role_name=role.name,
            token_roles=role.token_roles,
            principal_arn=last_state["identity_response"].identity.arn,
            principal_full_arn=entity.full_arn(),
            sts_request_id=last_state["identity_response"].response_metadata.request_id,
        )
        await self._record_success(result)
        return result

    async def _record_success(self, result: LoginResult) -> None:
        log.info(
            "login_succeeded",
            role=result.role_name,
            principal=result.principal_canonical_arn,
            sts_request_id=result.sts_request_id,
        )
        async with self._session_factory() as session:
            await AuditRepo(session).add(
                outcome=LoginOutcome.succeeded,
                request_id=_request_id(),
                role_name=result.role_name,
                principal_arn=result.principal_canonical_arn,
                details={
                    "sts_request_id": result.sts_request_id,
                    "arn": result.principal_arn,
                    "full_arn": result.principal_full_arn,
                },
            )
            await session.commit()

    async def _record_rejection(self, error: AuthError, *, stage: LoginStage, state: LoginState) -> None:
        level = _LOG_LEVELS.get(type(error), "warning")
        getattr(log, level)(
            "login_rejected",
            stage=str(stage),
            role=state.get("role_name") or None,
            principal=state.get("canonical_arn"),
            **error.log_fields(),
        )
        async with self._session_factory() as session:
            await AuditRepo(session).add(
                outcome=LoginOutcome.rejected,
                request_id=_request_id(),
                role_name=state.get("role_name") or None,
                principal_arn=state.get("canonical_arn"),
                category=error.category,
                reason=error.reason,
                error=str(error),
                details=_rejection_details(stage, state),
            )
            await session.commit()


def _merge(state: LoginState, update: dict[str, Any]) -> None:
    # stream_mode="updates" yields raw node output, so reducers are applied here.
    for key, value in update.items():
        if key == "transitions":
            state["transitions"] = append_transitions(state.get("transitions"), value)
        else:
            state[key] = value  # type: ignore[literal-required]


def _rejection_details(stage: LoginStage, state: LoginState) -> dict[str, Any]:
    details: dict[str, Any] = {"stage": str(stage), "transitions": list(state.get("transitions", []))}
    entity = state.get("entity")
    if entity is not None:
        details["full_arn"] = entity.full_arn()
    return details


def _request_id() -> str | None:
    value = structlog.contextvars.get_contextvars().get("request_id")
    return str(value) if value else None


# --- Module Notes -----------------------------------------------------------
# This service is the transaction boundary for audit rows; the role store manages its own
# sessions. Nothing here retries: a failed STS call rejects the attempt and the caller may log in again.

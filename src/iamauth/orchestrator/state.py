"""
iamauth.orchestrator.state

Typed state schema used by the login graph.

Responsibilities:
- Name the stages of a login attempt.
- Define the contract between nodes (inputs/outputs).
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, TypedDict

from iamauth.iam.arn import IamEntity
from iamauth.iam.login_data import SignedRequestDescriptor
from iamauth.iam.sts_response import GetCallerIdentityResponse
from iamauth.orchestrator.reducers import append_transitions
from iamauth.services.role_store import RoleEntry


class LoginStage(enum.StrEnum):
    received_login = "ReceivedLogin"
    header_validated = "HeaderValidated"
    payload_built = "PayloadBuilt"
    identity_fetched = "IdentityFetched"
    entity_canonicalized = "EntityCanonicalized"
    role_matched = "RoleMatched"
    rejected = "Rejected"


class LoginState(TypedDict, total=False):
    # Input
    login_data: dict[str, Any]
    role_name: str

    # Built along the way
    request: SignedRequestDescriptor
    identity_response: GetCallerIdentityResponse
    entity: IamEntity
    canonical_arn: str
    role: RoleEntry

    # Progress
    stage: LoginStage
    transitions: Annotated[list[str], append_transitions]


# --- Module Notes -----------------------------------------------------------
# `Rejected` is never produced by a node: a node raises `AuthError` and the service layer
# records the rejection (see `services.login_service`).

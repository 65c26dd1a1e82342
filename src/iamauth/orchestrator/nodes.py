from __future__ import annotations

from urllib.parse import parse_qs

from iamauth.db.models import AuthType
from iamauth.iam.arn import parse_iam_arn
from iamauth.iam.errors import AuthorizationDenied, MalformedInput, SecurityValidationFailed
from iamauth.iam.headers import validate_server_id_header
from iamauth.iam.login_data import (
    HEADERS_FIELD,
    URL_FIELD,
    decode_b64_field,
    parse_login_data,
    parse_request_headers,
)
from iamauth.iam.sts_response import parse_get_caller_identity_response
from iamauth.observability.logging import get_logger
from iamauth.orchestrator.state import LoginStage, LoginState
from iamauth.services.role_store import RoleStore
from iamauth.settings import Settings
from iamauth.sts_client.http import StsClient

log = get_logger(__name__)


def _advance(stage: LoginStage, **updates: object) -> LoginState:
    return {"stage": stage, "transitions": [stage.value], **updates}  # type: ignore[typeddict-item]


async def received_login_node(state: LoginState) -> LoginState:
    login_data = state.get("login_data")
    if not isinstance(login_data, dict) or not login_data:
        raise MalformedInput("empty login request", reason="login_empty")
    return _advance(LoginStage.received_login, role_name=str(login_data.get("role") or ""))


async def header_validated_node(state: LoginState, *, settings: Settings) -> LoginState:
    login_data = state["login_data"]
    expected = settings.iam_server_id_header_value
    if not expected:
        if not settings.server_id_check_optional:
            raise SecurityValidationFailed(
                "no server id header value configured", reason="server_id_not_configured"
            )
        log.warning("server_id_header_check_disabled", env=settings.env)
        return _advance(LoginStage.header_validated)

    encoded_headers = login_data.get(HEADERS_FIELD)
    encoded_url = login_data.get(URL_FIELD)
    if not isinstance(encoded_headers, str) or not isinstance(encoded_url, str):
        raise MalformedInput("missing request headers or URL", reason="login_field")

    headers = parse_request_headers(encoded_headers)
    request_url = decode_b64_field(encoded_url, what="request URL").decode("utf-8", errors="replace")
    validate_server_id_header(
        headers, request_url, expected, header_name=settings.iam_server_id_header
    )
    return _advance(LoginStage.header_validated)


async def payload_built_node(state: LoginState) -> LoginState:
    request = parse_login_data(state["login_data"])

    if request.method.upper() != "POST":
        raise SecurityValidationFailed(
            f"method {request.method!r} is not allowed, only POST", reason="method_not_allowed"
        )
    try:
        form = parse_qs(request.body.decode("utf-8"), strict_parsing=True)
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedInput("request body is not a form body", reason="login_body") from e
    if form.get("Action") != ["GetCallerIdentity"]:
        raise SecurityValidationFailed(
            "signed request is not an sts:GetCallerIdentity call", reason="action_not_allowed"
        )
    return _advance(LoginStage.payload_built, request=request)


async def identity_fetched_node(state: LoginState, *, client: StsClient) -> LoginState:
    body = await client.execute_signed_request(state["request"])
    response = parse_get_caller_identity_response(body)
    return _advance(LoginStage.identity_fetched, identity_response=response)


async def entity_canonicalized_node(state: LoginState) -> LoginState:
    identity = state["identity_response"].identity
    entity = parse_iam_arn(identity.arn)
    if identity.account and identity.account != entity.account_number:
        raise MalformedInput(
            f"account {identity.account!r} does not match arn account {entity.account_number!r}",
            reason="sts_account_mismatch",
        )
    return _advance(
        LoginStage.entity_canonicalized, entity=entity, canonical_arn=entity.canonical_arn()
    )


async def role_matched_node(state: LoginState, *, roles: RoleStore) -> LoginState:
    entity = state["entity"]
    canonical_arn = state["canonical_arn"]
    role_name = state.get("role_name") or entity.friendly_name

    role = await roles.get_role(role_name)
    if role is None:
        raise AuthorizationDenied(f"entry for role {role_name!r} not found", reason="role_not_found")
    if role.auth_type is not AuthType.iam:
        raise AuthorizationDenied(
            f"role {role_name!r} does not allow iam authentication", reason="auth_type_mismatch"
        )
    # Exact canonical match; wildcards are not supported.
    if not role.bound_iam_principal_arn or role.bound_iam_principal_arn != canonical_arn:
        raise AuthorizationDenied(
            f"IAM principal {canonical_arn!r} does not belong to role {role_name!r}",
            reason="principal_mismatch",
        )
    return _advance(LoginStage.role_matched, role=role, role_name=role.name)

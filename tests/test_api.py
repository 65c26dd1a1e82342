"""
tests.test_api

HTTP surface: health probes, login, and role administration.

Responsibilities:
- Boot the app (lifespan included) against a temp SQLite file and a fake STS.
- Login failures of every category look identical to callers.
- Role admin endpoints require an admin bearer token.
"""

from __future__ import annotations

import httpx
import jwt
import pytest

from iamauth.api.app import AUTH_FAILED_DETAIL

from conftest import ACCOUNT, FakeSts

USER_ARN = f"arn:aws:iam::{ACCOUNT}:user/valid-role"


async def _admin_headers(client: httpx.AsyncClient) -> dict[str, str]:
    r = await client.post("/v1/dev/token", json={"subject": "ops@example.com"})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


async def _bind_role(client: httpx.AsyncClient, name: str, arn: str, token_roles: list[str]) -> None:
    r = await client.put(
        f"/v1/roles/{name}",
        json={"bound_iam_principal_arn": arn, "token_roles": token_roles},
        headers=await _admin_headers(client),
    )
    assert r.status_code == 200, r.text


@pytest.mark.asyncio
async def test_health_endpoints(client: httpx.AsyncClient) -> None:
    r = await client.get("/healthz")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"

    r = await client.get("/readyz")
    assert r.status_code == 200
    assert r.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_login_issues_token(client: httpx.AsyncClient, make_login_data) -> None:
    await _bind_role(client, "valid-role", USER_ARN, ["reader"])

    r = await client.post("/v1/login", json=make_login_data("valid-role"))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["principal_arn"] == USER_ARN
    assert body["account_id"] == ACCOUNT
    assert body["role"] == "valid-role"
    assert body["token_type"] == "bearer"

    claims = jwt.decode(body["access_token"], options={"verify_signature": False})
    assert claims["sub"] == USER_ARN
    assert claims["roles"] == ["reader"]
    assert claims["iam_role"] == "valid-role"
    assert claims["account_id"] == ACCOUNT


@pytest.mark.asyncio
async def test_login_failures_are_opaque(
    client: httpx.AsyncClient, fake_sts: FakeSts, make_login_data
) -> None:
    attempts = []

    # No matching role.
    attempts.append(await client.post("/v1/login", json=make_login_data("valid-role")))
    # Missing anti-replay header.
    attempts.append(
        await client.post("/v1/login", json=make_login_data("valid-role", server_id_value=""))
    )
    # Malformed payload.
    attempts.append(await client.post("/v1/login", json={"role": "valid-role"}))
    # Identity service outage.
    fake_sts.status = 503
    fake_sts.body = "Service Unavailable"
    attempts.append(await client.post("/v1/login", json=make_login_data("valid-role")))

    for r in attempts:
        assert r.status_code == 401
        assert r.json() == {"detail": AUTH_FAILED_DETAIL}


@pytest.mark.asyncio
async def test_roles_require_bearer_token(client: httpx.AsyncClient) -> None:
    r = await client.get("/v1/roles")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_roles_require_admin(client: httpx.AsyncClient) -> None:
    r = await client.post("/v1/dev/token", json={"subject": "reader", "roles": ["reader"]})
    token = r.json()["access_token"]
    r = await client.get("/v1/roles", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_role_crud(client: httpx.AsyncClient) -> None:
    headers = await _admin_headers(client)

    r = await client.put(
        "/v1/roles/Deployer",
        json={"bound_iam_principal_arn": f"arn:aws:sts::{ACCOUNT}:assumed-role/Deployer/x"},
        headers=headers,
    )
    assert r.status_code == 200
    assert r.json()["name"] == "deployer"
    assert r.json()["bound_iam_principal_arn"] == f"arn:aws:iam::{ACCOUNT}:role/Deployer"

    r = await client.get("/v1/roles", headers=headers)
    assert r.json() == {"roles": ["deployer"]}

    r = await client.get("/v1/roles/deployer", headers=headers)
    assert r.status_code == 200
    assert r.json()["auth_type"] == "iam"

    r = await client.delete("/v1/roles/deployer", headers=headers)
    assert r.status_code == 204
    r = await client.get("/v1/roles/deployer", headers=headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_role_with_bad_arn_is_bad_request(client: httpx.AsyncClient) -> None:
    r = await client.put(
        "/v1/roles/broken",
        json={"bound_iam_principal_arn": "arn:aws:iam"},
        headers=await _admin_headers(client),
    )
    assert r.status_code == 400

"""
tests.conftest

Shared fixtures.

Responsibilities:
- Test settings backed by a per-test SQLite file.
- A fake STS endpoint served through `httpx.MockTransport`.
- Role store / login service / ASGI client wiring.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable

import httpx
import pytest
import pytest_asyncio
from botocore.credentials import Credentials
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from iamauth.api.app import create_app
from iamauth.db.init_db import init_db
from iamauth.db.session import create_engine, create_sessionmaker
from iamauth.iam.signing import generate_login_data
from iamauth.services.login_service import LoginService
from iamauth.services.role_store import RoleStore
from iamauth.settings import Settings

SERVER_ID_VALUE = "VaultAcceptanceTesting"
ACCOUNT = "123456789012"
FAKE_STS_ENDPOINT = "https://sts.test.invalid"


def caller_identity_xml(arn: str, *, account: str = ACCOUNT, user_id: str = "AIDASOMETHING") -> str:
    return f"""<GetCallerIdentityResponse xmlns="https://sts.amazonaws.com/doc/2011-06-15/">
  <GetCallerIdentityResult>
    <Arn>{arn}</Arn>
    <UserId>{user_id}</UserId>
    <Account>{account}</Account>
  </GetCallerIdentityResult>
  <ResponseMetadata>
    <RequestId>7f4fc40c-853a-11e6-8848-8d035d01eb87</RequestId>
  </ResponseMetadata>
</GetCallerIdentityResponse>
"""


class FakeSts:
    """
    Plays the identity service: records every replayed request and answers with
    `status`/`body`, or raises `error` when set.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status = 200
        self.body = caller_identity_xml(f"arn:aws:iam::{ACCOUNT}:user/valid-role")
        self.error: Callable[[httpx.Request], Exception] | None = None

    def answer_with_arn(self, arn: str) -> None:
        self.status = 200
        self.body = caller_identity_xml(arn)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error(request)
        return httpx.Response(self.status, text=self.body)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'iamauth.db'}",
        jwt_secret="test-secret",
        iam_server_id_header_value=SERVER_ID_VALUE,
        sts_endpoint=FAKE_STS_ENDPOINT,
        sts_timeout_seconds=2.0,
    )


@pytest.fixture
def fake_sts() -> FakeSts:
    return FakeSts()


@pytest.fixture
def test_credentials() -> Credentials:
    return Credentials("AKIDEXAMPLE", "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY")


@pytest.fixture
def make_login_data(test_credentials: Credentials):
    def _make(role: str = "", *, server_id_value: str = SERVER_ID_VALUE, **kwargs) -> dict[str, str]:
        return generate_login_data(
            server_id_value, role, credentials=test_credentials, **kwargs
        )

    return _make


@pytest_asyncio.fixture
async def session_factory(settings: Settings) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_engine(settings)
    await init_db(engine)
    try:
        yield create_sessionmaker(engine)
    finally:
        await engine.dispose()


@pytest.fixture
def role_store(session_factory: async_sessionmaker[AsyncSession]) -> RoleStore:
    return RoleStore(session_factory=session_factory)


@pytest_asyncio.fixture
async def login_service(
    settings: Settings,
    fake_sts: FakeSts,
    role_store: RoleStore,
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[LoginService]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_sts.handler)) as http:
        yield LoginService(
            settings=settings, http=http, roles=role_store, session_factory=session_factory
        )


@pytest_asyncio.fixture
async def client(settings: Settings, fake_sts: FakeSts) -> AsyncIterator[httpx.AsyncClient]:
    app = create_app(settings=settings, sts_transport=httpx.MockTransport(fake_sts.handler))
    # httpx ASGITransport does not run lifespan; drive it explicitly.
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
            yield c

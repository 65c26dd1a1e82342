"""
iamauth.api.app

FastAPI app factory for the IAM login service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Initialize and dispose shared infrastructure (DB engine, STS HTTP client, role store lock).
- Collapse every login failure into one opaque 401 at the boundary.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_401_UNAUTHORIZED

from iamauth import __version__
from iamauth.api.routers.dev_auth import router as dev_auth_router
from iamauth.api.routers.health import router as health_router
from iamauth.api.routers.login import router as login_router
from iamauth.api.routers.roles import router as roles_router
from iamauth.db.init_db import init_db
from iamauth.db.session import create_engine, create_sessionmaker
from iamauth.iam.errors import MalformedInput
from iamauth.observability.logging import configure_logging, get_logger
from iamauth.observability.middleware import RequestContextMiddleware
from iamauth.services.login_service import LoginRejected, LoginService
from iamauth.services.role_store import RoleStore
from iamauth.settings import Settings, get_settings

log = get_logger(__name__)

AUTH_FAILED_DETAIL = "authentication failed"


def create_app(
    *,
    settings: Settings,
    sts_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """
    `sts_transport` replaces the network transport of the STS client (tests use
    `httpx.MockTransport` to stand in for the identity service).
    """

    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info(
            "startup",
            env=settings.env,
            sts_endpoint=settings.sts_endpoint,
            sts_endpoint_overridden=settings.sts_endpoint_overridden,
        )
        engine = create_engine(settings)
        await init_db(engine)
        session_factory = create_sessionmaker(engine)
        http = httpx.AsyncClient(transport=sts_transport, follow_redirects=False)
        roles = RoleStore(session_factory=session_factory, lock=asyncio.Lock())

        app.state.engine = engine
        app.state.sessionmaker = session_factory
        app.state.role_store = roles
        app.state.login_service = LoginService(
            settings=settings, http=http, roles=roles, session_factory=session_factory
        )
        try:
            yield
        finally:
            await http.aclose()
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="IAM Login Service",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    # Every `Depends(get_settings)` sees the settings this app was built with.
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(dev_auth_router)
    app.include_router(login_router)
    app.include_router(roles_router)

    @app.exception_handler(LoginRejected)
    async def _login_rejected(_: Request, exc: LoginRejected) -> JSONResponse:
        # Category stays in logs and audit rows; callers only learn that login failed.
        return JSONResponse(status_code=HTTP_401_UNAUTHORIZED, content={"detail": AUTH_FAILED_DETAIL})

    @app.exception_handler(MalformedInput)
    async def _malformed_admin_input(_: Request, exc: MalformedInput) -> JSONResponse:
        # Only reachable from the admin surface; login failures arrive wrapped in LoginRejected.
        return JSONResponse(status_code=HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; verification logic lives in `iam`, `orchestrator` and `services`.

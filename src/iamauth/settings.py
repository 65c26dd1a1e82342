"""
iamauth.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Supply the anti-replay header value and STS endpoint overrides to the login flow.
- Hide secrets from repr/logging (e.g., JWT secret).
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_STS_ENDPOINT = "https://sts.amazonaws.com"
DEFAULT_SERVER_ID_HEADER = "X-Vault-AWS-IAM-Server-ID"


class Settings(BaseSettings):
    """
    Env-driven configuration, prefixed with `IAMAUTH_`.
    Defaults are safe for local dev; prod must set the JWT secret and server id value.
    """

    model_config = SettingsConfigDict(env_prefix="IAMAUTH_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "iam-login"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Issued session tokens
    jwt_alg: str = "HS256"
    jwt_issuer: str = "iam-login"
    jwt_audience: str = "iam-login-api"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)
    token_ttl_minutes: int = Field(default=60, ge=1, le=24 * 60)

    # Role store
    database_url: str = "sqlite+aiosqlite:///./iamauth.db"

    # Anti-replay header. An empty value disables the check and is only accepted in dev/test.
    iam_server_id_header: str = DEFAULT_SERVER_ID_HEADER
    iam_server_id_header_value: str = ""

    # Identity service
    sts_endpoint: str = DEFAULT_STS_ENDPOINT
    sts_timeout_seconds: float = Field(default=10.0, gt=0)

    @model_validator(mode="after")
    def _require_server_id_in_prod(self) -> Settings:
        if self.env == "prod" and not self.iam_server_id_header_value:
            raise ValueError("iam_server_id_header_value must be set when env=prod")
        return self

    @property
    def server_id_check_optional(self) -> bool:
        return self.env in ("dev", "test")

    @property
    def sts_endpoint_overridden(self) -> bool:
        return self.sts_endpoint.rstrip("/") != DEFAULT_STS_ENDPOINT


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Endpoint overrides exist for regional STS endpoints and for tests that point the
# login flow at an in-process fake identity service.

"""
iamauth.iam.signing

Client-side helper that produces login data from the caller's own AWS credentials.

Responsibilities:
- Build an STS GetCallerIdentity request carrying the anti-replay header.
- Sign it with SigV4 (botocore) so the header is part of `SignedHeaders`.
- Hand the signed request to `build_login_data`.
"""

from __future__ import annotations

import botocore.session
from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials

from iamauth.iam.login_data import build_login_data
from iamauth.settings import DEFAULT_SERVER_ID_HEADER, DEFAULT_STS_ENDPOINT

GET_CALLER_IDENTITY_BODY = "Action=GetCallerIdentity&Version=2011-06-15"


def sign_get_caller_identity(
    *,
    credentials: Credentials,
    server_id_value: str = "",
    server_id_header: str = DEFAULT_SERVER_ID_HEADER,
    endpoint: str = DEFAULT_STS_ENDPOINT,
    region: str = "us-east-1",
) -> AWSRequest:
    headers = {"Content-Type": "application/x-www-form-urlencoded; charset=utf-8"}
    if server_id_value:
        headers[server_id_header] = server_id_value
    request = AWSRequest(
        method="POST",
        url=endpoint.rstrip("/") + "/",
        data=GET_CALLER_IDENTITY_BODY,
        headers=headers,
    )
    SigV4Auth(credentials, "sts", region).add_auth(request)
    return request


def generate_login_data(
    server_id_value: str = "",
    role: str = "",
    *,
    credentials: Credentials | None = None,
    server_id_header: str = DEFAULT_SERVER_ID_HEADER,
    endpoint: str = DEFAULT_STS_ENDPOINT,
    region: str = "us-east-1",
) -> dict[str, str]:
    """
    Login payload for `POST /v1/login`. Falls back to the default botocore credential
    chain (env vars, shared config, instance role) when no credentials are given.
    """

    if credentials is None:
        credentials = botocore.session.get_session().get_credentials()
    request = sign_get_caller_identity(
        credentials=credentials,
        server_id_value=server_id_value,
        server_id_header=server_id_header,
        endpoint=endpoint,
        region=region,
    )
    return build_login_data(request, role)


# --- Module Notes -----------------------------------------------------------
# SigV4Auth signs every header present on the request, which is what places the anti-replay
# header inside the signature.

"""
iamauth.iam.login_data

Transport encoding for caller-signed STS requests.

Responsibilities:
- Client side: snapshot an already-signed request into the flat login payload.
- Server side: decode the login payload back into a `SignedRequestDescriptor` for replay.
- Accept both header encodings seen in the wild (values as lists, or bare strings).

Bytes are carried verbatim (base64) so STS can re-verify the original signature.
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from iamauth.iam.errors import MalformedInput
from iamauth.iam.headers import get_header_values

METHOD_FIELD = "iam_http_request_method"
URL_FIELD = "iam_request_url"
BODY_FIELD = "iam_request_body"
HEADERS_FIELD = "iam_request_headers"
ROLE_FIELD = "role"


@dataclass(frozen=True, slots=True)
class SignedRequestDescriptor:
    method: str
    url: str
    headers: dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""

    def header_values(self, name: str) -> list[str]:
        return get_header_values(self.headers, name)


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode_b64_field(value: str, *, what: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedInput(f"failed to base64 decode {what}", reason="login_base64") from e


def _as_text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def _header_pairs(headers: Any) -> list[tuple[str, str]]:
    # httpx.Headers keeps repeated names in multi_items(); botocore HTTPHeaders yields them from items().
    if hasattr(headers, "multi_items"):
        items = headers.multi_items()
    else:
        items = headers.items()
    return [(_as_text(k), _as_text(v)) for k, v in items]


def _request_body(signed_request: Any) -> bytes:
    body = getattr(signed_request, "body", None)
    if body is None:
        body = getattr(signed_request, "content", None)
    if body is None:
        return b""
    if isinstance(body, str):
        return body.encode("utf-8")
    if isinstance(body, bytes):
        return body
    raise MalformedInput(
        f"unsupported signed request body type {type(body).__name__}", reason="login_body"
    )


def build_login_data(signed_request: Any, role_name: str = "") -> dict[str, str]:
    """
    Serialize a signed request (botocore `AWSRequest`/`AWSPreparedRequest`, `httpx.Request`)
    into the login payload accepted by `POST /v1/login`.
    """

    if signed_request is None:
        raise MalformedInput("got nil http request", reason="login_request")

    method = _as_text(getattr(signed_request, "method", "") or "")
    url = _as_text(getattr(signed_request, "url", "") or "")
    if not method or not url:
        raise MalformedInput("signed request has no method or URL", reason="login_request")

    raw_headers = getattr(signed_request, "headers", None)
    pairs = _header_pairs(raw_headers) if raw_headers is not None else []
    if not pairs:
        raise MalformedInput("signed request has no headers", reason="login_headers")

    headers: dict[str, list[str]] = {}
    for name, value in pairs:
        headers.setdefault(name, []).append(value)

    data = {
        METHOD_FIELD: method,
        URL_FIELD: _b64(url.encode("utf-8")),
        BODY_FIELD: _b64(_request_body(signed_request)),
        HEADERS_FIELD: _b64(json.dumps(headers).encode("utf-8")),
    }
    if role_name:
        data[ROLE_FIELD] = role_name
    return data


def parse_request_headers(encoded: str) -> dict[str, list[str]]:
    """
    Decode base64(JSON) headers into `name -> [values]`.

    Each value must be a list of strings or a single string (wrapped as a one-element list).
    """

    raw = decode_b64_field(encoded, what="request headers")
    try:
        decoded = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedInput("request headers are not valid JSON", reason="login_headers") from e
    if not isinstance(decoded, dict):
        raise MalformedInput("request headers must be a JSON object", reason="login_headers")

    headers: dict[str, list[str]] = {}
    for name, value in decoded.items():
        if isinstance(value, list) and all(isinstance(v, str) for v in value):
            headers[name] = list(value)
        elif isinstance(value, str):
            headers[name] = [value]
        else:
            raise MalformedInput(
                f"header {name!r} must be a string or a list of strings", reason="login_headers"
            )
    return headers


def parse_login_data(data: Mapping[str, Any]) -> SignedRequestDescriptor:
    def _required(key: str) -> str:
        value = data.get(key)
        if not isinstance(value, str) or not value:
            raise MalformedInput(f"missing {key}", reason="login_field")
        return value

    method = _required(METHOD_FIELD)
    url_bytes = decode_b64_field(_required(URL_FIELD), what="request URL")
    body = decode_b64_field(_required(BODY_FIELD), what="request body")
    headers = parse_request_headers(_required(HEADERS_FIELD))
    try:
        url = url_bytes.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedInput("request URL is not valid UTF-8", reason="login_url") from e

    return SignedRequestDescriptor(method=method, url=url, headers=headers, body=body)


# --- Module Notes -----------------------------------------------------------
# Client-side signing lives in `iam.signing`; replay against STS lives in `sts_client.http`.

"""
iamauth.sts_client.http

HTTP client boundary used by the login flow to call STS.

Responsibilities:
- Replay a `SignedRequestDescriptor` byte-for-byte against the configured endpoint,
  keeping the caller-signed `Host` header.
- Apply a bounded timeout; never retry and never follow redirects.
- Map transport errors and non-2xx answers to `UpstreamFailure`.
"""

from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit

import httpx

from iamauth.iam.errors import UpstreamFailure
from iamauth.iam.login_data import SignedRequestDescriptor
from iamauth.iam.sts_response import parse_error_response
from iamauth.observability.logging import get_logger
from iamauth.settings import Settings

log = get_logger(__name__)

# Host is re-added from its signed value; httpx derives the length from the body.
_REPLACED_HEADERS = frozenset({"host", "content-length"})


def signed_host(request: SignedRequestDescriptor) -> str:
    values = request.header_values("host")
    if values:
        return values[0]
    return urlsplit(request.url).netloc


class StsClient:
    def __init__(self, *, settings: Settings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http

    def target_url(self, request_url: str) -> str:
        # Only path and query come from the caller; the connection target is always ours.
        endpoint = urlsplit(self._settings.sts_endpoint)
        caller = urlsplit(request_url)
        return urlunsplit((endpoint.scheme, endpoint.netloc, caller.path or "/", caller.query, ""))

    async def execute_signed_request(self, request: SignedRequestDescriptor) -> str:
        url = self.target_url(request.url)
        headers = [
            (name, value)
            for name, values in request.headers.items()
            if name.lower() not in _REPLACED_HEADERS
            for value in values
        ]
        # Host is always in SignedHeaders; it must survive a regional or VPC endpoint override.
        headers.append(("Host", signed_host(request)))
        try:
            r = await self._http.request(
                request.method,
                url,
                headers=headers,
                content=request.body,
                timeout=self._settings.sts_timeout_seconds,
                follow_redirects=False,
            )
        except httpx.TimeoutException as e:
            raise UpstreamFailure(f"STS request timed out: {e}", reason="sts_timeout") from e
        except httpx.HTTPError as e:
            raise UpstreamFailure(f"STS request failed: {e}", reason="sts_unreachable") from e

        if not r.is_success:
            sts_error = parse_error_response(r.text)
            log.debug("sts_error_response", status_code=r.status_code, code=sts_error.code)
            raise UpstreamFailure(
                f"received error code {r.status_code} from STS: {sts_error.message or r.text[:200]}",
                reason="sts_status",
                status_code=r.status_code,
                aws_error_code=sts_error.code or None,
            )
        return r.text


# --- Module Notes -----------------------------------------------------------
# The shared `httpx.AsyncClient` is created once in `api.app.create_app`; tests swap in an
# `httpx.MockTransport` to play the identity service.

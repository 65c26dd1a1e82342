"""
iamauth.iam.headers

Anti-replay header validation for caller-signed STS requests.

Responsibilities:
- Require the server-specific header with the configured value.
- Prove the header is listed in the SigV4 `SignedHeaders` set, i.e. that it was covered
  by the caller's signature and not attached afterwards.

The cryptographic signature itself is verified by STS when the request is replayed.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from urllib.parse import parse_qsl, urlsplit

from iamauth.iam.errors import SecurityValidationFailed
from iamauth.settings import DEFAULT_SERVER_ID_HEADER

HeaderMap = Mapping[str, Sequence[str]]

_SIGNED_HEADERS_RE = re.compile(r"SignedHeaders=([^,\s]+)")


def get_header_values(headers: HeaderMap, name: str) -> list[str]:
    """
    Case-insensitive lookup. Values of keys differing only in case are concatenated
    in mapping order.
    """

    wanted = name.lower()
    values: list[str] = []
    for key, vals in headers.items():
        if key.lower() == wanted:
            values.extend(vals)
    return values


def extract_signed_headers(authorization_values: Sequence[str]) -> list[str]:
    # The Authorization header may arrive split over several values; search the joined form.
    joined = ",".join(authorization_values)
    matches = _SIGNED_HEADERS_RE.findall(joined)
    if not matches:
        raise SecurityValidationFailed(
            "Authorization header has no SignedHeaders component",
            reason="server_id_header_unsigned",
        )
    if len(matches) > 1:
        raise SecurityValidationFailed(
            "found multiple SignedHeaders components", reason="ambiguous_signed_headers"
        )
    return [h.strip().lower() for h in matches[0].split(";") if h.strip()]


def validate_server_id_header(
    headers: HeaderMap,
    request_url: str,
    expected_value: str,
    *,
    header_name: str = DEFAULT_SERVER_ID_HEADER,
) -> None:
    """
    Raise `SecurityValidationFailed` unless `header_name` is present with exactly
    `expected_value` and is part of the SigV4 signed header set.
    """

    provided = ",".join(get_header_values(headers, header_name))
    if not provided:
        raise SecurityValidationFailed(
            f"missing header {header_name!r}", reason="missing_server_id_header"
        )
    if provided != expected_value:
        raise SecurityValidationFailed(
            f"expected {expected_value!r} but got {provided!r}", reason="server_id_mismatch"
        )

    # Query-string (presigned) SigV4 carries its own signed header list; only header auth is accepted.
    query_keys = {k.lower() for k, _ in parse_qsl(urlsplit(request_url).query)}
    if "x-amz-signature" in query_keys or "x-amz-signedheaders" in query_keys:
        raise SecurityValidationFailed(
            "query-string signed requests are not accepted", reason="presigned_url"
        )

    authorization = get_header_values(headers, "Authorization")
    if not authorization:
        raise SecurityValidationFailed(
            "missing Authorization header", reason="missing_authorization"
        )

    if header_name.lower() not in extract_signed_headers(authorization):
        raise SecurityValidationFailed(
            f"header {header_name!r} is not covered by the request signature",
            reason="server_id_header_unsigned",
        )


# --- Module Notes -----------------------------------------------------------
# Header maps here are the Go-style `name -> [values]` shape produced by `iam.login_data`.

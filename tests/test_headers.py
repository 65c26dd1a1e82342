"""
tests.test_headers

Anti-replay header validation: presence, value and signature coverage.
"""

from __future__ import annotations

import pytest

from iamauth.iam.errors import SecurityValidationFailed
from iamauth.iam.headers import validate_server_id_header
from iamauth.settings import DEFAULT_SERVER_ID_HEADER

CANARY = "Vault-Server"
REQUEST_URL = "https://sts.amazonaws.com/"
SIGNED = (
    "AWS4-HMAC-SHA256 Credential=AKIDEXAMPLE/20150830/us-east-1/iam/aws4_request, "
    "SignedHeaders=content-type;host;x-amz-date;x-vault-aws-iam-server-id, "
    "Signature=5d672d79c15b13162d9279b0855cfba6789a8edb4c82c400e06b5924a6f2b5d7"
)
UNSIGNED = (
    "AWS4-HMAC-SHA256 Credential=AKIDEXAMPLE/20150830/us-east-1/iam/aws4_request, "
    "SignedHeaders=content-type;host;x-amz-date, "
    "Signature=5d672d79c15b13162d9279b0855cfba6789a8edb4c82c400e06b5924a6f2b5d7"
)


def _reason(headers: dict[str, list[str]], url: str = REQUEST_URL) -> str:
    with pytest.raises(SecurityValidationFailed) as exc_info:
        validate_server_id_header(headers, url, CANARY)
    return exc_info.value.reason


def test_missing_header_is_rejected() -> None:
    headers = {"Host": ["Foo"], "Authorization": [SIGNED]}
    assert _reason(headers) == "missing_server_id_header"


def test_wrong_value_is_rejected() -> None:
    headers = {"Host": ["Foo"], DEFAULT_SERVER_ID_HEADER: ["InvalidValue"], "Authorization": [SIGNED]}
    assert _reason(headers) == "server_id_mismatch"


def test_unsigned_header_is_rejected() -> None:
    headers = {"Host": ["Foo"], DEFAULT_SERVER_ID_HEADER: [CANARY], "Authorization": [UNSIGNED]}
    assert _reason(headers) == "server_id_header_unsigned"


def test_missing_authorization_is_rejected() -> None:
    headers = {"Host": ["Foo"], DEFAULT_SERVER_ID_HEADER: [CANARY]}
    assert _reason(headers) == "missing_authorization"


def test_valid_request_passes() -> None:
    headers = {"Host": ["Foo"], DEFAULT_SERVER_ID_HEADER: [CANARY], "Authorization": [SIGNED]}
    validate_server_id_header(headers, REQUEST_URL, CANARY)


def test_split_authorization_header_passes() -> None:
    first, rest = SIGNED.split(", ", 1)
    headers = {
        "Host": ["Foo"],
        DEFAULT_SERVER_ID_HEADER: [CANARY],
        "Authorization": [first, rest],
    }
    validate_server_id_header(headers, REQUEST_URL, CANARY)


def test_header_names_are_case_insensitive() -> None:
    headers = {"x-vault-aws-iam-server-id": [CANARY], "authorization": [SIGNED]}
    validate_server_id_header(headers, REQUEST_URL, CANARY)


def test_second_signed_headers_component_is_rejected() -> None:
    headers = {
        DEFAULT_SERVER_ID_HEADER: [CANARY],
        "Authorization": [UNSIGNED],
        "authorization": ["SignedHeaders=x-vault-aws-iam-server-id"],
    }
    assert _reason(headers) == "ambiguous_signed_headers"


def test_query_string_signatures_are_rejected() -> None:
    headers = {DEFAULT_SERVER_ID_HEADER: [CANARY], "Authorization": [SIGNED]}
    url = REQUEST_URL + "?X-Amz-SignedHeaders=host%3Bx-vault-aws-iam-server-id&X-Amz-Signature=abc"
    assert _reason(headers, url) == "presigned_url"


def test_custom_header_name() -> None:
    signed = SIGNED.replace("x-vault-aws-iam-server-id", "x-acme-server-id")
    headers = {"X-Acme-Server-ID": [CANARY], "Authorization": [signed]}
    validate_server_id_header(headers, REQUEST_URL, CANARY, header_name="X-Acme-Server-ID")

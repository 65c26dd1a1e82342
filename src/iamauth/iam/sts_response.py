"""
iamauth.iam.sts_response

Decoder for the STS GetCallerIdentity wire format.

Responsibilities:
- Turn the fixed-schema XML body into typed dataclasses.
- Reject anything else loudly (garbage never becomes an empty identity).
- Best-effort extraction of STS `ErrorResponse` details for upstream failure logs.

Example:

    <GetCallerIdentityResponse xmlns="https://sts.amazonaws.com/doc/2011-06-15/">
      <GetCallerIdentityResult>
        <Arn>arn:aws:iam::123456789012:user/MyUserName</Arn>
        <UserId>ASOMETHINGSOMETHINGSOMETHING</UserId>
        <Account>123456789012</Account>
      </GetCallerIdentityResult>
      <ResponseMetadata>
        <RequestId>7f4fc40c-853a-11e6-8848-8d035d01eb87</RequestId>
      </ResponseMetadata>
    </GetCallerIdentityResponse>
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

from iamauth.iam.errors import MalformedInput

STS_NAMESPACE = "https://sts.amazonaws.com/doc/2011-06-15/"


@dataclass(frozen=True, slots=True)
class CallerIdentity:
    arn: str
    user_id: str
    account: str


@dataclass(frozen=True, slots=True)
class ResponseMetadata:
    request_id: str = ""


@dataclass(frozen=True, slots=True)
class GetCallerIdentityResponse:
    # A list to mirror the repeatable wire element; STS always sends exactly one.
    get_caller_identity_result: list[CallerIdentity]
    response_metadata: ResponseMetadata = field(default_factory=ResponseMetadata)

    @property
    def identity(self) -> CallerIdentity:
        return self.get_caller_identity_result[0]


@dataclass(frozen=True, slots=True)
class StsError:
    code: str = ""
    message: str = ""


def _local(tag: str) -> str:
    # "{namespace}Name" -> "Name"
    return tag.rsplit("}", 1)[-1]


def _children(elem: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in elem if _local(child.tag) == name]


def _text(elem: ET.Element, name: str) -> str:
    found = _children(elem, name)
    if not found:
        return ""
    return (found[0].text or "").strip()


def _namespace_ok(tag: str) -> bool:
    if not tag.startswith("{"):
        return True
    return tag[1:].split("}", 1)[0] == STS_NAMESPACE


def parse_get_caller_identity_response(body: str) -> GetCallerIdentityResponse:
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise MalformedInput(f"unable to parse GetCallerIdentity response: {e}", reason="sts_xml") from e

    if _local(root.tag) != "GetCallerIdentityResponse" or not _namespace_ok(root.tag):
        raise MalformedInput(
            f"unexpected root element {root.tag!r} in GetCallerIdentity response",
            reason="sts_schema",
        )

    results = _children(root, "GetCallerIdentityResult")
    if len(results) != 1:
        raise MalformedInput(
            f"expected exactly one GetCallerIdentityResult, got {len(results)}",
            reason="sts_schema",
        )
    result = results[0]
    identity = CallerIdentity(
        arn=_text(result, "Arn"),
        user_id=_text(result, "UserId"),
        account=_text(result, "Account"),
    )
    if not identity.arn:
        raise MalformedInput("GetCallerIdentity response has no Arn", reason="sts_schema")

    metadata = _children(root, "ResponseMetadata")
    request_id = _text(metadata[0], "RequestId") if metadata else ""

    return GetCallerIdentityResponse(
        get_caller_identity_result=[identity],
        response_metadata=ResponseMetadata(request_id=request_id),
    )


def parse_error_response(body: str) -> StsError:
    """
    Extract `<Error><Code/><Message/></Error>` from an STS error body.
    Returns an empty `StsError` for anything unparsable.
    """

    try:
        root = ET.fromstring(body)
    except ET.ParseError:
        return StsError()
    errors = [root] if _local(root.tag) == "Error" else _children(root, "Error")
    if not errors:
        return StsError()
    return StsError(code=_text(errors[0], "Code"), message=_text(errors[0], "Message"))


# --- Module Notes -----------------------------------------------------------
# This decoder is part of the service's wire contract; schema changes need a new parser version.

"""
iamauth.iam.arn

IAM principal ARN parsing and canonicalization.

Responsibilities:
- Decompose `arn:<partition>:<service>:<region>:<account>:<resource>` into an `IamEntity`.
- Produce the canonical ARN used for role binding, so an assumed-role session and
  its underlying role compare equal.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from iamauth.iam.errors import MalformedInput


class PrincipalType(enum.StrEnum):
    user = "user"
    role = "role"
    assumed_role = "assumed-role"
    instance_profile = "instance-profile"
    other = "other"

    @classmethod
    def from_resource_type(cls, raw: str) -> PrincipalType:
        try:
            member = cls(raw)
        except ValueError:
            return cls.other
        # "other" is our own bucket, not an AWS resource type.
        return cls.other if member is cls.other else member


@dataclass(frozen=True, slots=True)
class IamEntity:
    """
    Structured form of an IAM principal ARN.

    For `assumed-role`, `friendly_name` is the role name and `session_info` the
    session name. `type_name` keeps the raw resource type for `other` principals.
    """

    partition: str
    account_number: str
    type: PrincipalType
    friendly_name: str
    path: str = ""
    session_info: str = ""
    type_name: str = ""

    def __post_init__(self) -> None:
        if not self.partition:
            raise MalformedInput("arn has an empty partition", reason="arn_partition")
        if not self.account_number:
            raise MalformedInput("arn has an empty account number", reason="arn_account")
        if not self.friendly_name:
            raise MalformedInput("arn has an empty principal name", reason="arn_name")
        if self.type is PrincipalType.assumed_role:
            if not self.session_info:
                raise MalformedInput("assumed-role arn without session name", reason="arn_session")
            if self.path:
                raise MalformedInput("assumed-role arn cannot carry a path", reason="arn_path")
        elif self.session_info:
            raise MalformedInput(
                f"session info is only valid for assumed-role, not {self.resource_type}",
                reason="arn_session",
            )
        if self.type is PrincipalType.other and not self.type_name:
            raise MalformedInput("arn has an empty principal type", reason="arn_type")

    @property
    def resource_type(self) -> str:
        if self.type is PrincipalType.other:
            return self.type_name
        return self.type.value

    def canonical_arn(self) -> str:
        # Path and session are dropped; the region and service are normalized to IAM.
        entity_type = self.resource_type
        if self.type is PrincipalType.assumed_role:
            entity_type = PrincipalType.role.value
        return f"arn:{self.partition}:iam::{self.account_number}:{entity_type}/{self.friendly_name}"

    def full_arn(self) -> str:
        if self.type is PrincipalType.assumed_role:
            return (
                f"arn:{self.partition}:sts::{self.account_number}:"
                f"assumed-role/{self.friendly_name}/{self.session_info}"
            )
        segments = [self.resource_type, *([self.path] if self.path else []), self.friendly_name]
        return f"arn:{self.partition}:iam::{self.account_number}:{'/'.join(segments)}"


def parse_iam_arn(arn: str) -> IamEntity:
    """
    Parse a principal ARN as returned by STS GetCallerIdentity.

    Accepted resource shapes:
    - `<type>/<name>` and `<type>/<path...>/<name>`
    - `assumed-role/<role name>/<session name>`
    """

    if not arn:
        raise MalformedInput("empty arn", reason="arn_empty")

    fields = arn.split(":")
    if len(fields) != 6:
        raise MalformedInput(
            f"unrecognized arn: contains {len(fields)} colon-separated parts, expected 6",
            reason="arn_fields",
        )
    prefix, partition, _service, _region, account_number, resource = fields
    if prefix != "arn":
        raise MalformedInput('unrecognized arn: does not begin with "arn:"', reason="arn_prefix")
    if not account_number:
        raise MalformedInput("unrecognized arn: missing account number", reason="arn_account")

    parts = resource.split("/")
    if len(parts) < 2:
        raise MalformedInput(
            f"unrecognized arn: {resource!r} contains fewer than 2 slash-separated parts",
            reason="arn_resource",
        )
    raw_type = parts[0]
    if not raw_type:
        raise MalformedInput("unrecognized arn: empty principal type", reason="arn_type")

    principal_type = PrincipalType.from_resource_type(raw_type)
    if principal_type is PrincipalType.assumed_role:
        if len(parts) != 3:
            raise MalformedInput(
                f"unrecognized arn: {resource!r} must be assumed-role/<role>/<session>",
                reason="arn_resource",
            )
        return IamEntity(
            partition=partition,
            account_number=account_number,
            type=principal_type,
            friendly_name=parts[1],
            session_info=parts[2],
        )

    return IamEntity(
        partition=partition,
        account_number=account_number,
        type=principal_type,
        path="/".join(parts[1:-1]),
        friendly_name=parts[-1],
        type_name=raw_type if principal_type is PrincipalType.other else "",
    )


def canonicalize_arn(arn: str) -> str:
    return parse_iam_arn(arn).canonical_arn()


# --- Module Notes -----------------------------------------------------------
# Role bindings are stored in canonical form (`services.role_store`), so matching is plain
# string equality between two canonical ARNs.

"""
iamauth.iam

IAM identity-verification core.

Responsibilities:
- ARN parsing and canonicalization.
- Anti-replay header validation of caller-signed requests.
- STS GetCallerIdentity response decoding.
- Login payload encoding/decoding for signed-request replay.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Everything in this package is pure and synchronous; I/O lives in `sts_client` and `services`.

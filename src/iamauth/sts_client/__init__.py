"""
iamauth.sts_client

Identity service client package.

Responsibilities:
- Replay caller-signed requests against the configured STS endpoint.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The login flow depends on this boundary (not on httpx directly).

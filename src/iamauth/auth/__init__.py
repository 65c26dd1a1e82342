"""
iamauth.auth

Session token package.

Responsibilities:
- Issue JWTs for successfully verified IAM principals.
- FastAPI auth dependencies (Principal + RBAC) for the admin surface.
"""

# Package marker.

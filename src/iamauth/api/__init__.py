"""
iamauth.api

HTTP API package.

Responsibilities:
- FastAPI app factory and routers.
- Dependency wiring for settings, DB sessions and the login service.
"""

# Package marker.

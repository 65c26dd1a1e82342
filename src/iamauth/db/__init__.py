"""
iamauth.db

Persistence package.

Responsibilities:
- SQLAlchemy async engine/session helpers.
- ORM models for role bindings and the login audit trail.
- Repositories encapsulating query patterns.
"""

# Package marker.

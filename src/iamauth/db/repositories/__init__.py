"""
iamauth.db.repositories

Repository layer.

Responsibilities:
- Encapsulate query patterns for roles and login audit events.
- Keep routers/services independent of SQLAlchemy query details.
"""

# Package marker.

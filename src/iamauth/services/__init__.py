"""
iamauth.services

Service layer package.

Responsibilities:
- Own the login transaction (graph execution, audit persistence, logging).
- Own the role store collaborator.
"""

# Package marker.

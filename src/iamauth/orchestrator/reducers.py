"""
iamauth.orchestrator.reducers

Reducers define how LangGraph merges partial state updates.
"""

from __future__ import annotations


def append_transitions(left: list[str] | None, right: list[str] | None) -> list[str]:
    """
    Append-only reducer for the stage trail.

    Nodes return `{"transitions": [stage]}` and this reducer concatenates.
    """

    if not left:
        return list(right or [])
    if not right:
        return list(left)
    return [*left, *right]

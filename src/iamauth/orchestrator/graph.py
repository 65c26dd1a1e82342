from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from langgraph.graph import END, StateGraph

from iamauth.orchestrator.nodes import (
    entity_canonicalized_node,
    header_validated_node,
    identity_fetched_node,
    payload_built_node,
    received_login_node,
    role_matched_node,
)
from iamauth.orchestrator.state import LoginState
from iamauth.services.role_store import RoleStore
from iamauth.settings import Settings
from iamauth.sts_client.http import StsClient


def build_graph(*, settings: Settings, client: StsClient, roles: RoleStore):
    """
    Returns a compiled LangGraph runnable for one login attempt.

    The graph is strictly linear; a node raising `AuthError` ends the run.
    """

    graph = StateGraph(LoginState)

    graph.add_node("received_login", received_login_node)
    graph.add_node("header_validated", _bind(header_validated_node, settings=settings))
    graph.add_node("payload_built", payload_built_node)
    graph.add_node("identity_fetched", _bind(identity_fetched_node, client=client))
    graph.add_node("entity_canonicalized", entity_canonicalized_node)
    graph.add_node("role_matched", _bind(role_matched_node, roles=roles))

    graph.set_entry_point("received_login")

    graph.add_edge("received_login", "header_validated")
    graph.add_edge("header_validated", "payload_built")
    graph.add_edge("payload_built", "identity_fetched")
    graph.add_edge("identity_fetched", "entity_canonicalized")
    graph.add_edge("entity_canonicalized", "role_matched")
    graph.add_edge("role_matched", END)

    return graph.compile()


def _bind(
    fn: Callable[..., Awaitable[LoginState]],
    **deps: Any,
) -> Callable[[LoginState], Awaitable[LoginState]]:
    async def _wrapped(state: LoginState) -> LoginState:
        return await fn(state, **deps)

    return _wrapped

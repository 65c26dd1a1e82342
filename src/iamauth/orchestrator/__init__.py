"""
iamauth.orchestrator

LangGraph orchestration package for the login state machine.

Responsibilities:
- State schema (`state.py`) and reducers (`reducers.py`).
- Node implementations (`nodes.py`), one per state transition.
- Graph wiring (`graph.py`).
"""

# Package marker.

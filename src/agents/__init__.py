"""LangGraph agent components."""

from src.agents.graph import ConversationalSearchAgent, create_search_graph
from src.agents.nodes import SearchNodes
from src.agents.state import TurnState, create_initial_state

__all__ = [
    "ConversationalSearchAgent",
    "SearchNodes",
    "TurnState",
    "create_initial_state",
    "create_search_graph",
]

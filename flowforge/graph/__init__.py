"""LangGraph configuration and utilities.

Re-exports the LangGraph primitives the conversation and generation
workflows are built from.
"""

from typing import TypeVar

from langgraph.graph import END, START, StateGraph
from langgraph.graph.state import CompiledStateGraph as CompiledGraph

__all__ = [
    "END",
    "START",
    "CompiledGraph",
    "StateGraph",
    "create_graph",
]


S = TypeVar("S")


def create_graph(state_class: type[S]) -> StateGraph[S]:
    """Create a new StateGraph with the given state class.

    Args:
        state_class: TypedDict defining the state schema

    Returns:
        New StateGraph instance ready for node/edge configuration
    """
    return StateGraph(state_class)

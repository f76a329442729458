"""Graph nodes for the LangGraph workflows.

Each node is an async callable that takes state and returns state updates.
"""

from flowforge.graph.nodes.conversation import (
    OPEN_QUESTION,
    RESET_MESSAGE,
    STARTER_QUESTIONS,
    WELCOME_MESSAGE,
    ConversationNodes,
)
from flowforge.graph.nodes.generation import generate_node, recover_node, validate_node

__all__ = [
    "OPEN_QUESTION",
    "RESET_MESSAGE",
    "STARTER_QUESTIONS",
    "WELCOME_MESSAGE",
    "ConversationNodes",
    "generate_node",
    "recover_node",
    "validate_node",
]

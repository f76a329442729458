"""Conversation workflow: one user turn through the phase state machine."""

from __future__ import annotations

from typing import TYPE_CHECKING

from flowforge.graph import END, START, CompiledGraph, StateGraph, create_graph
from flowforge.graph.nodes.conversation import ConversationNodes
from flowforge.graph.state import ConversationTurnState, IntentType, Phase
from flowforge.tracing import traced_node

if TYPE_CHECKING:
    from flowforge.services.pipeline import Pipeline

PHASE_HANDLERS: dict[Phase, str] = {
    Phase.GATHERING: "handle_gathering",
    Phase.REFINING: "handle_refining",
    Phase.CONFIRMING: "handle_confirming",
    Phase.GENERATING: "handle_generating",
    Phase.DEPLOYING: "handle_deploying",
    Phase.COMPLETED: "handle_completed",
}


def route_turn(state: ConversationTurnState) -> str:
    """Reset wins over everything; otherwise the current phase decides."""
    intent = state.get("intent")
    if intent is not None and intent.intent == IntentType.RESET:
        return "handle_reset"
    return PHASE_HANDLERS[state["session"].phase]


def route_after_confirming(state: ConversationTurnState) -> str:
    return "handle_generating" if state.get("run_generation") else END


def build_conversation_graph(pipeline: Pipeline) -> StateGraph:
    """Build the per-turn conversation graph.

    Graph structure:
    ```
    START
      │
      ▼
    classify_intent
      │
      ├── reset ─────────► handle_reset ──────► END
      ├── gathering ─────► handle_gathering ──► END
      ├── refining ──────► handle_refining ───► END
      ├── confirming ────► handle_confirming ─┬► END
      │                                       └► handle_generating (confirmed)
      ├── generating ────► handle_generating ─► END
      ├── deploying ─────► handle_deploying ──► END
      └── completed ─────► handle_completed ──► END
    ```
    """
    nodes = ConversationNodes(pipeline)
    graph = create_graph(ConversationTurnState)

    graph.add_node("classify_intent", traced_node("classify_intent", nodes.classify_intent))
    graph.add_node("handle_reset", traced_node("handle_reset", nodes.handle_reset))
    for handler in PHASE_HANDLERS.values():
        graph.add_node(handler, traced_node(handler, getattr(nodes, handler)))

    graph.add_edge(START, "classify_intent")
    graph.add_conditional_edges(
        "classify_intent",
        route_turn,
        ["handle_reset", *PHASE_HANDLERS.values()],
    )
    graph.add_conditional_edges(
        "handle_confirming",
        route_after_confirming,
        ["handle_generating", END],
    )
    for handler in ["handle_reset", *PHASE_HANDLERS.values()]:
        if handler != "handle_confirming":
            graph.add_edge(handler, END)
    return graph


def compile_conversation_graph(pipeline: Pipeline) -> CompiledGraph:
    return build_conversation_graph(pipeline).compile()

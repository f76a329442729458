"""LangGraph workflows for the conversation pipeline."""

from flowforge.graph.workflows.conversation import (
    build_conversation_graph,
    compile_conversation_graph,
    route_turn,
)
from flowforge.graph.workflows.generation import (
    GenerationOutcome,
    build_generation_graph,
    compile_generation_graph,
    run_generation,
)

__all__ = [
    "GenerationOutcome",
    "build_conversation_graph",
    "build_generation_graph",
    "compile_conversation_graph",
    "compile_generation_graph",
    "route_turn",
    "run_generation",
]

"""Generation workflow: build, validate and recover until success or explanation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from flowforge.graph import END, START, CompiledGraph, StateGraph, create_graph
from flowforge.graph.nodes.generation import generate_node, recover_node, validate_node
from flowforge.graph.state import (
    ErrorContext,
    GenerationLoopState,
    GenerationStrategy,
    Phase,
    RecoveryDecision,
    Specification,
    ValidationVerdict,
    WorkflowArtifact,
)
from flowforge.tracing import traced_node

if TYPE_CHECKING:
    from flowforge.generation import ArtifactGenerator
    from flowforge.recovery import RetryCoordinator
    from flowforge.validation import ValidationAggregator

logger = logging.getLogger(__name__)

GENERATION_OPERATION = "generation"


@dataclass
class GenerationOutcome:
    """Result of one run of the generation loop."""

    succeeded: bool
    error_context: ErrorContext
    artifact: WorkflowArtifact | None = None
    verdict: ValidationVerdict | None = None
    decision: RecoveryDecision | None = None


def build_generation_graph(
    generator: ArtifactGenerator,
    aggregator: ValidationAggregator,
    coordinator: RetryCoordinator,
) -> StateGraph:
    """Build the generation loop graph.

    Graph structure:
    ```
    START
      │
      ▼
    generate ──error──► recover ──explain──► END
      │                  ▲   │
      ▼                  │   └──retry──► generate
    validate ──invalid───┘
      │
      ▼
     END
    ```
    """
    graph = create_graph(GenerationLoopState)

    async def _generate(state: GenerationLoopState) -> dict[str, object]:
        return await generate_node(state, generator)

    async def _validate(state: GenerationLoopState) -> dict[str, object]:
        return await validate_node(state, aggregator, coordinator)

    async def _recover(state: GenerationLoopState) -> dict[str, object]:
        return await recover_node(state, coordinator)

    def _after_generate(state: GenerationLoopState) -> str:
        return "recover" if state.get("error") is not None else "validate"

    def _after_validate(state: GenerationLoopState) -> str:
        return END if state.get("succeeded") else "recover"

    def _after_recover(state: GenerationLoopState) -> str:
        decision = state.get("decision")
        return "generate" if decision is not None and decision.should_retry else END

    graph.add_node("generate", traced_node("generate", _generate))
    graph.add_node("validate", traced_node("validate", _validate))
    graph.add_node("recover", traced_node("recover", _recover))

    graph.add_edge(START, "generate")
    graph.add_conditional_edges("generate", _after_generate, ["validate", "recover"])
    graph.add_conditional_edges("validate", _after_validate, ["recover", END])
    graph.add_conditional_edges("recover", _after_recover, ["generate", END])
    return graph


def compile_generation_graph(
    generator: ArtifactGenerator,
    aggregator: ValidationAggregator,
    coordinator: RetryCoordinator,
) -> CompiledGraph:
    return build_generation_graph(generator, aggregator, coordinator).compile()


async def run_generation(
    spec: Specification,
    compiled: CompiledGraph,
    coordinator: RetryCoordinator,
) -> GenerationOutcome:
    """Run the loop once with a fresh retry ledger."""
    error_context = coordinator.start(GENERATION_OPERATION, Phase.GENERATING)
    initial: GenerationLoopState = {
        "specification": spec,
        "strategy": GenerationStrategy.STANDARD,
        "corrections": [],
        "error_context": error_context,
        "artifact": None,
        "verdict": None,
        "error": None,
        "decision": None,
        "succeeded": False,
    }
    final = await compiled.ainvoke(initial)  # type: ignore[arg-type]

    succeeded = bool(final.get("succeeded"))
    outcome = GenerationOutcome(
        succeeded=succeeded,
        error_context=final.get("error_context", error_context),
        artifact=final.get("artifact") if succeeded else None,
        verdict=final.get("verdict"),
        decision=final.get("decision"),
    )
    logger.info(
        "Generation %s after %d failed attempt(s)",
        "succeeded" if succeeded else "gave up",
        outcome.error_context.attempt_number,
    )
    return outcome

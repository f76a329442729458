"""Nodes of the generate -> validate -> recover loop.

Each node takes the loop state plus its collaborator and returns a dict
of state updates.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import httpx

from flowforge.exceptions import ArtifactValidationError, FlowForgeError, GenerationError
from flowforge.graph.state import GenerationLoopState, GenerationStrategy

if TYPE_CHECKING:
    from flowforge.generation import ArtifactGenerator
    from flowforge.recovery import RetryCoordinator
    from flowforge.validation import ValidationAggregator

logger = logging.getLogger(__name__)


async def generate_node(
    state: GenerationLoopState,
    generator: ArtifactGenerator,
) -> dict[str, Any]:
    """Build an artifact with the current strategy and corrections.

    Failures are put on the state for the recover node rather than raised.
    """
    strategy = state.get("strategy", GenerationStrategy.STANDARD)
    try:
        artifact = await generator.generate(
            state["specification"],
            strategy=strategy,
            corrections=state.get("corrections", []),
        )
    except (FlowForgeError, TimeoutError, httpx.HTTPError) as e:
        logger.info("Generation with %s strategy failed: %s", strategy.value, e)
        return {"artifact": None, "error": e}
    return {"artifact": artifact, "error": None}


async def validate_node(
    state: GenerationLoopState,
    aggregator: ValidationAggregator,
    coordinator: RetryCoordinator,
) -> dict[str, Any]:
    """Validate the artifact; an invalid verdict becomes an error for recovery."""
    artifact = state.get("artifact")
    if artifact is None:
        raise GenerationError("Validation reached without an artifact")
    verdict = await aggregator.validate(artifact, state["specification"])
    if not verdict.is_valid:
        blocking = "; ".join(issue.message for issue in verdict.blocking_issues())
        error = ArtifactValidationError(
            f"Workflow failed validation (score {verdict.score}): {blocking}",
            verdict=verdict,
        )
        return {"verdict": verdict, "error": error, "succeeded": False}

    coordinator.record_success(
        state["error_context"],
        state.get("strategy", GenerationStrategy.STANDARD),
    )
    return {"verdict": verdict, "error": None, "succeeded": True}


async def recover_node(
    state: GenerationLoopState,
    coordinator: RetryCoordinator,
) -> dict[str, Any]:
    """Record the failure and pick the next strategy, waiting out any backoff."""
    error = state.get("error")
    if error is None:
        raise GenerationError("Recovery reached without a failure to recover from")
    decision = coordinator.record_failure(
        state["error_context"],
        error,
        state.get("strategy", GenerationStrategy.STANDARD),
    )
    if decision.delay_seconds > 0:
        await asyncio.sleep(decision.delay_seconds)

    updates: dict[str, Any] = {"decision": decision, "error_context": state["error_context"]}
    if decision.should_retry:
        updates["strategy"] = decision.strategy
        updates["corrections"] = list(decision.corrections)
    return updates

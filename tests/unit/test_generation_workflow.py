"""Tests for the generate -> validate -> recover graph."""

import pytest

from flowforge.exceptions import GenerationError
from flowforge.generation import ArtifactGenerator
from flowforge.graph.nodes.generation import recover_node, validate_node
from flowforge.graph.state import (
    Action,
    Correction,
    ErrorKind,
    GenerationStrategy,
    RecoveryAction,
    ScheduleTrigger,
    Severity,
    ValidationIssue,
)
from flowforge.graph.workflows.generation import compile_generation_graph, run_generation
from flowforge.validation import ValidationAggregator
from tests.fakes import ScriptedArtifactBuilder, StaticCheck, make_artifact, slack_spec


@pytest.fixture
def aggregator() -> ValidationAggregator:
    return ValidationAggregator()


def _blocking_aggregator() -> tuple[ValidationAggregator, list[StaticCheck]]:
    issue = ValidationIssue(
        severity=Severity.CRITICAL, category="credentials", message="literal token", blocking=True
    )
    checks = [
        StaticCheck("structural", 100),
        StaticCheck("performance", 90),
        StaticCheck("security", 40, [issue]),
    ]
    return ValidationAggregator(*checks), checks


class TestGenerationLoop:
    """Tests for the generation loop and its retry ledger."""

    async def test_first_attempt_succeeds(self, coordinator, aggregator):
        compiled = compile_generation_graph(ArtifactGenerator(), aggregator, coordinator)

        outcome = await run_generation(slack_spec(), compiled, coordinator)

        assert outcome.succeeded
        assert outcome.artifact.node_ids() == ["trigger", "slack-1"]
        assert outcome.verdict.score == 85
        assert outcome.error_context.attempt_number == 0
        assert [a.success for a in outcome.error_context.previous_attempts] == [True]

    async def test_duplicate_ids_are_corrected_on_second_attempt(self, coordinator, aggregator):
        builder = ScriptedArtifactBuilder(
            make_artifact(("trigger", "step", "step"), [("trigger", "step"), ("step", "step")])
        )
        compiled = compile_generation_graph(ArtifactGenerator(builder=builder), aggregator, coordinator)

        outcome = await run_generation(slack_spec(), compiled, coordinator)

        assert outcome.succeeded
        assert outcome.artifact.node_ids() == ["trigger", "step", "step-2"]
        assert len(builder.calls) == 2

        first, second = outcome.error_context.previous_attempts
        assert first.error_kind == ErrorKind.STRUCTURAL
        assert first.corrections == []
        assert second.success
        assert second.corrections == [Correction.REGENERATE_IDS]
        assert outcome.error_context.attempt_number == 1

    async def test_unavailable_step_falls_back_to_alternative_nodes(self, coordinator, aggregator):
        spec = slack_spec(actions=[Action(type="sms", description="Text me")], integrations=["sms"])
        compiled = compile_generation_graph(ArtifactGenerator(), aggregator, coordinator)

        outcome = await run_generation(spec, compiled, coordinator)

        assert outcome.succeeded
        assert outcome.artifact.strategy == GenerationStrategy.ALTERNATIVE_NODES
        assert outcome.error_context.previous_attempts[0].error_kind == ErrorKind.CAPABILITY

    async def test_transient_failure_is_retried(self, coordinator, aggregator):
        builder = ScriptedArtifactBuilder(TimeoutError("model timed out"), make_artifact())
        compiled = compile_generation_graph(ArtifactGenerator(builder=builder), aggregator, coordinator)

        outcome = await run_generation(slack_spec(), compiled, coordinator)

        assert outcome.succeeded
        assert outcome.error_context.previous_attempts[0].error_kind == ErrorKind.TRANSIENT
        assert outcome.error_context.previous_attempts[1].strategy == GenerationStrategy.STANDARD

    async def test_gives_up_after_three_attempts(self, coordinator):
        aggregator, checks = _blocking_aggregator()
        compiled = compile_generation_graph(ArtifactGenerator(), aggregator, coordinator)

        outcome = await run_generation(slack_spec(), compiled, coordinator)

        assert not outcome.succeeded
        assert outcome.artifact is None
        assert outcome.verdict.score == 40
        assert outcome.decision.action == RecoveryAction.EXPLAIN
        assert outcome.decision.explanation.startswith("I wasn't able to build your workflow after 3 attempts.")
        assert outcome.error_context.attempt_number == 3
        assert [a.strategy for a in outcome.error_context.previous_attempts] == [
            GenerationStrategy.STANDARD,
            GenerationStrategy.SIMPLIFIED,
            GenerationStrategy.TEMPLATE,
        ]
        assert all(a.error_kind == ErrorKind.VALIDATION for a in outcome.error_context.previous_attempts)
        assert [check.calls for check in checks] == [3, 3, 3]

    async def test_each_run_starts_a_fresh_ledger(self, coordinator):
        aggregator, _ = _blocking_aggregator()
        compiled = compile_generation_graph(ArtifactGenerator(), aggregator, coordinator)

        await run_generation(slack_spec(), compiled, coordinator)
        outcome = await run_generation(slack_spec(), compiled, coordinator)

        assert outcome.error_context.attempt_number == 3
        assert len(outcome.error_context.previous_attempts) == 3

    async def test_validation_error_message_names_blocking_issues(self, coordinator):
        aggregator, _ = _blocking_aggregator()
        compiled = compile_generation_graph(ArtifactGenerator(), aggregator, coordinator)

        outcome = await run_generation(slack_spec(), compiled, coordinator)

        assert outcome.error_context.error_message == "Workflow failed validation (score 40): literal token"

    async def test_unreadable_schedule_is_recovered(self, coordinator, aggregator):
        spec = slack_spec(trigger=ScheduleTrigger(description="Daily", parameters={"time": "8am"}))
        compiled = compile_generation_graph(ArtifactGenerator(), aggregator, coordinator)

        outcome = await run_generation(spec, compiled, coordinator)

        attempts = outcome.error_context.previous_attempts
        assert attempts[0].error_kind == ErrorKind.STRUCTURAL
        assert [a.strategy for a in attempts] == [
            GenerationStrategy.STANDARD,
            GenerationStrategy.SIMPLIFIED,
            GenerationStrategy.TEMPLATE,
        ]


class TestGenerationNodes:
    """Tests for the loop nodes called out of order."""

    async def test_validate_without_artifact(self, coordinator, aggregator):
        state = {"specification": slack_spec(), "artifact": None}

        with pytest.raises(GenerationError, match="without an artifact"):
            await validate_node(state, aggregator, coordinator)

    async def test_recover_without_error(self, coordinator):
        state = {"specification": slack_spec(), "error": None}

        with pytest.raises(GenerationError, match="without a failure"):
            await recover_node(state, coordinator)

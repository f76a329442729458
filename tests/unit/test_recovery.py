"""Tests for error classification and the retry coordinator."""

import httpx
import pytest

from flowforge.exceptions import (
    ArtifactValidationError,
    DeploymentError,
    GenerationError,
    LLMError,
    LLMResponseError,
)
from flowforge.graph.state import (
    Correction,
    ErrorKind,
    GenerationStrategy,
    Phase,
    RecoveryAction,
)
from flowforge.recovery import GENERAL_SUGGESTIONS, RetryCoordinator, classify_error, corrections_for


class TestClassifyError:
    """Tests for mapping failures onto error kinds."""

    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (GenerationError("no node", reason="capability"), ErrorKind.CAPABILITY),
            (GenerationError("broken", violations=["duplicate_id"]), ErrorKind.STRUCTURAL),
            (GenerationError("bad output", reason="parse"), ErrorKind.STRUCTURAL),
            (ArtifactValidationError("score too low"), ErrorKind.VALIDATION),
            (DeploymentError("bad key", status_code=401), ErrorKind.AUTH),
            (DeploymentError("forbidden", status_code=403), ErrorKind.AUTH),
            (DeploymentError("busy", status_code=503, transient=True), ErrorKind.TRANSIENT),
            (DeploymentError("Internal error", status_code=500), ErrorKind.UNKNOWN),
            (LLMResponseError("not json"), ErrorKind.STRUCTURAL),
            (LLMError("slow", timeout=True), ErrorKind.TRANSIENT),
            (TimeoutError(), ErrorKind.TRANSIENT),
            (httpx.ConnectError("refused"), ErrorKind.TRANSIENT),
            (RuntimeError("rate limit exceeded"), ErrorKind.TRANSIENT),
            (RuntimeError("invalid api key"), ErrorKind.AUTH),
            (ValueError("could not parse response"), ErrorKind.STRUCTURAL),
            (RuntimeError("node type not supported"), ErrorKind.CAPABILITY),
            (RuntimeError("boom"), ErrorKind.UNKNOWN),
        ],
    )
    def test_classification(self, error, kind):
        assert classify_error(error) == kind

    def test_corrections_for_violations(self):
        error = GenerationError(
            "broken",
            violations=["duplicate_id", "dangling_connection", "no_entry_point", "duplicate_id"],
        )
        assert corrections_for(error) == [Correction.REGENERATE_IDS, Correction.DROP_DANGLING_CONNECTIONS]

    def test_no_corrections_for_plain_errors(self):
        assert corrections_for(RuntimeError("boom")) == []


class TestRetryCoordinator:
    """Tests for retry decisions and the attempt ceiling."""

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            RetryCoordinator(max_attempts=0)

    def test_start(self, coordinator):
        context = coordinator.start("generation", Phase.GENERATING)
        assert context.attempt_number == 0
        assert context.previous_attempts == []
        assert context.phase == Phase.GENERATING

    def test_ceiling_is_never_exceeded(self, coordinator):
        context = coordinator.start("generation", Phase.GENERATING)

        first = coordinator.record_failure(context, RuntimeError("boom"))
        second = coordinator.record_failure(context, RuntimeError("boom"), first.strategy)
        third = coordinator.record_failure(context, RuntimeError("boom"), second.strategy)

        assert [first.action, second.action, third.action] == [
            RecoveryAction.RETRY_ALTERNATIVE,
            RecoveryAction.RETRY_ALTERNATIVE,
            RecoveryAction.EXPLAIN,
        ]
        assert [first.strategy, second.strategy] == [GenerationStrategy.SIMPLIFIED, GenerationStrategy.TEMPLATE]
        assert context.attempt_number == 3
        assert third.explanation == (
            "I wasn't able to build your workflow after 3 attempts. The last error was: boom"
        )
        assert third.suggestions == GENERAL_SUGGESTIONS

        coordinator.record_failure(context, RuntimeError("boom"))
        assert context.attempt_number == 3

    def test_structural_violation_is_corrected_first(self, coordinator):
        context = coordinator.start("generation", Phase.GENERATING)
        error = GenerationError("broken", violations=["duplicate_id"], reason="structure")

        first = coordinator.record_failure(context, error)
        second = coordinator.record_failure(context, error)

        assert first.action == RecoveryAction.RETRY_CORRECTED
        assert first.corrections == [Correction.REGENERATE_IDS]
        assert second.action == RecoveryAction.RETRY_ALTERNATIVE
        assert second.strategy == GenerationStrategy.SIMPLIFIED
        assert second.corrections == [Correction.REGENERATE_IDS]
        assert context.corrections == [Correction.REGENERATE_IDS]

    def test_corrections_accumulate(self, coordinator):
        context = coordinator.start("generation", Phase.GENERATING)

        coordinator.record_failure(context, GenerationError("x", violations=["no_trigger"]))
        decision = coordinator.record_failure(context, GenerationError("x", violations=["no_actions"]))

        assert decision.corrections == [Correction.DEFAULT_TRIGGER, Correction.DEFAULT_ACTION]

    def test_capability_ladder(self, coordinator):
        context = coordinator.start("generation", Phase.GENERATING)
        error = GenerationError("no node", reason="capability")

        first = coordinator.record_failure(context, error)
        second = coordinator.record_failure(context, error, first.strategy)

        assert first.strategy == GenerationStrategy.ALTERNATIVE_NODES
        assert second.strategy == GenerationStrategy.TEMPLATE

    def test_transient_backoff_doubles(self):
        coordinator = RetryCoordinator(max_attempts=3, backoff_seconds=1.0)
        context = coordinator.start("deployment", Phase.DEPLOYING)
        error = DeploymentError("busy", status_code=503, transient=True)

        first = coordinator.record_failure(context, error)
        second = coordinator.record_failure(context, error)

        assert first.action == RecoveryAction.RETRY_DELAYED
        assert [first.delay_seconds, second.delay_seconds] == [1.0, 2.0]

    def test_auth_failure_is_explained_immediately(self, coordinator):
        context = coordinator.start("deployment", Phase.DEPLOYING)

        decision = coordinator.record_failure(context, DeploymentError("bad key", status_code=401))

        assert decision.action == RecoveryAction.EXPLAIN
        assert not decision.should_retry
        assert context.attempt_number == 1
        assert decision.explanation == (
            "I couldn't deploy your workflow because the service rejected the credentials: bad key"
        )

    def test_single_attempt_wording(self):
        coordinator = RetryCoordinator(max_attempts=1, backoff_seconds=0.0)
        context = coordinator.start("generation", Phase.GENERATING)

        decision = coordinator.record_failure(context, RuntimeError("boom"))

        assert decision.explanation.startswith("I wasn't able to build your workflow after 1 attempt.")

    def test_attempt_history(self, coordinator):
        context = coordinator.start("generation", Phase.GENERATING)

        coordinator.record_failure(context, RuntimeError("boom"))
        coordinator.record_success(context, GenerationStrategy.SIMPLIFIED)

        assert [a.success for a in context.previous_attempts] == [False, True]
        assert context.previous_attempts[0].error_kind == ErrorKind.UNKNOWN
        assert context.succeeded

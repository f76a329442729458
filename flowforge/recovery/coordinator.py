"""Error/retry coordinator.

Each failed attempt is recorded in the operation's ``ErrorContext`` and
answered with one decision: retry with automatic corrections, retry with
an alternative strategy (after a backoff for transient failures), or
give up and explain. The attempt ceiling is never exceeded.
"""

import logging

from flowforge.graph.state import (
    ErrorAttempt,
    ErrorContext,
    ErrorKind,
    GenerationStrategy,
    Phase,
    RecoveryAction,
    RecoveryDecision,
)
from flowforge.recovery.classify import classify_error, corrections_for

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3

GENERAL_SUGGESTIONS = [
    "Try simplifying your workflow requirements",
    "Break complex workflows into smaller parts",
    "Check that all integrations are supported",
]
AUTH_SUGGESTIONS = [
    "Check the API key or credentials configured for the service",
    "Reconnect the account and try again",
]

# Alternative strategies, tried in order, per error kind
_LADDERS: dict[ErrorKind, list[GenerationStrategy]] = {
    ErrorKind.CAPABILITY: [GenerationStrategy.ALTERNATIVE_NODES, GenerationStrategy.TEMPLATE],
}
_DEFAULT_LADDER = [GenerationStrategy.SIMPLIFIED, GenerationStrategy.TEMPLATE]

OPERATION_LABELS = {
    "generation": "build your workflow",
    "deployment": "deploy your workflow",
}


def _label(context: ErrorContext) -> str:
    return OPERATION_LABELS.get(context.operation, context.operation.replace("_", " "))


class RetryCoordinator:
    def __init__(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS, backoff_seconds: float = 1.0):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds

    def start(self, operation: str, phase: Phase) -> ErrorContext:
        return ErrorContext(operation=operation, phase=phase)

    def record_success(
        self,
        context: ErrorContext,
        strategy: GenerationStrategy = GenerationStrategy.STANDARD,
    ) -> None:
        context.previous_attempts.append(
            ErrorAttempt(strategy=strategy, corrections=list(context.corrections), success=True)
        )

    def record_failure(
        self,
        context: ErrorContext,
        error: BaseException,
        strategy: GenerationStrategy = GenerationStrategy.STANDARD,
    ) -> RecoveryDecision:
        """Record a failed attempt and decide what happens next."""
        kind = classify_error(error)
        message = str(error) or type(error).__name__

        context.attempt_number = min(context.attempt_number + 1, self.max_attempts)
        context.error_type = kind
        context.error_message = message
        context.previous_attempts.append(
            ErrorAttempt(
                strategy=strategy,
                corrections=list(context.corrections),
                error_kind=kind,
                message=message,
            )
        )

        decision = self._decide(context, error, kind, strategy)
        if decision.should_retry:
            context.corrections = list(decision.corrections)
        logger.info(
            "%s attempt %d/%d failed (%s): %s -> %s",
            context.operation,
            context.attempt_number,
            self.max_attempts,
            kind.value,
            message,
            decision.action.value,
        )
        return decision

    def _decide(
        self,
        context: ErrorContext,
        error: BaseException,
        kind: ErrorKind,
        strategy: GenerationStrategy,
    ) -> RecoveryDecision:
        if kind == ErrorKind.AUTH or context.attempt_number >= self.max_attempts:
            return self.explain(context)

        new_corrections = [c for c in corrections_for(error) if c not in context.corrections]
        if new_corrections:
            return RecoveryDecision(
                action=RecoveryAction.RETRY_CORRECTED,
                strategy=strategy,
                corrections=[*context.corrections, *new_corrections],
            )

        if kind == ErrorKind.TRANSIENT:
            return RecoveryDecision(
                action=RecoveryAction.RETRY_DELAYED,
                strategy=strategy,
                corrections=list(context.corrections),
                delay_seconds=self.backoff_seconds * 2 ** (context.attempt_number - 1),
            )

        return RecoveryDecision(
            action=RecoveryAction.RETRY_ALTERNATIVE,
            strategy=self._next_strategy(context, kind, strategy),
            corrections=list(context.corrections),
        )

    def _next_strategy(
        self,
        context: ErrorContext,
        kind: ErrorKind,
        current: GenerationStrategy,
    ) -> GenerationStrategy:
        tried = context.tried_strategies()
        for candidate in _LADDERS.get(kind, _DEFAULT_LADDER):
            if candidate not in tried and candidate != current:
                return candidate
        return GenerationStrategy.TEMPLATE

    def explain(self, context: ErrorContext) -> RecoveryDecision:
        """Terminal decision: no further retries, a user-facing explanation."""
        if context.error_type == ErrorKind.AUTH:
            explanation = (
                f"I couldn't {_label(context)} because the service rejected "
                f"the credentials: {context.error_message}"
            )
            suggestions = AUTH_SUGGESTIONS
        else:
            attempts = "attempt" if context.attempt_number == 1 else "attempts"
            explanation = (
                f"I wasn't able to {_label(context)} after {context.attempt_number} "
                f"{attempts}. The last error was: {context.error_message}"
            )
            suggestions = GENERAL_SUGGESTIONS
        return RecoveryDecision(
            action=RecoveryAction.EXPLAIN,
            explanation=explanation,
            suggestions=list(suggestions),
        )

"""Retry ledger for a single generation or deployment operation."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from .enums import Correction, ErrorKind, GenerationStrategy, Phase, RecoveryAction


class ErrorAttempt(BaseModel):
    strategy: GenerationStrategy
    corrections: list[Correction] = Field(default_factory=list)
    error_kind: ErrorKind | None = None
    message: str = ""
    success: bool = False
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ErrorContext(BaseModel):
    """Append-only record of attempts for one operation.

    ``attempt_number`` counts recorded failures and never exceeds the
    coordinator's ceiling.
    """

    operation: str
    phase: Phase
    attempt_number: int = Field(default=0, ge=0)
    previous_attempts: list[ErrorAttempt] = Field(default_factory=list)
    corrections: list[Correction] = Field(
        default_factory=list,
        description="Corrections in effect for the next attempt (cumulative)",
    )
    error_type: ErrorKind | None = None
    error_message: str | None = None

    def tried_strategies(self) -> set[GenerationStrategy]:
        return {attempt.strategy for attempt in self.previous_attempts}

    @property
    def succeeded(self) -> bool:
        return bool(self.previous_attempts) and self.previous_attempts[-1].success


class RecoveryDecision(BaseModel):
    """What to do after a failed attempt."""

    action: RecoveryAction
    strategy: GenerationStrategy = GenerationStrategy.STANDARD
    corrections: list[Correction] = Field(default_factory=list)
    delay_seconds: float = 0.0
    explanation: str | None = None
    suggestions: list[str] = Field(default_factory=list)

    @property
    def should_retry(self) -> bool:
        return self.action != RecoveryAction.EXPLAIN

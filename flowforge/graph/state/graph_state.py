"""LangGraph state definitions for the conversation and generation graphs."""

from typing import TypedDict

from .artifact import WorkflowArtifact
from .enums import Correction, GenerationStrategy
from .recovery import ErrorContext, RecoveryDecision
from .session import ConversationSession, IntentResult, Turn
from .specification import Specification
from .validation import ValidationVerdict


class ConversationTurnState(TypedDict, total=False):
    """State for one user turn through the phase state machine.

    ``session`` is a working copy; the service persists it once the
    graph finishes.
    """

    session: ConversationSession
    utterance: str
    prior_turns: list[Turn]
    intent: IntentResult

    # Response assembly
    response_text: str
    clarifying_questions: list[str]
    issues: list[str]
    warnings: list[str]
    suggestions: list[str]

    # Control flow
    run_generation: bool


class GenerationLoopState(TypedDict, total=False):
    """State for the generate -> validate -> recover loop."""

    specification: Specification
    strategy: GenerationStrategy
    corrections: list[Correction]
    error_context: ErrorContext

    artifact: WorkflowArtifact | None
    verdict: ValidationVerdict | None
    error: Exception | None
    decision: RecoveryDecision | None
    succeeded: bool

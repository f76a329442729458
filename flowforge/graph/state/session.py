"""Conversation session and per-turn response models."""

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from .artifact import WorkflowArtifact
from .enums import IntentType, Phase, TurnRole
from .recovery import ErrorContext
from .specification import Specification
from .validation import FeasibilityReport, ValidationVerdict

TITLE_WORDS = 6


def _now() -> datetime:
    return datetime.now(UTC)


class Turn(BaseModel):
    role: TurnRole
    content: str
    timestamp: datetime = Field(default_factory=_now)


class IntentResult(BaseModel):
    intent: IntentType
    confidence: float = Field(ge=0.0, le=1.0)


class ConversationSession(BaseModel):
    """Everything the pipeline knows about one conversation."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    title: str | None = None
    phase: Phase = Phase.GATHERING
    specification: Specification | None = None
    turns: list[Turn] = Field(default_factory=list)
    artifact: WorkflowArtifact | None = None
    verdict: ValidationVerdict | None = None
    feasibility: FeasibilityReport | None = None
    deployed_artifact_id: str | None = None
    retry_context: ErrorContext | None = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    def add_turn(self, role: TurnRole, content: str) -> Turn:
        turn = Turn(role=role, content=content)
        self.turns.append(turn)
        if self.title is None and role == TurnRole.USER:
            self.title = make_title(content)
        return turn

    def recent_turns(self, limit: int) -> list[Turn]:
        return self.turns[-limit:] if limit > 0 else []

    def reset(self) -> None:
        """Return to an empty gathering session, keeping identity."""
        self.phase = Phase.GATHERING
        self.title = None
        self.specification = None
        self.turns = []
        self.artifact = None
        self.verdict = None
        self.feasibility = None
        self.deployed_artifact_id = None
        self.retry_context = None


def make_title(message: str) -> str:
    words = message.split()
    title = " ".join(words[:TITLE_WORDS])
    return f"{title}..." if len(words) > TITLE_WORDS else title


class Progress(BaseModel):
    """Percent complete per stage, for progress indicators."""

    requirements_gathered: int = Field(default=0, ge=0, le=100)
    specification_complete: int = Field(default=0, ge=0, le=100)
    validation_passed: int = Field(default=0, ge=0, le=100)
    generation_ready: int = Field(default=0, ge=0, le=100)


class ConversationResponse(BaseModel):
    session_id: str
    response_text: str
    phase: Phase
    clarifying_questions: list[str] = Field(default_factory=list)
    artifact: WorkflowArtifact | None = None
    verdict: ValidationVerdict | None = None
    issues: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    progress: Progress = Field(default_factory=Progress)
    deployed_artifact_id: str | None = None

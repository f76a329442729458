"""Request and response schemas for the conversation API."""

from datetime import datetime

from pydantic import BaseModel, Field

from flowforge.graph.state import (
    ConversationSession,
    Phase,
    Specification,
    Turn,
    ValidationVerdict,
    WorkflowArtifact,
)


class ConversationCreate(BaseModel):
    user_id: str = Field(default="default_user", min_length=1, max_length=100)
    initial_message: str | None = Field(default=None, max_length=10_000)


class MessageCreate(BaseModel):
    content: str = Field(min_length=1, max_length=10_000)


class SessionResponse(BaseModel):
    """Snapshot of a conversation session."""

    id: str
    user_id: str
    title: str | None
    phase: Phase
    specification: Specification | None
    artifact: WorkflowArtifact | None
    verdict: ValidationVerdict | None
    deployed_artifact_id: str | None
    turns: list[Turn]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_session(cls, session: ConversationSession) -> "SessionResponse":
        return cls(
            id=session.id,
            user_id=session.user_id,
            title=session.title,
            phase=session.phase,
            specification=session.specification,
            artifact=session.artifact,
            verdict=session.verdict,
            deployed_artifact_id=session.deployed_artifact_id,
            turns=session.turns,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    llm_enabled: bool
    session_store: str

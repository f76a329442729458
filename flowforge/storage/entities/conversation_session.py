"""Conversation session entity.

The full session model is stored as one JSON document; phase, title and
user are duplicated into columns for listing and filtering.
"""

from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from flowforge.storage.models import Base, TimestampMixin


class ConversationSessionRecord(Base, TimestampMixin):
    """Persisted conversation session."""

    __tablename__ = "conversation_session"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, doc="Session id (UUID)")
    user_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
        doc="User identifier",
    )
    phase: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        doc="Current conversation phase",
    )
    title: Mapped[str | None] = mapped_column(
        String(200),
        nullable=True,
        doc="Conversation summary (from the first message)",
    )
    state: Mapped[dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        doc="Serialized ConversationSession",
    )

    def __repr__(self) -> str:
        return f"<ConversationSessionRecord(id={self.id}, phase={self.phase})>"

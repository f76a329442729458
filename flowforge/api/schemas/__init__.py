"""API request/response schemas."""

from flowforge.api.schemas.conversations import (
    ConversationCreate,
    HealthResponse,
    MessageCreate,
    SessionResponse,
)

__all__ = ["ConversationCreate", "HealthResponse", "MessageCreate", "SessionResponse"]

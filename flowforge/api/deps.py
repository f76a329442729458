"""Shared FastAPI dependencies."""

from fastapi import Request

from flowforge.exceptions import ConfigurationError
from flowforge.services import ConversationService


def get_conversation_service(request: Request) -> ConversationService:
    """The conversation service attached to the running application."""
    service = getattr(request.app.state, "conversation_service", None)
    if service is None:
        raise ConfigurationError("Conversation service is not initialised")
    return service

"""SQLAlchemy entities."""

from flowforge.storage.entities.conversation_session import ConversationSessionRecord

__all__ = ["ConversationSessionRecord"]

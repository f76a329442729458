"""Application services."""

from flowforge.services.conversation import ConversationService, compute_progress
from flowforge.services.pipeline import Pipeline

__all__ = ["ConversationService", "Pipeline", "compute_progress"]

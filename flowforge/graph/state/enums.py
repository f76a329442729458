"""Enums for conversation and generation state."""

from enum import StrEnum


class Phase(StrEnum):
    """Conversation phases, in forward order."""

    GATHERING = "gathering"
    REFINING = "refining"
    CONFIRMING = "confirming"
    GENERATING = "generating"
    DEPLOYING = "deploying"
    COMPLETED = "completed"


class IntentType(StrEnum):
    """Coarse label for a single user utterance."""

    NEW_REQUEST = "new_request"
    CLARIFICATION = "clarification"
    CONFIRMATION = "confirmation"
    DEPLOYMENT = "deployment"
    RESET = "reset"
    OTHER = "other"


class TurnRole(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"


class Complexity(StrEnum):
    """Workflow complexity, ordered simple < moderate < complex."""

    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"

    @property
    def rank(self) -> int:
        return list(Complexity).index(self)


class Severity(StrEnum):
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


class Impact(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class NodeKind(StrEnum):
    TRIGGER = "trigger"
    ACTION = "action"
    LOGIC = "logic"


class GenerationStrategy(StrEnum):
    """How the artifact generator builds a workflow from a specification."""

    STANDARD = "standard"
    SIMPLIFIED = "simplified"  # first two actions, one integration
    ALTERNATIVE_NODES = "alternative_nodes"  # swap unavailable nodes for substitutes
    TEMPLATE = "template"  # curated two-node template, else manual trigger + pass-through


class Correction(StrEnum):
    """Automatic fixes the generator can apply before re-checking structure."""

    REGENERATE_IDS = "regenerate_ids"
    DROP_DANGLING_CONNECTIONS = "drop_dangling_connections"
    DEFAULT_TRIGGER = "default_trigger"
    DEFAULT_ACTION = "default_action"


class ErrorKind(StrEnum):
    """Failure classes the retry coordinator reacts to."""

    STRUCTURAL = "structural"
    CAPABILITY = "capability"
    TRANSIENT = "transient"
    VALIDATION = "validation"
    AUTH = "auth"
    UNKNOWN = "unknown"


class RecoveryAction(StrEnum):
    RETRY_CORRECTED = "retry_corrected"
    RETRY_ALTERNATIVE = "retry_alternative"
    RETRY_DELAYED = "retry_delayed"
    EXPLAIN = "explain"

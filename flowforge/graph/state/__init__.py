"""State models for the conversation pipeline.

Pydantic models for the domain objects and TypedDicts for LangGraph state.
"""

from .artifact import Connection, WorkflowArtifact, WorkflowNode
from .enums import (
    Complexity,
    Correction,
    ErrorKind,
    GenerationStrategy,
    Impact,
    IntentType,
    NodeKind,
    Phase,
    RecoveryAction,
    Severity,
    TurnRole,
)
from .graph_state import ConversationTurnState, GenerationLoopState
from .recovery import ErrorAttempt, ErrorContext, RecoveryDecision
from .session import (
    ConversationResponse,
    ConversationSession,
    IntentResult,
    Progress,
    Turn,
    make_title,
)
from .specification import (
    Action,
    AppEventTrigger,
    EmailTrigger,
    ManualTrigger,
    ScheduleTrigger,
    Specification,
    Trigger,
    UnknownTrigger,
    WebhookTrigger,
    build_trigger,
    normalize_action_type,
    normalize_identifier,
    normalize_integration,
)
from .validation import (
    CheckResult,
    DimensionScores,
    FeasibilityReport,
    ValidationIssue,
    ValidationVerdict,
    ValidationWarning,
)

__all__ = [
    "Action",
    "AppEventTrigger",
    "CheckResult",
    "Complexity",
    "Connection",
    "ConversationResponse",
    "ConversationSession",
    "ConversationTurnState",
    "Correction",
    "DimensionScores",
    "EmailTrigger",
    "ErrorAttempt",
    "ErrorContext",
    "ErrorKind",
    "FeasibilityReport",
    "GenerationLoopState",
    "GenerationStrategy",
    "Impact",
    "IntentResult",
    "IntentType",
    "ManualTrigger",
    "NodeKind",
    "Phase",
    "Progress",
    "RecoveryAction",
    "RecoveryDecision",
    "ScheduleTrigger",
    "Severity",
    "Specification",
    "Trigger",
    "Turn",
    "TurnRole",
    "UnknownTrigger",
    "ValidationIssue",
    "ValidationVerdict",
    "ValidationWarning",
    "WebhookTrigger",
    "WorkflowArtifact",
    "WorkflowNode",
    "build_trigger",
    "make_title",
    "normalize_action_type",
    "normalize_identifier",
    "normalize_integration",
]

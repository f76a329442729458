"""Error classification and the retry coordinator."""

from flowforge.recovery.classify import VIOLATION_CORRECTIONS, classify_error, corrections_for
from flowforge.recovery.coordinator import (
    DEFAULT_MAX_ATTEMPTS,
    GENERAL_SUGGESTIONS,
    RetryCoordinator,
)

__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "GENERAL_SUGGESTIONS",
    "VIOLATION_CORRECTIONS",
    "RetryCoordinator",
    "classify_error",
    "corrections_for",
]

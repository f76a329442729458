"""Map failures onto the error kinds the retry coordinator reacts to."""

import re

import httpx

from flowforge.exceptions import (
    ArtifactValidationError,
    DeploymentError,
    GenerationError,
    LLMError,
    LLMResponseError,
)
from flowforge.graph.state import Correction, ErrorKind

_AUTH = re.compile(r"\b401\b|\b403\b|unauthori[sz]ed|invalid api key|authentication|forbidden", re.I)
_TRANSIENT = re.compile(r"rate limit|\b429\b|timed? ?out|timeout|connection|network|temporarily", re.I)
_CAPABILITY = re.compile(r"\bnode\b|\bconnection\b|not supported|unavailable", re.I)
_PARSE = re.compile(r"json|parse|syntax", re.I)

# Structural violation code -> automatic fix
VIOLATION_CORRECTIONS: dict[str, Correction] = {
    "duplicate_id": Correction.REGENERATE_IDS,
    "dangling_connection": Correction.DROP_DANGLING_CONNECTIONS,
    "no_trigger": Correction.DEFAULT_TRIGGER,
    "no_actions": Correction.DEFAULT_ACTION,
}


def classify_error(error: BaseException) -> ErrorKind:
    message = str(error)

    if isinstance(error, GenerationError):
        if error.reason == "capability":
            return ErrorKind.CAPABILITY
        if error.violations or error.reason in ("parse", "structure"):
            return ErrorKind.STRUCTURAL
    if isinstance(error, ArtifactValidationError):
        return ErrorKind.VALIDATION
    if isinstance(error, DeploymentError):
        if error.status_code in (401, 403):
            return ErrorKind.AUTH
        if error.transient:
            return ErrorKind.TRANSIENT
    if isinstance(error, LLMResponseError):
        return ErrorKind.STRUCTURAL
    if isinstance(error, LLMError) and error.timeout:
        return ErrorKind.TRANSIENT
    if isinstance(error, (TimeoutError, httpx.TimeoutException, httpx.NetworkError)):
        return ErrorKind.TRANSIENT

    if _AUTH.search(message):
        return ErrorKind.AUTH
    if _TRANSIENT.search(message):
        return ErrorKind.TRANSIENT
    if _PARSE.search(message):
        return ErrorKind.STRUCTURAL
    if _CAPABILITY.search(message):
        return ErrorKind.CAPABILITY
    return ErrorKind.UNKNOWN


def corrections_for(error: BaseException) -> list[Correction]:
    """Corrections that address the structural violations carried by ``error``."""
    violations = getattr(error, "violations", None) or []
    corrections: list[Correction] = []
    for code in violations:
        correction = VIOLATION_CORRECTIONS.get(code)
        if correction and correction not in corrections:
            corrections.append(correction)
    return corrections

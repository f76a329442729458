"""FlowForge exception hierarchy.

Base exceptions for all application layers with correlation ID support.

Usage:
    from flowforge.exceptions import GenerationError

    try:
        artifact = await generator.generate(spec)
    except GenerationError as e:
        logger.warning("Generation failed (%s): %s", e.correlation_id, e.violations)
"""

import uuid
from typing import Any


class FlowForgeError(Exception):
    """Base exception for all FlowForge application errors.

    Carries a correlation_id for tracing errors across layers.
    """

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


class ExtractionError(FlowForgeError):
    """Requirement extraction produced output of the wrong shape."""

    def __init__(self, message: str, *, raw_output: Any = None, **kwargs):
        self.raw_output = raw_output
        super().__init__(message, **kwargs)


class GenerationError(FlowForgeError):
    """Artifact generation failed.

    ``violations`` holds structural violation codes (``duplicate_id``,
    ``dangling_connection``, ``no_entry_point``, ``no_trigger``,
    ``no_actions``) when the failure is a broken artifact graph.
    ``reason`` is a coarse label such as ``parse`` or ``capability``.
    """

    def __init__(
        self,
        message: str,
        *,
        violations: list[str] | None = None,
        reason: str | None = None,
        **kwargs,
    ):
        self.violations = violations or []
        self.reason = reason
        super().__init__(message, **kwargs)


class ArtifactValidationError(FlowForgeError):
    """A generated artifact did not pass validation."""

    def __init__(self, message: str, *, verdict: Any = None, **kwargs):
        self.verdict = verdict
        super().__init__(message, **kwargs)


class LLMError(FlowForgeError):
    """Errors from LLM provider operations."""

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        timeout: bool = False,
        **kwargs,
    ):
        self.provider = provider
        self.timeout = timeout
        super().__init__(message, **kwargs)


class LLMResponseError(LLMError):
    """The LLM answered, but not with parseable output."""

    def __init__(self, message: str, *, raw_output: str | None = None, **kwargs):
        self.raw_output = raw_output
        super().__init__(message, **kwargs)


class DeploymentError(FlowForgeError):
    """Errors from the workflow engine while deploying an artifact."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        transient: bool = False,
        artifact_id: str | None = None,
        **kwargs,
    ):
        self.status_code = status_code
        self.transient = transient
        # Set when the workflow was created but a later step failed
        self.artifact_id = artifact_id
        super().__init__(message, **kwargs)


class SessionNotFoundError(FlowForgeError):
    """No conversation session exists for the given id."""

    def __init__(self, session_id: str, **kwargs):
        self.session_id = session_id
        super().__init__(f"Conversation session '{session_id}' not found", **kwargs)


class DALError(FlowForgeError):
    """Errors from data access layer operations."""

    pass


class ConfigurationError(FlowForgeError):
    """Errors from application configuration."""

    pass

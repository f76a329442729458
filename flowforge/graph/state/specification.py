"""Structured workflow requirements built up over a conversation."""

import re
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, field_validator

from .enums import Complexity

_NON_IDENTIFIER = re.compile(r"[^a-z0-9]+")

TRIGGER_SYNONYMS: dict[str, str] = {
    "schedule": "schedule",
    "scheduled": "schedule",
    "cron": "schedule",
    "timer": "schedule",
    "interval": "schedule",
    "time": "schedule",
    "webhook": "webhook",
    "http": "webhook",
    "http_webhook": "webhook",
    "api": "webhook",
    "manual": "manual",
    "button": "manual",
    "on_demand": "manual",
    "email": "email",
    "gmail": "email",
    "imap": "email",
    "email_received": "email",
    "app_event": "app_event",
    "unknown": "unknown",
    "none": "unknown",
    "": "unknown",
}

ACTION_SYNONYMS: dict[str, str] = {
    "slack_message": "slack",
    "send_slack_message": "slack",
    "slack_notification": "slack",
    "send_email": "email_send",
    "email": "email_send",
    "gmail": "email_send",
    "smtp": "email_send",
    "http": "http_request",
    "api_call": "http_request",
    "webhook_call": "http_request",
    "request": "http_request",
    "sheets": "google_sheets",
    "google_sheet": "google_sheets",
    "spreadsheet": "google_sheets",
    "text_message": "sms",
    "twilio": "sms",
    "discord_message": "discord",
    "github_issue": "github",
    "javascript": "code",
    "function": "code",
    "pass_through": "noop",
    "no_op": "noop",
}

INTEGRATION_SYNONYMS: dict[str, str] = {
    "gmail": "email",
    "smtp": "email",
    "email_send": "email",
    "sheets": "google_sheets",
    "google_sheet": "google_sheets",
    "http_request": "http",
    "twilio": "sms",
}


def normalize_identifier(raw: str) -> str:
    """Lower-case snake_case form of a free-text identifier."""
    return _NON_IDENTIFIER.sub("_", raw.strip().lower()).strip("_")


def normalize_action_type(raw: str) -> str:
    ident = normalize_identifier(raw)
    return ACTION_SYNONYMS.get(ident, ident)


def normalize_integration(raw: str) -> str:
    ident = normalize_identifier(raw)
    return INTEGRATION_SYNONYMS.get(ident, ident)


class _TriggerBase(BaseModel):
    description: str = ""
    parameters: dict[str, Any] = Field(default_factory=dict)


class ScheduleTrigger(_TriggerBase):
    """Time-based trigger: ``time``, ``interval``, ``day_of_week`` or ``cron`` parameters."""

    type: Literal["schedule"] = "schedule"


class WebhookTrigger(_TriggerBase):
    type: Literal["webhook"] = "webhook"


class ManualTrigger(_TriggerBase):
    type: Literal["manual"] = "manual"


class EmailTrigger(_TriggerBase):
    type: Literal["email"] = "email"


class AppEventTrigger(_TriggerBase):
    """Event raised by a third-party service; ``parameters["source"]`` names it."""

    type: Literal["app_event"] = "app_event"

    @property
    def source(self) -> str | None:
        return self.parameters.get("source")


class UnknownTrigger(_TriggerBase):
    """Not yet resolved.

    ``candidate`` records a partial hint ("schedule" for "every morning")
    that clarifying questions can build on.
    """

    type: Literal["unknown"] = "unknown"
    candidate: str | None = None


Trigger = Annotated[
    ScheduleTrigger | WebhookTrigger | ManualTrigger | EmailTrigger | AppEventTrigger | UnknownTrigger,
    Field(discriminator="type"),
]

_TRIGGER_CLASSES: dict[str, type[_TriggerBase]] = {
    "schedule": ScheduleTrigger,
    "webhook": WebhookTrigger,
    "manual": ManualTrigger,
    "email": EmailTrigger,
    "app_event": AppEventTrigger,
    "unknown": UnknownTrigger,
}


def build_trigger(
    kind: str | None,
    description: str = "",
    parameters: dict[str, Any] | None = None,
) -> Trigger:
    """Map a raw trigger kind onto the tagged union.

    Synonyms collapse onto the known variants; anything else becomes an
    ``app_event`` whose ``source`` keeps the raw kind.
    """
    params = dict(parameters or {})
    ident = normalize_identifier(kind or "")
    variant = TRIGGER_SYNONYMS.get(ident)
    if variant is None:
        params.setdefault("source", ident)
        variant = "app_event"
    return _TRIGGER_CLASSES[variant](description=description, parameters=params)  # type: ignore[return-value]


class Action(BaseModel):
    """One step the workflow performs, in execution order."""

    type: str
    description: str = ""
    parameters: dict[str, Any] = Field(default_factory=dict)

    @field_validator("type")
    @classmethod
    def _normalize_type(cls, value: str) -> str:
        return normalize_action_type(value)

    @property
    def is_described(self) -> bool:
        return bool(self.type) and bool(self.description.strip())


class Specification(BaseModel):
    """Requirements extracted from the conversation so far.

    Merges only ever add information (see ``flowforge.requirements.merge``);
    once ``frozen`` is set the specification is fixed for generation.
    """

    trigger: Trigger = Field(default_factory=UnknownTrigger)
    actions: list[Action] = Field(default_factory=list)
    integrations: list[str] = Field(default_factory=list)
    complexity: Complexity = Complexity.SIMPLE
    feasible: bool | None = Field(
        default=None,
        description="Set only by the feasibility assessor; None means not yet assessed",
    )
    issues: list[str] = Field(default_factory=list)
    frozen: bool = False

    @field_validator("integrations")
    @classmethod
    def _normalize_integrations(cls, value: list[str]) -> list[str]:
        return sorted({normalize_integration(item) for item in value if normalize_identifier(item)})

    @property
    def trigger_resolved(self) -> bool:
        return self.trigger.type != "unknown"

    @property
    def is_complete(self) -> bool:
        return (
            self.trigger_resolved
            and bool(self.actions)
            and all(action.is_described for action in self.actions)
            and bool(self.integrations)
        )

    @property
    def is_empty(self) -> bool:
        """Nothing usable: no trigger (or trigger hint), actions or integrations."""
        hint = isinstance(self.trigger, UnknownTrigger) and self.trigger.candidate
        return not (self.trigger_resolved or hint or self.actions or self.integrations)

    def action_types(self) -> list[str]:
        return [action.type for action in self.actions]

    def summary(self) -> str:
        """Human-readable recap used in confirmation prompts."""
        trigger = self.trigger.description or self.trigger.type.replace("_", " ")
        lines = [f"- Trigger: {trigger}"]
        for index, action in enumerate(self.actions, start=1):
            details = ", ".join(f"{k}={v}" for k, v in action.parameters.items())
            line = f"- Step {index}: {action.description or action.type}"
            lines.append(f"{line} ({details})" if details else line)
        if self.integrations:
            lines.append(f"- Connects: {', '.join(self.integrations)}")
        lines.append(f"- Complexity: {self.complexity.value}")
        return "\n".join(lines)

"""Gap analysis and clarifying-question generation.

Gaps are ordered most-blocking first: trigger, actions, integrations,
then detail gaps (missing action or trigger parameters). Detail gaps are
only reported while structural gaps remain, so a complete specification
always has an empty gap set.
"""

from dataclasses import dataclass
from enum import StrEnum

from flowforge.graph.state import (
    ScheduleTrigger,
    Specification,
    UnknownTrigger,
    WebhookTrigger,
)

MAX_QUESTIONS = 3

# Parameters a step cannot run without
REQUIRED_ACTION_PARAMETERS: dict[str, tuple[str, ...]] = {
    "slack": ("channel",),
    "discord": ("channel",),
    "email_send": ("to",),
    "http_request": ("url",),
    "google_sheets": ("spreadsheet",),
}

_SCHEDULE_KEYS = ("time", "interval", "cron")

_PERIOD_EXAMPLES = {
    "morning": "8:00 AM",
    "afternoon": "2:00 PM",
    "evening": "6:00 PM",
}


class GapKind(StrEnum):
    TRIGGER = "trigger"
    ACTIONS = "actions"
    INTEGRATIONS = "integrations"
    ACTION_PARAMETERS = "action_parameters"
    TRIGGER_PARAMETERS = "trigger_parameters"


@dataclass(frozen=True)
class Gap:
    kind: GapKind
    subject: str | None = None
    missing: tuple[str, ...] = ()

    @property
    def cluster(self) -> tuple[GapKind, str | None]:
        return self.kind, self.subject


def analyze_gaps(spec: Specification) -> list[Gap]:
    """Return the missing pieces of a specification, most blocking first."""
    if spec.is_complete:
        return []

    gaps: list[Gap] = []
    if not spec.trigger_resolved:
        gaps.append(Gap(GapKind.TRIGGER, getattr(spec.trigger, "candidate", None)))
    undescribed = [action.type for action in spec.actions if not action.is_described]
    if not spec.actions:
        gaps.append(Gap(GapKind.ACTIONS))
    for action_type in undescribed:
        gaps.append(Gap(GapKind.ACTIONS, action_type, ("description",)))
    if not spec.integrations:
        gaps.append(Gap(GapKind.INTEGRATIONS))

    for action in spec.actions:
        required = REQUIRED_ACTION_PARAMETERS.get(action.type, ())
        missing = tuple(key for key in required if not action.parameters.get(key))
        if missing:
            gaps.append(Gap(GapKind.ACTION_PARAMETERS, action.type, missing))

    trigger = spec.trigger
    if isinstance(trigger, ScheduleTrigger) and not any(trigger.parameters.get(k) for k in _SCHEDULE_KEYS):
        gaps.append(Gap(GapKind.TRIGGER_PARAMETERS, "schedule", ("time",)))
    elif isinstance(trigger, WebhookTrigger) and not trigger.parameters.get("path"):
        gaps.append(Gap(GapKind.TRIGGER_PARAMETERS, "webhook", ("path",)))
    return gaps


def _trigger_question(spec: Specification, candidate: str | None) -> str:
    trigger = spec.trigger
    if candidate == "schedule" and isinstance(trigger, UnknownTrigger):
        period = trigger.parameters.get("period")
        example = _PERIOD_EXAMPLES.get(period or "", "9:00 AM")
        if trigger.parameters.get("frequency") == "weekly" and trigger.parameters.get("day_of_week"):
            day = str(trigger.parameters["day_of_week"]).capitalize()
            return f"What time on {day} should this run? (for example {example})"
        when = f"each {period}" if period else "on that schedule"
        return f"What time {when} should this run? (for example {example})"
    if candidate:
        return f"You mentioned {candidate}; what exactly should start this workflow?"
    return (
        "What should start this workflow: a schedule, an incoming webhook, "
        "a new email, an event in another app, or a manual run?"
    )


def _action_parameter_question(action_type: str, missing: tuple[str, ...]) -> str:
    match action_type:
        case "slack":
            return "Which Slack channel should receive the message?"
        case "discord":
            return "Which Discord channel should the message go to?"
        case "email_send":
            return "Which email address should the message be sent to?"
        case "http_request":
            return "Which URL should the HTTP request be sent to?"
        case "google_sheets":
            return "Which spreadsheet should the rows be added to?"
    fields = " and ".join(missing) or "details"
    return f"What {fields} should the {action_type.replace('_', ' ')} step use?"


def question_for(spec: Specification, gap: Gap) -> str:
    match gap.kind:
        case GapKind.TRIGGER:
            return _trigger_question(spec, gap.subject)
        case GapKind.ACTIONS if gap.subject:
            return f"What exactly should the {gap.subject.replace('_', ' ')} step do?"
        case GapKind.ACTIONS:
            return "What should the workflow do once it is triggered?"
        case GapKind.INTEGRATIONS:
            return "Which services or apps should this workflow connect to?"
        case GapKind.ACTION_PARAMETERS:
            return _action_parameter_question(gap.subject or "", gap.missing)
        case GapKind.TRIGGER_PARAMETERS if gap.subject == "webhook":
            return "What path should the webhook listen on (for example /orders)?"
        case _:
            return "At what time or interval should the schedule run?"


def generate_questions(
    spec: Specification,
    gaps: list[Gap] | None = None,
    limit: int = MAX_QUESTIONS,
) -> list[str]:
    """At most ``limit`` questions, one per gap cluster, in gap order."""
    gaps = analyze_gaps(spec) if gaps is None else gaps
    questions: list[str] = []
    seen: set[tuple[GapKind, str | None]] = set()
    for gap in gaps:
        if len(questions) >= min(limit, MAX_QUESTIONS):
            break
        if gap.cluster in seen:
            continue
        seen.add(gap.cluster)
        question = question_for(spec, gap)
        if question not in questions:
            questions.append(question)
    return questions

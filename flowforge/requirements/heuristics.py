"""Keyword heuristics for reading workflow requirements out of plain text.

Used by the offline extractor and as the fallback when no LLM is
configured. Everything here is deterministic.
"""

import re
from typing import Any

from flowforge.graph.state import (
    Action,
    AppEventTrigger,
    Complexity,
    EmailTrigger,
    ManualTrigger,
    ScheduleTrigger,
    Trigger,
    UnknownTrigger,
    WebhookTrigger,
    normalize_identifier,
)

# -----------------------------------------------------------------------------
# Schedules
# -----------------------------------------------------------------------------

_CLOCK_AMPM = re.compile(r"\b(?:at\s+)?(\d{1,2})(?::(\d{2}))?\s*([ap])\.?m\.?(?![a-z])", re.I)
_CLOCK_24H = re.compile(r"\bat\s+(\d{1,2}):(\d{2})\b", re.I)
_CLOCK_PLAIN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")
_NOON = re.compile(r"\b(?:at\s+)?(noon|midday|midnight)\b", re.I)
_INTERVAL = re.compile(
    r"\bevery\s+(?:(\d+)\s*)?(second|minute|hour)s?\b|\b(hourly)\b",
    re.I,
)
_WEEKDAY = re.compile(
    r"\b(?:every|each|on)\s+(monday|tuesday|wednesday|thursday|friday|saturday|sunday)s?\b",
    re.I,
)
_PERIODS: list[tuple[re.Pattern[str], str, str | None]] = [
    (re.compile(r"\b(?:every|each)\s+morning\b|\bmornings\b", re.I), "daily", "morning"),
    (re.compile(r"\b(?:every|each)\s+afternoon\b", re.I), "daily", "afternoon"),
    (re.compile(r"\b(?:every|each)\s+(?:evening|night)\b|\bnightly\b", re.I), "daily", "evening"),
    (re.compile(r"\b(?:every|each)\s+(?:day|weekday)\b|\bdaily\b", re.I), "daily", None),
    (re.compile(r"\b(?:every|each)\s+week\b|\bweekly\b", re.I), "weekly", None),
    (re.compile(r"\b(?:every|each)\s+month\b|\bmonthly\b", re.I), "monthly", None),
]

# -----------------------------------------------------------------------------
# Other triggers
# -----------------------------------------------------------------------------

_WEBHOOK = re.compile(
    r"\bwebhooks?\b|\bincoming (?:http )?requests?\b|\bform (?:is )?submitted\b"
    r"|\bform submissions?\b|\bwhen(?:ever)? (?:a|an) (?:http |api )?(?:request|call) (?:comes in|arrives|is received)\b",
    re.I,
)
_WEBHOOK_PATH = re.compile(r"(?<![\w.:/])(/[a-z0-9_\-]+(?:/[a-z0-9_\-]+)*)", re.I)
_EMAIL_TRIGGER = re.compile(
    r"\bwhen(?:ever)?\b[^.,;]*?\b(?:receive|get|arrives?|comes? in)\b[^.,;]*?\be-?mails?\b"
    r"|\bwhen(?:ever)?\b[^.,;]*?\be-?mails?\b[^.,;]*?\b(?:arrives?|comes? in|is received)\b"
    r"|\b(?:new|incoming) e-?mails?\b",
    re.I,
)
_MANUAL = re.compile(r"\bmanually\b|\bon[ -]demand\b|\bwhen i click\b|\bbutton\b|\brun it myself\b", re.I)

# Services that can raise their own events ("when a new issue is opened on github")
_APP_EVENT_SOURCES: dict[str, str] = {
    "github": "github",
    "google sheet": "google_sheets",
    "google sheets": "google_sheets",
    "airtable": "airtable",
    "stripe": "stripe",
    "slack": "slack",
    "discord": "discord",
    "shopify": "shopify",
    "trello": "trello",
    "hubspot": "hubspot",
    "typeform": "typeform",
}
_APP_EVENT = re.compile(
    r"\bwhen(?:ever)?\b[^.,;]*?\b(" + "|".join(sorted(_APP_EVENT_SOURCES, key=len, reverse=True)) + r")\b",
    re.I,
)

# -----------------------------------------------------------------------------
# Actions
# -----------------------------------------------------------------------------

_ACTION_PATTERNS: list[tuple[re.Pattern[str], str, str]] = [
    (re.compile(r"\bslack\b", re.I), "slack", "Send a Slack message"),
    (re.compile(r"\bdiscord\b", re.I), "discord", "Post a Discord message"),
    (
        re.compile(
            r"\bsend (?:me |them |us )?(?:an? )?e-?mail\b|\be-?mail (?:me|them|us|the team|to)\b"
            r"|\bnotify (?:me |us )?(?:by|via) e-?mail\b",
            re.I,
        ),
        "email_send",
        "Send an email",
    ),
    (re.compile(r"\bgoogle sheets?\b|\bspreadsheet\b", re.I), "google_sheets", "Add a row to Google Sheets"),
    (re.compile(r"\bairtable\b", re.I), "airtable", "Create an Airtable record"),
    (
        re.compile(r"\bgithub issue\b|\b(?:create|open) (?:an? )?(?:github )?issue\b", re.I),
        "github",
        "Create a GitHub issue",
    ),
    (
        re.compile(r"\bhttp request\b|\bapi call\b|\bcall (?:the|an|our) api\b|https?://", re.I),
        "http_request",
        "Send an HTTP request",
    ),
    (re.compile(r"\bsms\b|\btext message\b|\btext me\b", re.I), "sms", "Send an SMS"),
    (re.compile(r"\bdatabase\b|\bsave (?:it )?to (?:the )?db\b", re.I), "database", "Store the record in a database"),
    (re.compile(r"\bftp\b", re.I), "ftp", "Upload the file over FTP"),
]

_CHANNEL = re.compile(r"(?<![\w&])#([a-z0-9][a-z0-9_\-]*)", re.I)
_EMAIL_ADDRESS = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]*\w")
_URL = re.compile(r"https?://[^\s,;\"'<>]+", re.I)
_SHEET_NAME = re.compile(
    r"\b(?:sheet|spreadsheet)\s+(?:called|named)\s+[\"']?([\w\- ]+?)[\"']?(?=[.,!?;]|$)",
    re.I,
)

ACTION_INTEGRATIONS: dict[str, str] = {
    "slack": "slack",
    "discord": "discord",
    "email_send": "email",
    "google_sheets": "google_sheets",
    "airtable": "airtable",
    "github": "github",
    "http_request": "http",
    "sms": "sms",
    "database": "database",
    "ftp": "ftp",
}

_MENTIONED_SERVICES = re.compile(
    r"\b(slack|discord|gmail|google sheets?|airtable|github|stripe|twitter|shopify|trello|hubspot|salesforce)\b",
    re.I,
)


def _format_clock(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def find_clock_time(text: str) -> str | None:
    """Return an explicit time of day as ``HH:MM`` or None."""
    match = _CLOCK_AMPM.search(text)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2) or 0)
        if 1 <= hour <= 12 and minute < 60:
            if match.group(3).lower() == "p" and hour != 12:
                hour += 12
            elif match.group(3).lower() == "a" and hour == 12:
                hour = 0
            return _format_clock(hour, minute)
    match = _CLOCK_24H.search(text)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour < 24 and minute < 60:
            return _format_clock(hour, minute)
    match = _NOON.search(text)
    if match:
        return "00:00" if match.group(1).lower() == "midnight" else "12:00"
    return None


def _find_interval(text: str) -> dict[str, Any] | None:
    match = _INTERVAL.search(text)
    if not match:
        return None
    if match.group(3):
        return {"unit": "hours", "value": 1}
    value = int(match.group(1) or 1)
    return {"unit": f"{match.group(2).lower()}s", "value": value}


_INTERVAL_UNITS = {
    "second": "seconds",
    "minute": "minutes",
    "hour": "hours",
    "day": "days",
}


def _normalize_time(raw: Any) -> str:
    text = str(raw)
    match = _CLOCK_PLAIN.match(text)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour < 24 and minute < 60:
            return _format_clock(hour, minute)
        raise ValueError(f"time out of range: {text!r}")
    clock = find_clock_time(text)
    if clock is None:
        raise ValueError(f"unreadable time: {text!r}")
    return clock


def _normalize_interval(raw: Any) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise ValueError(f"interval must be an object, got {raw!r}")
    unit = str(raw.get("unit") or "").strip().lower().rstrip("s")
    if unit not in _INTERVAL_UNITS:
        raise ValueError(f"unknown interval unit: {raw.get('unit')!r}")
    value = raw.get("value", 1)
    if isinstance(value, bool) or not (isinstance(value, int) or str(value).strip().isdigit()):
        raise ValueError(f"interval value must be a whole number, got {value!r}")
    value = int(value)
    if value < 1:
        raise ValueError(f"interval value must be positive, got {value}")
    return {"unit": _INTERVAL_UNITS[unit], "value": value}


def normalize_schedule_parameters(params: dict[str, Any]) -> dict[str, Any]:
    """Canonical schedule parameters: ``time`` as ``HH:MM``, ``interval`` as {unit, value}.

    Accepts the loose forms a model may produce ("8am", "9:30 PM", "noon",
    {"unit": "Hour", "value": "2"}).

    Raises:
        ValueError: If a time or interval is present but cannot be read
    """
    normalized = dict(params)
    if normalized.get("time") not in (None, ""):
        normalized["time"] = _normalize_time(normalized["time"])
    if normalized.get("interval") is not None:
        normalized["interval"] = _normalize_interval(normalized["interval"])
    return normalized


def _find_period(text: str) -> tuple[str, str | None] | None:
    weekday = _WEEKDAY.search(text)
    if weekday:
        return "weekly", weekday.group(1).lower()
    for pattern, frequency, period in _PERIODS:
        if pattern.search(text):
            return frequency, period
    return None


def _schedule_trigger(text: str) -> Trigger | None:
    interval = _find_interval(text)
    if interval:
        description = f"Every {interval['value']} {interval['unit']}"
        if interval["value"] == 1:
            description = f"Every {interval['unit'].rstrip('s')}"
        return ScheduleTrigger(description=description, parameters={"interval": interval})

    clock = find_clock_time(text)
    period = _find_period(text)
    if clock:
        frequency, detail = period or ("daily", None)
        parameters: dict[str, Any] = {"frequency": frequency, "time": clock}
        if frequency == "weekly" and detail:
            parameters["day_of_week"] = detail
            description = f"Every {detail.capitalize()} at {clock}"
        else:
            description = f"Every day at {clock}" if frequency == "daily" else f"{frequency.capitalize()} at {clock}"
        return ScheduleTrigger(description=description, parameters=parameters)

    if period:
        frequency, detail = period
        parameters = {"frequency": frequency}
        if detail:
            parameters["day_of_week" if frequency == "weekly" else "period"] = detail
        phrase = f"every {detail}" if detail else frequency
        return UnknownTrigger(candidate="schedule", description=phrase, parameters=parameters)
    return None


def detect_trigger(text: str) -> Trigger:
    """Best-effort trigger from free text; ``UnknownTrigger`` when nothing fits."""
    if _WEBHOOK.search(text):
        parameters: dict[str, Any] = {}
        path = _WEBHOOK_PATH.search(text)
        if path:
            parameters["path"] = path.group(1)
        return WebhookTrigger(description="HTTP webhook trigger", parameters=parameters)
    if _EMAIL_TRIGGER.search(text):
        return EmailTrigger(description="When a new email arrives")
    if _MANUAL.search(text):
        return ManualTrigger(description="Run manually")

    schedule = _schedule_trigger(text)
    if isinstance(schedule, ScheduleTrigger):
        return schedule

    app_event = _APP_EVENT.search(text)
    if app_event:
        source = _APP_EVENT_SOURCES[app_event.group(1).lower()]
        label = source.replace("_", " ").title()
        return AppEventTrigger(description=f"{label} event", parameters={"source": source})

    if schedule is not None:
        return schedule
    return UnknownTrigger()


def detect_actions(text: str, trigger: Trigger | None = None) -> list[Action]:
    """Actions mentioned in the text, in order of first mention.

    A service that is already the trigger's event source is not repeated
    as an action.
    """
    skip = trigger.parameters.get("source") if isinstance(trigger, AppEventTrigger) else None
    found: list[tuple[int, Action]] = []
    for pattern, action_type, description in _ACTION_PATTERNS:
        if action_type == skip:
            continue
        match = pattern.search(text)
        if match:
            found.append(
                (match.start(), Action(type=action_type, description=description, parameters={}))
            )
    found.sort(key=lambda item: item[0])
    actions = [action for _, action in found]
    _attach_parameters(text, actions)
    return actions


def _attach_parameters(text: str, actions: list[Action]) -> None:
    channel = _CHANNEL.search(text)
    chat = next((a for a in actions if a.type in ("slack", "discord")), None)
    if channel and chat is not None:
        chat.parameters["channel"] = f"#{channel.group(1)}"

    address = _EMAIL_ADDRESS.search(text)
    mailer = next((a for a in actions if a.type == "email_send"), None)
    if address and mailer is not None:
        mailer.parameters["to"] = address.group(0)

    url = _URL.search(text)
    http = next((a for a in actions if a.type == "http_request"), None)
    if url and http is not None:
        http.parameters["url"] = url.group(0).rstrip(".)")

    sheet = _SHEET_NAME.search(text)
    sheets = next((a for a in actions if a.type == "google_sheets"), None)
    if sheet and sheets is not None:
        sheets.parameters["spreadsheet"] = sheet.group(1).strip()


def detect_integrations(text: str, trigger: Trigger, actions: list[Action]) -> list[str]:
    integrations = {ACTION_INTEGRATIONS.get(action.type, action.type) for action in actions}
    if isinstance(trigger, WebhookTrigger):
        integrations.add("webhook")
    elif isinstance(trigger, EmailTrigger):
        integrations.add("email")
    elif isinstance(trigger, AppEventTrigger) and trigger.parameters.get("source"):
        integrations.add(trigger.parameters["source"])
    for match in _MENTIONED_SERVICES.finditer(text):
        name = normalize_identifier(match.group(1))
        integrations.add("google_sheets" if name.startswith("google_sheet") else name)
    return sorted(integrations)


def estimate_complexity(actions: int, integrations: int, issues: int = 0) -> Complexity:
    """Score-based complexity estimate.

    More than three actions scores 2, more than one scores 1; more than two
    integrations scores 2, any integration scores 1; known issues add 1.
    A total of at most 1 is simple, at most 3 moderate, otherwise complex.
    """
    score = 2 if actions > 3 else 1 if actions > 1 else 0
    score += 2 if integrations > 2 else 1 if integrations > 0 else 0
    score += 1 if issues else 0
    if score <= 1:
        return Complexity.SIMPLE
    if score <= 3:
        return Complexity.MODERATE
    return Complexity.COMPLEX

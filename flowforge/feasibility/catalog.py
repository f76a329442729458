"""Catalog of node capabilities the workflow engine provides.

Maps trigger kinds and action types onto engine node types, together
with the credentials, rate limits and performance characteristics the
feasibility assessor and validation checks need.
"""

from dataclasses import dataclass

from flowforge.graph.state import NodeKind


@dataclass(frozen=True)
class NodeCapability:
    name: str
    kind: NodeKind
    node_type: str
    integration: str | None = None
    credential: str | None = None
    credential_kind: str | None = None  # oauth2 | api_key | basic
    rate_limited: bool = False
    slow: bool = False


_TRIGGERS = [
    NodeCapability("schedule", NodeKind.TRIGGER, "n8n-nodes-base.scheduleTrigger"),
    NodeCapability("webhook", NodeKind.TRIGGER, "n8n-nodes-base.webhook", integration="webhook"),
    NodeCapability("manual", NodeKind.TRIGGER, "n8n-nodes-base.manualTrigger"),
    NodeCapability(
        "email",
        NodeKind.TRIGGER,
        "n8n-nodes-base.emailReadImap",
        integration="email",
        credential="imap",
        credential_kind="basic",
    ),
]

# Services that can raise events directly (app_event triggers)
_EVENT_SOURCES = [
    NodeCapability(
        "github",
        NodeKind.TRIGGER,
        "n8n-nodes-base.githubTrigger",
        integration="github",
        credential="githubApi",
        credential_kind="api_key",
        rate_limited=True,
    ),
    NodeCapability(
        "google_sheets",
        NodeKind.TRIGGER,
        "n8n-nodes-base.googleSheetsTrigger",
        integration="google_sheets",
        credential="googleSheetsOAuth2Api",
        credential_kind="oauth2",
        rate_limited=True,
    ),
    NodeCapability(
        "airtable",
        NodeKind.TRIGGER,
        "n8n-nodes-base.airtableTrigger",
        integration="airtable",
        credential="airtableTokenApi",
        credential_kind="api_key",
        rate_limited=True,
    ),
    NodeCapability(
        "stripe",
        NodeKind.TRIGGER,
        "n8n-nodes-base.stripeTrigger",
        integration="stripe",
        credential="stripeApi",
        credential_kind="api_key",
        rate_limited=True,
    ),
    NodeCapability(
        "slack",
        NodeKind.TRIGGER,
        "n8n-nodes-base.slackTrigger",
        integration="slack",
        credential="slackOAuth2Api",
        credential_kind="oauth2",
        rate_limited=True,
    ),
]

_ACTIONS = [
    NodeCapability("http_request", NodeKind.ACTION, "n8n-nodes-base.httpRequest", integration="http", slow=True),
    NodeCapability(
        "email_send",
        NodeKind.ACTION,
        "n8n-nodes-base.emailSend",
        integration="email",
        credential="smtp",
        credential_kind="basic",
        slow=True,
    ),
    NodeCapability(
        "slack",
        NodeKind.ACTION,
        "n8n-nodes-base.slack",
        integration="slack",
        credential="slackOAuth2Api",
        credential_kind="oauth2",
        rate_limited=True,
    ),
    NodeCapability(
        "discord",
        NodeKind.ACTION,
        "n8n-nodes-base.discord",
        integration="discord",
        credential="discordWebhookApi",
        credential_kind="api_key",
    ),
    NodeCapability(
        "google_sheets",
        NodeKind.ACTION,
        "n8n-nodes-base.googleSheets",
        integration="google_sheets",
        credential="googleSheetsOAuth2Api",
        credential_kind="oauth2",
        rate_limited=True,
    ),
    NodeCapability(
        "airtable",
        NodeKind.ACTION,
        "n8n-nodes-base.airtable",
        integration="airtable",
        credential="airtableTokenApi",
        credential_kind="api_key",
        rate_limited=True,
    ),
    NodeCapability(
        "github",
        NodeKind.ACTION,
        "n8n-nodes-base.github",
        integration="github",
        credential="githubApi",
        credential_kind="api_key",
        rate_limited=True,
    ),
    NodeCapability("respond_to_webhook", NodeKind.ACTION, "n8n-nodes-base.respondToWebhook"),
    # Processing
    NodeCapability("set", NodeKind.LOGIC, "n8n-nodes-base.set"),
    NodeCapability("if", NodeKind.LOGIC, "n8n-nodes-base.if"),
    NodeCapability("switch", NodeKind.LOGIC, "n8n-nodes-base.switch"),
    NodeCapability("code", NodeKind.LOGIC, "n8n-nodes-base.code"),
    NodeCapability("noop", NodeKind.LOGIC, "n8n-nodes-base.noOp"),
]

# Unavailable action -> closest available substitute
ACTION_ALTERNATIVES: dict[str, str] = {
    "sms": "http_request",
    "ftp": "http_request",
    "twitter": "http_request",
    "database": "code",
    "crm": "http_request",
}

RATE_LIMITED_SERVICES = frozenset({"slack", "twitter", "github", "google_sheets", "stripe", "airtable"})
SENSITIVE_INTEGRATIONS = frozenset({"email", "database", "crm", "payment", "stripe"})


class CapabilityCatalog:
    """Lookup over the engine's available triggers and actions."""

    def __init__(
        self,
        triggers: list[NodeCapability] | None = None,
        event_sources: list[NodeCapability] | None = None,
        actions: list[NodeCapability] | None = None,
        alternatives: dict[str, str] | None = None,
    ):
        self._triggers = {c.name: c for c in (triggers if triggers is not None else _TRIGGERS)}
        self._sources = {c.name: c for c in (event_sources if event_sources is not None else _EVENT_SOURCES)}
        self._actions = {c.name: c for c in (actions if actions is not None else _ACTIONS)}
        self._alternatives = dict(ACTION_ALTERNATIVES if alternatives is None else alternatives)
        self._by_node_type = {
            c.node_type: c
            for c in [*self._triggers.values(), *self._sources.values(), *self._actions.values()]
        }

    def trigger(self, trigger_type: str, source: str | None = None) -> NodeCapability | None:
        if trigger_type == "app_event":
            return self._sources.get(source or "")
        return self._triggers.get(trigger_type)

    def action(self, action_type: str) -> NodeCapability | None:
        return self._actions.get(action_type)

    def alternative_for(self, action_type: str) -> str | None:
        alternative = self._alternatives.get(action_type)
        return alternative if alternative in self._actions else None

    def by_node_type(self, node_type: str) -> NodeCapability | None:
        return self._by_node_type.get(node_type)

    def credential_for(self, integration: str) -> NodeCapability | None:
        """First capability that needs credentials for ``integration``."""
        for capability in [*self._actions.values(), *self._sources.values(), *self._triggers.values()]:
            if capability.integration == integration and capability.credential:
                return capability
        return None

    def is_rate_limited(self, integration: str) -> bool:
        return integration in RATE_LIMITED_SERVICES

    def is_sensitive(self, integration: str) -> bool:
        return integration in SENSITIVE_INTEGRATIONS

    def actions(self) -> list[NodeCapability]:
        return list(self._actions.values())

    def triggers(self) -> list[NodeCapability]:
        return [*self._triggers.values(), *self._sources.values()]


DEFAULT_CATALOG = CapabilityCatalog()

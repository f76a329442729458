"""Node layout, trigger parameters and the template fallback workflows.

The template strategy first looks for a curated two-node template keyed by
the trigger type and the first action type, filled from the
Specification. When none matches (or the trigger cannot be filled) it
emits the bare manual trigger + pass-through workflow.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from flowforge.exceptions import GenerationError
from flowforge.feasibility.catalog import DEFAULT_CATALOG, CapabilityCatalog, NodeCapability
from flowforge.graph.state import (
    Connection,
    GenerationStrategy,
    NodeKind,
    Specification,
    Trigger,
    WorkflowArtifact,
    WorkflowNode,
)

logger = logging.getLogger(__name__)

ORIGIN = (240, 300)
STEP_X = 220

_PLACEHOLDER = re.compile(r"\{([a-z_]+)\}")


def layout_position(index: int) -> list[int]:
    """Left-to-right position of the ``index``-th node in a chain."""
    return [ORIGIN[0] + index * STEP_X, ORIGIN[1]]


def chain(nodes: list[WorkflowNode]) -> list[Connection]:
    return [Connection(source=a.id, target=b.id) for a, b in zip(nodes, nodes[1:])]


def node_credentials(capability: NodeCapability) -> dict[str, str]:
    if not capability.credential:
        return {}
    label = (capability.integration or capability.name).replace("_", " ").title()
    return {capability.credential: f"{label} account"}


def schedule_parameters(params: dict[str, Any]) -> dict[str, Any]:
    """Engine rule for a schedule trigger's ``time``/``interval``/``cron`` parameters.

    Raises:
        ValueError: If the time or interval cannot be read
    """
    if params.get("cron"):
        return {"rule": {"interval": [{"field": "cronExpression", "expression": params["cron"]}]}}

    interval = params.get("interval")
    if isinstance(interval, dict) and interval.get("unit"):
        field_name = str(interval["unit"])
        value = int(interval.get("value") or 1)
        if value < 1:
            raise ValueError(f"interval must be positive, got {value}")
        return {"rule": {"interval": [{"field": field_name, f"{field_name}Interval": value}]}}

    time = str(params.get("time") or "09:00")
    hour, _, minute = time.partition(":")
    rule: dict[str, Any] = {"triggerAtHour": int(hour), "triggerAtMinute": int(minute or 0)}
    if not (0 <= rule["triggerAtHour"] < 24 and 0 <= rule["triggerAtMinute"] < 60):
        raise ValueError(f"time out of range: {time}")
    if params.get("frequency") == "weekly":
        rule["field"] = "weeks"
        rule["triggerAtDay"] = [str(params.get("day_of_week") or "monday")]
    else:
        rule["field"] = "days"
    return {"rule": {"interval": [rule]}}


def trigger_parameters(trigger: Trigger) -> dict[str, Any]:
    """Engine parameters for a trigger node.

    Raises:
        GenerationError: If schedule values cannot be read (kind ``parse``)
    """
    match trigger.type:
        case "schedule":
            try:
                return schedule_parameters(trigger.parameters)
            except (TypeError, ValueError) as e:
                raise GenerationError(
                    f"Unreadable schedule parameters {trigger.parameters}: {e}",
                    reason="parse",
                ) from e
        case "webhook":
            path = str(trigger.parameters.get("path") or "workflow").lstrip("/")
            return {"path": path, "httpMethod": trigger.parameters.get("method", "POST")}
        case "email":
            return {"mailbox": trigger.parameters.get("mailbox", "INBOX")}
        case "app_event":
            return {"events": trigger.parameters.get("events", ["*"])}
    return {}


@dataclass(frozen=True)
class WorkflowTemplate:
    """A trigger + action pair with parameter placeholders."""

    trigger: str
    action: str
    title: str
    action_parameters: dict[str, Any]
    defaults: dict[str, str] = field(default_factory=dict)

    def fill(self, values: dict[str, Any]) -> dict[str, Any]:
        merged = {**self.defaults, **{k: str(v) for k, v in values.items()}}

        def substitute(value: Any) -> Any:
            if not isinstance(value, str):
                return value
            return _PLACEHOLDER.sub(lambda m: merged.get(m.group(1), ""), value)

        return {key: substitute(value) for key, value in self.action_parameters.items()}


WORKFLOW_TEMPLATES: list[WorkflowTemplate] = [
    WorkflowTemplate(
        "schedule",
        "slack",
        "Scheduled Slack message",
        {"channel": "{channel}", "text": "{description}"},
        {"channel": "#general"},
    ),
    WorkflowTemplate(
        "schedule",
        "email_send",
        "Scheduled email",
        {"toEmail": "{to}", "subject": "{description}", "text": "{description}"},
    ),
    WorkflowTemplate(
        "schedule",
        "http_request",
        "Scheduled HTTP call",
        {"method": "GET", "url": "{url}"},
        {"url": "https://example.com"},
    ),
    WorkflowTemplate(
        "webhook",
        "slack",
        "Webhook to Slack",
        {"channel": "{channel}", "text": "{description}"},
        {"channel": "#general"},
    ),
    WorkflowTemplate(
        "webhook",
        "google_sheets",
        "Webhook to Google Sheets",
        {"operation": "append", "documentId": "{spreadsheet}", "sheetName": "Sheet1"},
        {"spreadsheet": "Workflow data"},
    ),
    WorkflowTemplate(
        "email",
        "slack",
        "Email to Slack",
        {"channel": "{channel}", "text": "{description}"},
        {"channel": "#general"},
    ),
    WorkflowTemplate(
        "email",
        "google_sheets",
        "Email to Google Sheets",
        {"operation": "append", "documentId": "{spreadsheet}", "sheetName": "Sheet1"},
        {"spreadsheet": "Workflow data"},
    ),
]


def find_template(spec: Specification) -> WorkflowTemplate | None:
    if not spec.actions:
        return None
    key = (spec.trigger.type, spec.actions[0].type)
    return next((t for t in WORKFLOW_TEMPLATES if (t.trigger, t.action) == key), None)


def template_artifact(
    name: str,
    spec: Specification | None = None,
    catalog: CapabilityCatalog | None = None,
) -> WorkflowArtifact:
    """The matching template filled from ``spec``, else the bare fallback."""
    template = find_template(spec) if spec is not None else None
    if spec is not None and template is not None:
        try:
            return _fill_template(template, name, spec, catalog or DEFAULT_CATALOG)
        except GenerationError as e:
            logger.info("Template '%s' could not be filled: %s", template.title, e)
    return _bare_artifact(name)


def _fill_template(
    template: WorkflowTemplate,
    name: str,
    spec: Specification,
    catalog: CapabilityCatalog,
) -> WorkflowArtifact:
    trigger_capability = catalog.trigger(template.trigger)
    action_capability = catalog.action(template.action)
    if trigger_capability is None or action_capability is None:
        raise GenerationError(f"Template '{template.title}' uses unavailable nodes", reason="capability")

    action = spec.actions[0]
    values = {"description": action.description or template.title, **action.parameters}
    nodes = [
        WorkflowNode(
            id="trigger",
            name=spec.trigger.description or trigger_capability.name.title(),
            kind=NodeKind.TRIGGER,
            node_type=trigger_capability.node_type,
            parameters=trigger_parameters(spec.trigger),
            credentials=node_credentials(trigger_capability),
            position=layout_position(0),
        ),
        WorkflowNode(
            id=template.action.replace("_", "-"),
            name=action.description or template.title,
            kind=action_capability.kind,
            node_type=action_capability.node_type,
            parameters=template.fill(values),
            credentials=node_credentials(action_capability),
            position=layout_position(1),
        ),
    ]
    return WorkflowArtifact(
        name=name,
        nodes=nodes,
        connections=chain(nodes),
        strategy=GenerationStrategy.TEMPLATE,
    )


def _bare_artifact(name: str) -> WorkflowArtifact:
    """Manual trigger followed by a pass-through node; always well formed."""
    nodes = [
        WorkflowNode(
            id="start",
            name="Start",
            kind=NodeKind.TRIGGER,
            node_type="n8n-nodes-base.manualTrigger",
            position=layout_position(0),
        ),
        WorkflowNode(
            id="pass-through",
            name="Pass Through",
            kind=NodeKind.LOGIC,
            node_type="n8n-nodes-base.noOp",
            position=layout_position(1),
        ),
    ]
    return WorkflowArtifact(
        name=name,
        nodes=nodes,
        connections=chain(nodes),
        strategy=GenerationStrategy.TEMPLATE,
    )

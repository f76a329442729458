"""Test doubles and builders for the conversation pipeline."""

from collections.abc import Sequence
from typing import Any

from flowforge.engine import DeploymentResult
from flowforge.exceptions import LLMResponseError
from flowforge.graph.state import (
    Action,
    CheckResult,
    Connection,
    NodeKind,
    ScheduleTrigger,
    Specification,
    ValidationIssue,
    WorkflowArtifact,
    WorkflowNode,
)


def slack_spec(**overrides: Any) -> Specification:
    """A complete 'every morning at 9am post to #general' specification."""
    values: dict[str, Any] = {
        "trigger": ScheduleTrigger(
            description="Every day at 09:00",
            parameters={"frequency": "daily", "time": "09:00"},
        ),
        "actions": [
            Action(
                type="slack",
                description="Send a Slack message",
                parameters={"channel": "#general"},
            )
        ],
        "integrations": ["slack"],
    }
    values.update(overrides)
    return Specification(**values)


def make_node(node_id: str, kind: NodeKind = NodeKind.ACTION, **overrides: Any) -> WorkflowNode:
    node_type = "n8n-nodes-base.manualTrigger" if kind == NodeKind.TRIGGER else "n8n-nodes-base.noOp"
    values: dict[str, Any] = {
        "id": node_id,
        "name": node_id.replace("-", " ").title(),
        "kind": kind,
        "node_type": node_type,
    }
    values.update(overrides)
    return WorkflowNode(**values)


def make_artifact(
    node_ids: Sequence[str] = ("trigger", "step"),
    connections: Sequence[tuple[str, str]] | None = None,
    name: str = "Test workflow",
) -> WorkflowArtifact:
    """Artifact whose first node is a trigger; chained unless connections are given."""
    nodes = [
        make_node(node_id, NodeKind.TRIGGER if index == 0 else NodeKind.ACTION)
        for index, node_id in enumerate(node_ids)
    ]
    if connections is None:
        connections = list(zip(node_ids, node_ids[1:]))
    return WorkflowArtifact(
        name=name,
        nodes=nodes,
        connections=[Connection(source=s, target=t) for s, t in connections],
    )


class FakeCompletion:
    """Stands in for CompletionClient; replays queued JSON payloads or errors."""

    provider = "fake"

    def __init__(self, *responses: Any):
        self.responses = list(responses)
        self.prompts: list[str] = []

    async def complete_json(self, prompt: str, **kwargs: Any) -> dict[str, Any]:
        self.prompts.append(prompt)
        if not self.responses:
            raise LLMResponseError("No scripted response left", raw_output="")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


class ScriptedArtifactBuilder:
    """Artifact strategy returning (or raising) scripted results in order."""

    def __init__(self, *results: WorkflowArtifact | BaseException):
        self.results = list(results)
        self.calls: list[Specification] = []

    async def build(self, spec: Specification, name: str) -> WorkflowArtifact:
        self.calls.append(spec)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, BaseException):
            raise result
        return result.model_copy(deep=True, update={"name": name})


class StaticCheck:
    """Validation check with a fixed score."""

    def __init__(self, dimension: str, score: int, issues: Sequence[ValidationIssue] = ()):
        self.dimension = dimension
        self.score = score
        self.issues = list(issues)
        self.calls = 0

    async def check(self, artifact: WorkflowArtifact, spec: Specification | None = None) -> CheckResult:
        self.calls += 1
        return CheckResult(dimension=self.dimension, score=self.score, issues=self.issues)


class RecordingDeployer:
    """Deployer returning (or raising) scripted results and recording artifacts."""

    def __init__(self, *results: DeploymentResult | BaseException):
        self.results = list(results) or [DeploymentResult(artifact_id="wf-1", activated=True)]
        self.deployed: list[WorkflowArtifact] = []
        self.workflow_ids: list[str | None] = []

    async def deploy(self, artifact: WorkflowArtifact, workflow_id: str | None = None) -> DeploymentResult:
        self.deployed.append(artifact)
        self.workflow_ids.append(workflow_id)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, BaseException):
            raise result
        return result

"""Artifact generation: frozen Specification + strategy -> WorkflowArtifact.

The strategy decides what gets built; corrections requested by the retry
coordinator are applied around the build, and the structural invariants
are checked before anything is returned.
"""

import json
import logging
from collections.abc import Sequence
from typing import Any, Protocol

from pydantic import ValidationError

from flowforge.exceptions import GenerationError, LLMResponseError
from flowforge.feasibility.catalog import DEFAULT_CATALOG, CapabilityCatalog
from flowforge.generation.structure import (
    NO_ACTIONS,
    NO_TRIGGER,
    check_structure,
    drop_dangling_connections,
    regenerate_ids,
)
from flowforge.generation.templates import (
    chain,
    layout_position,
    node_credentials,
    template_artifact,
    trigger_parameters,
)
from flowforge.graph.state import (
    Action,
    AppEventTrigger,
    Complexity,
    Correction,
    GenerationStrategy,
    ManualTrigger,
    Specification,
    Trigger,
    WorkflowArtifact,
    WorkflowNode,
)
from flowforge.llm.completion import CompletionClient

logger = logging.getLogger(__name__)

SIMPLIFIED_MAX_ACTIONS = 2
MAX_NAME_LENGTH = 80


class ArtifactStrategy(Protocol):
    async def build(self, spec: Specification, name: str) -> WorkflowArtifact: ...


def workflow_name(spec: Specification) -> str:
    trigger = spec.trigger.description or spec.trigger.type.replace("_", " ").capitalize()
    steps = " and ".join(action.description or action.type for action in spec.actions)
    name = f"{trigger}: {steps}" if steps else trigger
    return name if len(name) <= MAX_NAME_LENGTH else name[: MAX_NAME_LENGTH - 3].rstrip() + "..."


class DeterministicArtifactBuilder:
    """Chains the trigger node to one node per action, in order."""

    def __init__(self, catalog: CapabilityCatalog | None = None):
        self.catalog = catalog or DEFAULT_CATALOG

    async def build(self, spec: Specification, name: str) -> WorkflowArtifact:
        if not spec.trigger_resolved:
            raise GenerationError("Specification has no trigger", violations=[NO_TRIGGER])
        if not spec.actions:
            raise GenerationError("Specification has no actions", violations=[NO_ACTIONS])

        nodes = [self._trigger_node(spec.trigger)]
        used_names = {nodes[0].name}
        for index, action in enumerate(spec.actions, start=1):
            node = self._action_node(action, index)
            if node.name in used_names:
                node.name = f"{node.name} {index}"
            used_names.add(node.name)
            nodes.append(node)
        return WorkflowArtifact(name=name, nodes=nodes, connections=chain(nodes))

    def _trigger_node(self, trigger: Trigger) -> WorkflowNode:
        source = trigger.source if isinstance(trigger, AppEventTrigger) else None
        capability = self.catalog.trigger(trigger.type, source)
        parameters: dict[str, Any] = {}

        if capability is None and isinstance(trigger, AppEventTrigger):
            # Services without a native trigger post their events to a webhook
            capability = self.catalog.trigger("webhook")
            parameters = {"path": f"{source or 'app'}-events", "httpMethod": "POST"}
        if capability is None:
            raise GenerationError(
                f"No trigger node available for '{trigger.type}'",
                reason="capability",
            )

        if not parameters:
            parameters = trigger_parameters(trigger)

        return WorkflowNode(
            id="trigger",
            name=trigger.description or capability.name.replace("_", " ").title(),
            kind=capability.kind,
            node_type=capability.node_type,
            parameters=parameters,
            credentials=node_credentials(capability),
            position=layout_position(0),
        )

    def _action_node(self, action: Action, index: int) -> WorkflowNode:
        capability = self.catalog.action(action.type)
        if capability is None:
            raise GenerationError(
                f"No node available for the '{action.type}' step",
                reason="capability",
            )
        parameters = dict(action.parameters)
        match action.type:
            case "slack" | "discord":
                parameters.setdefault("text", action.description)
            case "email_send":
                parameters.setdefault("subject", action.description)
            case "http_request":
                parameters.setdefault("method", "POST")
        return WorkflowNode(
            id=f"{action.type.replace('_', '-')}-{index}",
            name=action.description or capability.name.replace("_", " ").title(),
            kind=capability.kind,
            node_type=capability.node_type,
            parameters=parameters,
            credentials=node_credentials(capability),
            position=layout_position(index),
        )


GENERATION_SYSTEM_PROMPT = """You design workflows for a node-based automation engine.
Reply with one JSON object and nothing else:
{
  "name": "...",
  "nodes": [{"id": "unique-id", "name": "...", "kind": "trigger|action|logic",
             "node_type": "<one of the available node types>", "parameters": {...}}],
  "connections": [{"source": "<node id>", "target": "<node id>"}]
}
Exactly one trigger node, with no incoming connections. Never put secrets in parameters;
refer to credentials by type only."""


class LLMArtifactBuilder:
    """Asks the LLM for the node graph and validates it at the boundary."""

    def __init__(self, completion: CompletionClient, catalog: CapabilityCatalog | None = None):
        self._completion = completion
        self.catalog = catalog or DEFAULT_CATALOG

    async def build(self, spec: Specification, name: str) -> WorkflowArtifact:
        node_types = sorted(c.node_type for c in [*self.catalog.triggers(), *self.catalog.actions()])
        prompt = (
            f"Workflow name: {name}\n"
            f"Requirements:\n{json.dumps(spec.model_dump(mode='json'), indent=2)}\n\n"
            f"Available node types:\n{', '.join(node_types)}"
        )
        try:
            data = await self._completion.complete_json(
                prompt,
                system_prompt=GENERATION_SYSTEM_PROMPT,
                temperature=0.0,
            )
        except LLMResponseError as e:
            raise GenerationError("Model returned non-JSON workflow output", reason="parse") from e

        data.setdefault("name", name)
        try:
            artifact = WorkflowArtifact.model_validate(data)
        except ValidationError as e:
            raise GenerationError(f"Malformed workflow from model: {e}", reason="parse") from e

        for node in artifact.nodes:
            if self.catalog.by_node_type(node.node_type) is None:
                raise GenerationError(
                    f"Model used unavailable node type '{node.node_type}'",
                    reason="capability",
                )
        if all(node.position == [0, 0] for node in artifact.nodes):
            for index, node in enumerate(artifact.nodes):
                node.position = layout_position(index)
        return artifact


class ArtifactGenerator:
    """Builds workflow artifacts under a generation strategy.

    ``standard`` uses the LLM builder when one is configured and the
    deterministic builder otherwise; the fallback strategies are always
    deterministic.
    """

    def __init__(
        self,
        catalog: CapabilityCatalog | None = None,
        llm_builder: ArtifactStrategy | None = None,
        builder: ArtifactStrategy | None = None,
    ):
        self.catalog = catalog or DEFAULT_CATALOG
        self.llm_builder = llm_builder
        self.builder = builder or DeterministicArtifactBuilder(self.catalog)

    async def generate(
        self,
        spec: Specification,
        strategy: GenerationStrategy = GenerationStrategy.STANDARD,
        corrections: Sequence[Correction] = (),
    ) -> WorkflowArtifact:
        """Build and structurally check an artifact.

        Raises:
            GenerationError: On parse, capability or structure failures
        """
        name = workflow_name(spec)
        working = self._prepare(spec, strategy, corrections)

        if strategy == GenerationStrategy.TEMPLATE:
            artifact = template_artifact(name, working, self.catalog)
        elif strategy == GenerationStrategy.STANDARD and self.llm_builder is not None:
            artifact = await self.llm_builder.build(working, name)
        else:
            artifact = await self.builder.build(working, name)

        if Correction.REGENERATE_IDS in corrections:
            artifact = regenerate_ids(artifact)
        if Correction.DROP_DANGLING_CONNECTIONS in corrections:
            artifact = drop_dangling_connections(artifact)
        artifact = artifact.model_copy(update={"strategy": strategy})

        logger.info(
            "Generated '%s' with %s strategy (%d nodes, corrections=%s)",
            name,
            strategy.value,
            len(artifact.nodes),
            [c.value for c in corrections],
        )
        return check_structure(artifact)

    def _prepare(
        self,
        spec: Specification,
        strategy: GenerationStrategy,
        corrections: Sequence[Correction],
    ) -> Specification:
        working = spec.model_copy(deep=True)

        if Correction.DEFAULT_TRIGGER in corrections and not working.trigger_resolved:
            working.trigger = ManualTrigger(description="Run manually")
        if Correction.DEFAULT_ACTION in corrections and not working.actions:
            working.actions = [Action(type="noop", description="Pass data through")]

        match strategy:
            case GenerationStrategy.SIMPLIFIED:
                working.actions = working.actions[:SIMPLIFIED_MAX_ACTIONS]
                working.integrations = working.integrations[:1]
                working.complexity = Complexity.SIMPLE
            case GenerationStrategy.ALTERNATIVE_NODES:
                working.actions = self._substitute(working.actions)
        return working

    def _substitute(self, actions: list[Action]) -> list[Action]:
        substituted: list[Action] = []
        for action in actions:
            if self.catalog.action(action.type) is not None:
                substituted.append(action)
                continue
            alternative = self.catalog.alternative_for(action.type)
            if alternative is None:
                logger.warning("Dropping '%s' step: no alternative node", action.type)
                continue
            parameters = {"original_step": action.type, **action.parameters}
            substituted.append(
                Action(type=alternative, description=action.description, parameters=parameters)
            )
        return substituted

"""Generated workflow definition."""

from typing import Any

from pydantic import BaseModel, Field

from .enums import GenerationStrategy, NodeKind


class WorkflowNode(BaseModel):
    id: str = Field(min_length=1)
    name: str
    kind: NodeKind
    node_type: str = Field(description="Engine node type, e.g. n8n-nodes-base.slack")
    parameters: dict[str, Any] = Field(default_factory=dict)
    credentials: dict[str, str] = Field(
        default_factory=dict,
        description="Credential type references; never literal secrets",
    )
    position: list[int] = Field(default_factory=lambda: [0, 0], min_length=2, max_length=2)


class Connection(BaseModel):
    source: str
    target: str


class WorkflowArtifact(BaseModel):
    """A workflow graph ready for validation and deployment."""

    name: str
    nodes: list[WorkflowNode] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)
    strategy: GenerationStrategy = GenerationStrategy.STANDARD

    def node_ids(self) -> list[str]:
        return [node.id for node in self.nodes]

    def get_node(self, node_id: str) -> WorkflowNode | None:
        return next((node for node in self.nodes if node.id == node_id), None)

    def entry_nodes(self) -> list[WorkflowNode]:
        """Nodes without incoming connections."""
        targets = {conn.target for conn in self.connections}
        return [node for node in self.nodes if node.id not in targets]

    def trigger_nodes(self) -> list[WorkflowNode]:
        return [node for node in self.nodes if node.kind == NodeKind.TRIGGER]

    def to_engine_payload(self) -> dict[str, Any]:
        """Shape the artifact the way a node-graph workflow engine expects it.

        Connections are keyed by source node name, one main output each.
        """
        names = {node.id: node.name for node in self.nodes}
        connections: dict[str, Any] = {}
        for conn in self.connections:
            source = names.get(conn.source, conn.source)
            outputs = connections.setdefault(source, {"main": [[]]})
            outputs["main"][0].append(
                {"node": names.get(conn.target, conn.target), "type": "main", "index": 0}
            )
        return {
            "name": self.name,
            "nodes": [
                {
                    "id": node.id,
                    "name": node.name,
                    "type": node.node_type,
                    "typeVersion": 1,
                    "position": node.position,
                    "parameters": node.parameters,
                    **({"credentials": node.credentials} if node.credentials else {}),
                }
                for node in self.nodes
            ],
            "connections": connections,
            "settings": {"executionOrder": "v1"},
        }

"""Structural invariants of generated artifacts and automatic corrections."""

from collections import Counter

from flowforge.exceptions import GenerationError
from flowforge.graph.state import Connection, WorkflowArtifact

DUPLICATE_ID = "duplicate_id"
DANGLING_CONNECTION = "dangling_connection"
NO_ENTRY_POINT = "no_entry_point"
EMPTY = "empty"
NO_TRIGGER = "no_trigger"
NO_ACTIONS = "no_actions"


def find_structure_violations(artifact: WorkflowArtifact) -> list[str]:
    """Violation codes for ``artifact``, in a stable order.

    An artifact is well formed when node ids are unique, every connection
    resolves to existing nodes and at least one node has no incoming edge.
    """
    if not artifact.nodes:
        return [EMPTY]

    violations: list[str] = []
    counts = Counter(artifact.node_ids())
    if any(count > 1 for count in counts.values()):
        violations.append(DUPLICATE_ID)
    if any(conn.source not in counts or conn.target not in counts for conn in artifact.connections):
        violations.append(DANGLING_CONNECTION)
    if not artifact.entry_nodes():
        violations.append(NO_ENTRY_POINT)
    return violations


def check_structure(artifact: WorkflowArtifact) -> WorkflowArtifact:
    """Return ``artifact`` unchanged or raise ``GenerationError``."""
    violations = find_structure_violations(artifact)
    if violations:
        raise GenerationError(
            f"Generated workflow is malformed: {', '.join(violations)}",
            violations=violations,
            reason="structure",
        )
    return artifact


def regenerate_ids(artifact: WorkflowArtifact) -> WorkflowArtifact:
    """Give repeated node ids a fresh suffix and rewire connections.

    The n-th connection endpoint naming a repeated id is pointed at the
    n-th node that carried it.
    """
    seen: set[str] = set()
    taken = set(artifact.node_ids())
    occurrences: dict[str, list[str]] = {}
    nodes = []
    for index, node in enumerate(artifact.nodes):
        new_id = node.id
        if node.id in seen:
            suffix = index
            new_id = f"{node.id}-{suffix}"
            while new_id in taken:
                suffix += 1
                new_id = f"{node.id}-{suffix}"
            taken.add(new_id)
        seen.add(node.id)
        occurrences.setdefault(node.id, []).append(new_id)
        nodes.append(node.model_copy(update={"id": new_id}))

    def remap(old_id: str, used: Counter) -> str:
        ids = occurrences.get(old_id)
        if not ids:
            return old_id
        position = min(used[old_id], len(ids) - 1)
        used[old_id] += 1
        return ids[position]

    sources: Counter = Counter()
    targets: Counter = Counter()
    connections = [
        Connection(source=remap(conn.source, sources), target=remap(conn.target, targets))
        for conn in artifact.connections
    ]
    # A node cannot feed itself after rewiring
    connections = [conn for conn in connections if conn.source != conn.target]
    return artifact.model_copy(update={"nodes": nodes, "connections": connections})


def drop_dangling_connections(artifact: WorkflowArtifact) -> WorkflowArtifact:
    ids = set(artifact.node_ids())
    connections = [conn for conn in artifact.connections if conn.source in ids and conn.target in ids]
    return artifact.model_copy(update={"connections": connections})

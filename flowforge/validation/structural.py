"""Structural validation: schema conformance and graph invariants.

The artifact is dumped to JSON and validated against the JSON Schema
compiled from the ``WorkflowArtifact`` model, then checked for the graph
invariants the engine relies on.
"""

from functools import lru_cache
from typing import Any

import jsonschema  # type: ignore[import-untyped,unused-ignore]

from flowforge.generation.structure import find_structure_violations
from flowforge.graph.state import (
    CheckResult,
    Severity,
    Specification,
    ValidationIssue,
    ValidationWarning,
    WorkflowArtifact,
)
from flowforge.validation.base import MAX_SCORE, clamp_score

ISSUE_PENALTY = 20
WARNING_PENALTY = 5

_VIOLATION_MESSAGES = {
    "empty": ("The workflow has no nodes.", "Regenerate the workflow."),
    "duplicate_id": ("Two or more nodes share the same id.", "Give every node a unique id."),
    "dangling_connection": (
        "A connection points at a node that does not exist.",
        "Remove connections to missing nodes.",
    ),
    "no_entry_point": (
        "Every node has an incoming connection, so nothing can start the workflow.",
        "Make sure the trigger node has no incoming connections.",
    ),
}


@lru_cache(maxsize=1)
def artifact_json_schema() -> dict[str, Any]:
    return WorkflowArtifact.model_json_schema()


def _format_path(path: Any) -> str:
    return ".".join(str(part) for part in path)


class StructuralCheck:
    dimension = "structural"

    async def check(self, artifact: WorkflowArtifact, spec: Specification | None = None) -> CheckResult:
        issues: list[ValidationIssue] = []
        warnings: list[ValidationWarning] = []

        schema = artifact_json_schema()
        validator = jsonschema.validators.validator_for(schema)(schema)
        for error in validator.iter_errors(artifact.model_dump(mode="json")):
            location = _format_path(error.absolute_path)
            issues.append(
                ValidationIssue(
                    severity=Severity.CRITICAL,
                    category="schema",
                    message=f"{location}: {error.message}" if location else error.message,
                    blocking=True,
                )
            )

        for code in find_structure_violations(artifact):
            message, suggestion = _VIOLATION_MESSAGES.get(code, (code, ""))
            issues.append(
                ValidationIssue(
                    severity=Severity.CRITICAL,
                    category="structure",
                    message=message,
                    suggestion=suggestion,
                    blocking=True,
                )
            )

        triggers = artifact.trigger_nodes()
        if artifact.nodes and not triggers:
            issues.append(
                ValidationIssue(
                    severity=Severity.CRITICAL,
                    category="structure",
                    message="The workflow has no trigger node.",
                    suggestion="Add a trigger such as a schedule or webhook.",
                    blocking=True,
                )
            )
        elif len(triggers) > 1:
            warnings.append(
                ValidationWarning(
                    category="structure",
                    message=f"The workflow has {len(triggers)} trigger nodes.",
                    suggestion="Split independent triggers into separate workflows.",
                )
            )

        connected = {c.source for c in artifact.connections} | {c.target for c in artifact.connections}
        if len(artifact.nodes) > 1:
            for node in artifact.nodes:
                if node.id not in connected:
                    issues.append(
                        ValidationIssue(
                            severity=Severity.MAJOR,
                            category="structure",
                            message=f"Node '{node.name}' is not connected to anything.",
                            suggestion="Connect it or remove it.",
                        )
                    )

        score = MAX_SCORE - ISSUE_PENALTY * len(issues) - WARNING_PENALTY * len(warnings)
        return CheckResult(
            dimension=self.dimension,
            score=clamp_score(score),
            issues=issues,
            warnings=warnings,
        )

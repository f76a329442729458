"""Performance validation: size, fan-out, slow nodes and rate limits."""

from collections import Counter

from flowforge.feasibility.catalog import DEFAULT_CATALOG, CapabilityCatalog
from flowforge.graph.state import (
    CheckResult,
    Complexity,
    Impact,
    Severity,
    Specification,
    ValidationIssue,
    ValidationWarning,
    WorkflowArtifact,
)
from flowforge.validation.base import clamp_score

MAX_NODES = 20
MAX_FAN_OUT = 3
WARNING_PENALTY = 5
ISSUE_PENALTY = 15


def _base_score(node_count: int, complexity: Complexity) -> int:
    if complexity == Complexity.COMPLEX or node_count > 5:
        return 60
    if complexity == Complexity.MODERATE or node_count > 3:
        return 75
    return 90


class PerformanceCheck:
    dimension = "performance"

    def __init__(self, catalog: CapabilityCatalog | None = None):
        self.catalog = catalog or DEFAULT_CATALOG

    async def check(self, artifact: WorkflowArtifact, spec: Specification | None = None) -> CheckResult:
        complexity = spec.complexity if spec else Complexity.SIMPLE
        issues: list[ValidationIssue] = []
        warnings: list[ValidationWarning] = []
        recommendations: list[str] = []

        if len(artifact.nodes) > MAX_NODES:
            issues.append(
                ValidationIssue(
                    severity=Severity.MAJOR,
                    category="performance",
                    message=f"The workflow has {len(artifact.nodes)} nodes.",
                    suggestion="Break it into smaller workflows.",
                )
            )

        rate_limited: set[str] = set()
        for node in artifact.nodes:
            capability = self.catalog.by_node_type(node.node_type)
            if capability is None:
                continue
            if capability.slow:
                warnings.append(
                    ValidationWarning(
                        category="performance",
                        impact=Impact.LOW,
                        message=f"'{node.name}' waits on a network call and may be slow.",
                        suggestion="Set a timeout on the request.",
                    )
                )
            if capability.integration and self.catalog.is_rate_limited(capability.integration):
                rate_limited.add(capability.integration)

        for integration in sorted(rate_limited):
            warnings.append(
                ValidationWarning(
                    category="rate_limit",
                    impact=Impact.MEDIUM,
                    message=f"{integration.replace('_', ' ')} enforces API rate limits.",
                    suggestion="Avoid running the workflow more often than needed.",
                )
            )

        fan_out = Counter(conn.source for conn in artifact.connections)
        for node_id, count in fan_out.items():
            if count > MAX_FAN_OUT:
                node = artifact.get_node(node_id)
                warnings.append(
                    ValidationWarning(
                        category="performance",
                        impact=Impact.MEDIUM,
                        message=f"'{node.name if node else node_id}' feeds {count} nodes at once.",
                    )
                )
                recommendations.append("Consider batching parallel branches.")

        score = _base_score(len(artifact.nodes), complexity)
        score -= WARNING_PENALTY * len(warnings) + ISSUE_PENALTY * len(issues)
        return CheckResult(
            dimension=self.dimension,
            score=clamp_score(score),
            issues=issues,
            warnings=warnings,
            recommendations=recommendations,
        )

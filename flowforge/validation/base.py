"""Common protocol for validation checks."""

from typing import Protocol

from flowforge.graph.state import CheckResult, Specification, WorkflowArtifact

MAX_SCORE = 100


class ValidationCheck(Protocol):
    """One validation dimension scoring an artifact from 0 to 100."""

    dimension: str

    async def check(self, artifact: WorkflowArtifact, spec: Specification | None = None) -> CheckResult: ...


def clamp_score(score: int) -> int:
    return max(0, min(MAX_SCORE, score))

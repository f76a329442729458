"""Validation aggregator.

Runs the structural check first, then performance and security
concurrently over the same artifact. The verdict's score is the minimum
of the three; a single weak dimension cannot be averaged away.
"""

import asyncio
import logging

from flowforge.graph.state import (
    CheckResult,
    DimensionScores,
    Specification,
    ValidationVerdict,
    WorkflowArtifact,
)
from flowforge.validation.base import ValidationCheck
from flowforge.validation.performance import PerformanceCheck
from flowforge.validation.security import SecurityCheck
from flowforge.validation.structural import StructuralCheck

logger = logging.getLogger(__name__)


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


class ValidationAggregator:
    def __init__(
        self,
        structural: ValidationCheck | None = None,
        performance: ValidationCheck | None = None,
        security: ValidationCheck | None = None,
    ):
        self.structural = structural or StructuralCheck()
        self.performance = performance or PerformanceCheck()
        self.security = security or SecurityCheck()

    async def validate(
        self,
        artifact: WorkflowArtifact,
        spec: Specification | None = None,
    ) -> ValidationVerdict:
        structural = await self.structural.check(artifact, spec)
        performance, security = await asyncio.gather(
            self.performance.check(artifact, spec),
            self.security.check(artifact, spec),
        )
        results: list[CheckResult] = [structural, performance, security]

        verdict = ValidationVerdict(
            scores=DimensionScores(
                structural=structural.score,
                performance=performance.score,
                security=security.score,
            ),
            issues=[issue for r in results for issue in r.issues],
            warnings=[warning for r in results for warning in r.warnings],
            recommendations=_unique([rec for r in results for rec in r.recommendations]),
            required_credentials=_unique([c for r in results for c in r.required_credentials]),
        )
        logger.info(
            "Validation: score=%d valid=%s (structural=%d performance=%d security=%d)",
            verdict.score,
            verdict.is_valid,
            structural.score,
            performance.score,
            security.score,
        )
        return verdict

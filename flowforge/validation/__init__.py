"""Artifact validation across structural, performance and security dimensions."""

from flowforge.validation.aggregator import ValidationAggregator
from flowforge.validation.base import ValidationCheck
from flowforge.validation.performance import PerformanceCheck
from flowforge.validation.security import SecurityCheck, is_literal_secret
from flowforge.validation.structural import StructuralCheck, artifact_json_schema

__all__ = [
    "PerformanceCheck",
    "SecurityCheck",
    "StructuralCheck",
    "ValidationAggregator",
    "ValidationCheck",
    "artifact_json_schema",
    "is_literal_secret",
]

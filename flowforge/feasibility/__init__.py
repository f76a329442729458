"""Feasibility assessment and the capability catalog."""

from flowforge.feasibility.assessor import FeasibilityAssessor
from flowforge.feasibility.catalog import (
    ACTION_ALTERNATIVES,
    DEFAULT_CATALOG,
    CapabilityCatalog,
    NodeCapability,
)

__all__ = [
    "ACTION_ALTERNATIVES",
    "DEFAULT_CATALOG",
    "CapabilityCatalog",
    "FeasibilityAssessor",
    "NodeCapability",
]

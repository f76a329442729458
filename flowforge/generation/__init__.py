"""Workflow artifact generation."""

from flowforge.generation.generator import (
    ArtifactGenerator,
    ArtifactStrategy,
    DeterministicArtifactBuilder,
    LLMArtifactBuilder,
    workflow_name,
)
from flowforge.generation.structure import (
    check_structure,
    drop_dangling_connections,
    find_structure_violations,
    regenerate_ids,
)
from flowforge.generation.templates import find_template, template_artifact

__all__ = [
    "ArtifactGenerator",
    "ArtifactStrategy",
    "DeterministicArtifactBuilder",
    "LLMArtifactBuilder",
    "check_structure",
    "drop_dangling_connections",
    "find_structure_violations",
    "find_template",
    "regenerate_ids",
    "template_artifact",
    "workflow_name",
]

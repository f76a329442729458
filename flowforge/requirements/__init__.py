"""Requirement understanding: intent, extraction, merging and gap analysis."""

from flowforge.requirements.extractor import (
    KeywordRequirementExtractor,
    LLMRequirementExtractor,
    RequirementExtractor,
    specification_from_payload,
)
from flowforge.requirements.gaps import Gap, GapKind, analyze_gaps, generate_questions
from flowforge.requirements.heuristics import estimate_complexity
from flowforge.requirements.intent import (
    IntentStrategy,
    KeywordIntentStrategy,
    LLMIntentStrategy,
    classify_intent,
)
from flowforge.requirements.merge import merge_specifications

__all__ = [
    "Gap",
    "GapKind",
    "IntentStrategy",
    "KeywordIntentStrategy",
    "KeywordRequirementExtractor",
    "LLMIntentStrategy",
    "LLMRequirementExtractor",
    "RequirementExtractor",
    "analyze_gaps",
    "classify_intent",
    "estimate_complexity",
    "generate_questions",
    "merge_specifications",
    "specification_from_payload",
]

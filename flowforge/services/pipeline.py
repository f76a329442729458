"""Component wiring for the conversation pipeline.

Every collaborator is constructor-injected; ``Pipeline.from_settings``
builds the production set, choosing LLM-backed strategies when an LLM is
configured and keyword strategies otherwise.
"""

import logging
from dataclasses import dataclass, field

from flowforge.engine import EngineClient, HttpWorkflowDeployer, WorkflowDeployer
from flowforge.feasibility import DEFAULT_CATALOG, CapabilityCatalog, FeasibilityAssessor
from flowforge.generation import ArtifactGenerator, LLMArtifactBuilder
from flowforge.recovery import RetryCoordinator
from flowforge.requirements import (
    IntentStrategy,
    KeywordIntentStrategy,
    KeywordRequirementExtractor,
    LLMIntentStrategy,
    LLMRequirementExtractor,
    RequirementExtractor,
)
from flowforge.settings import Settings, get_settings
from flowforge.validation import PerformanceCheck, SecurityCheck, StructuralCheck, ValidationAggregator

logger = logging.getLogger(__name__)


@dataclass
class Pipeline:
    intent_strategy: IntentStrategy = field(default_factory=KeywordIntentStrategy)
    extractor: RequirementExtractor = field(default_factory=KeywordRequirementExtractor)
    assessor: FeasibilityAssessor = field(default_factory=FeasibilityAssessor)
    generator: ArtifactGenerator = field(default_factory=ArtifactGenerator)
    aggregator: ValidationAggregator = field(default_factory=ValidationAggregator)
    coordinator: RetryCoordinator = field(default_factory=RetryCoordinator)
    deployer: WorkflowDeployer | None = None
    context_window_turns: int = 6
    max_clarifying_questions: int = 3

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        catalog: CapabilityCatalog | None = None,
    ) -> "Pipeline":
        settings = settings or get_settings()
        catalog = catalog or DEFAULT_CATALOG

        intent_strategy: IntentStrategy = KeywordIntentStrategy()
        extractor: RequirementExtractor = KeywordRequirementExtractor()
        generator = ArtifactGenerator(catalog=catalog)
        if settings.use_llm:
            from flowforge.llm import CompletionClient

            completion = CompletionClient(settings=settings)
            intent_strategy = LLMIntentStrategy(completion, fallback=intent_strategy)
            extractor = LLMRequirementExtractor(completion, fallback=extractor)
            generator = ArtifactGenerator(catalog=catalog, llm_builder=LLMArtifactBuilder(completion, catalog))
            logger.info("Pipeline using %s/%s", settings.llm_provider, settings.llm_model)
        else:
            logger.info("Pipeline using keyword strategies (no LLM configured)")

        deployer: WorkflowDeployer | None = None
        if settings.engine_url:
            deployer = HttpWorkflowDeployer(
                EngineClient.from_settings(settings),
                activate=settings.engine_activate_on_deploy,
            )

        return cls(
            intent_strategy=intent_strategy,
            extractor=extractor,
            assessor=FeasibilityAssessor(catalog),
            generator=generator,
            aggregator=ValidationAggregator(
                structural=StructuralCheck(),
                performance=PerformanceCheck(catalog),
                security=SecurityCheck(catalog),
            ),
            coordinator=RetryCoordinator(
                max_attempts=settings.max_retry_attempts,
                backoff_seconds=settings.retry_backoff_seconds,
            ),
            deployer=deployer,
            context_window_turns=settings.context_window_turns,
            max_clarifying_questions=settings.max_clarifying_questions,
        )

"""Phase handlers for the conversation state machine.

Each handler works on the turn's session copy and returns the state
updates for the response. Handlers never raise for expected failures:
extraction problems re-ask, infeasibility routes back to refining, and
generation or deployment failures are explained while the phase is held.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from flowforge.exceptions import DeploymentError, ExtractionError
from flowforge.graph.state import (
    ConversationSession,
    ConversationTurnState,
    IntentType,
    Phase,
    RecoveryAction,
    Specification,
    Turn,
)
from flowforge.requirements import analyze_gaps, generate_questions, merge_specifications

if TYPE_CHECKING:
    from flowforge.services.pipeline import Pipeline

logger = logging.getLogger(__name__)

DEPLOYMENT_OPERATION = "deployment"

WELCOME_MESSAGE = (
    "Hi! I'm here to help you create a workflow automation. "
    "Tell me what you'd like to automate: what should start it, and what should happen?"
)
OPEN_QUESTION = (
    "I'd love to help you build a workflow! Could you describe what you'd like to automate?"
)
STARTER_QUESTIONS = [
    "What should start the workflow: a schedule, a webhook, a new email, or something else?",
    "What should happen when it runs?",
]
RESET_MESSAGE = "Starting fresh! What workflow would you like to build?"
CONFIRM_PROMPT = "Shall I create this workflow? Reply 'yes' to continue or tell me what to change."

_CREDENTIALS_QUESTION = re.compile(r"\b(credential|credentials|account|api key|connect|auth)", re.I)
_NODES_QUESTION = re.compile(r"\b(node|nodes|step|steps|how does it work|what does it do|show)\b", re.I)


def _response(
    session: ConversationSession,
    text: str,
    *,
    questions: Sequence[str] = (),
    issues: Sequence[str] = (),
    warnings: Sequence[str] = (),
    suggestions: Sequence[str] = (),
    run_generation: bool = False,
) -> dict[str, Any]:
    return {
        "session": session,
        "response_text": text,
        "clarifying_questions": list(questions),
        "issues": list(issues),
        "warnings": list(warnings),
        "suggestions": list(suggestions),
        "run_generation": run_generation,
    }


def _confirmation_text(spec: Specification) -> str:
    return f"Here's the workflow I've put together:\n{spec.summary()}\n\n{CONFIRM_PROMPT}"


class ConversationNodes:
    """Phase handlers bound to one pipeline."""

    def __init__(self, pipeline: Pipeline):
        from flowforge.graph.workflows.generation import compile_generation_graph

        self.pipeline = pipeline
        self._generation_graph = compile_generation_graph(
            pipeline.generator,
            pipeline.aggregator,
            pipeline.coordinator,
        )

    # ------------------------------------------------------------------
    # Intent
    # ------------------------------------------------------------------

    async def classify_intent(self, state: ConversationTurnState) -> dict[str, Any]:
        session = state["session"]
        intent = await self.pipeline.intent_strategy.classify(
            state["utterance"],
            session.phase,
            state.get("prior_turns", []),
        )
        logger.debug("Intent %s (%.2f) in %s", intent.intent.value, intent.confidence, session.phase.value)
        return {"intent": intent}

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def handle_reset(self, state: ConversationTurnState) -> dict[str, Any]:
        session = state["session"]
        session.reset()
        return _response(session, RESET_MESSAGE)

    async def handle_gathering(self, state: ConversationTurnState) -> dict[str, Any]:
        return await self._gather(state["session"], state["utterance"], state.get("prior_turns", []))

    async def handle_refining(self, state: ConversationTurnState) -> dict[str, Any]:
        session = state["session"]
        session.phase = Phase.REFINING
        new = await self._extract(state["utterance"], state.get("prior_turns", []))
        if new is not None:
            session.specification = merge_specifications(session.specification, new)
        return self._after_merge(session, reask=new is None)

    async def handle_confirming(self, state: ConversationTurnState) -> dict[str, Any]:
        session = state["session"]
        spec = session.specification
        intent = state["intent"].intent

        if spec is None:
            session.phase = Phase.GATHERING
            return _response(session, OPEN_QUESTION, questions=STARTER_QUESTIONS)

        if intent == IntentType.CONFIRMATION:
            report = self.pipeline.assessor.assess(spec)
            session.feasibility = report
            spec.feasible = report.feasible
            if not report.feasible:
                session.phase = Phase.REFINING
                return _response(
                    session,
                    "I can't build this workflow as described yet:\n"
                    + "\n".join(f"- {issue}" for issue in report.blocking_issues),
                    issues=report.blocking_issues,
                    warnings=report.warnings,
                    suggestions=report.recommendations,
                )
            spec.frozen = True
            session.phase = Phase.GENERATING
            return _response(
                session,
                "Great, building your workflow now.",
                warnings=report.warnings,
                suggestions=report.recommendations,
                run_generation=True,
            )

        if intent in (IntentType.CLARIFICATION, IntentType.NEW_REQUEST):
            return await self.handle_refining(state)

        return _response(session, _confirmation_text(spec))

    async def handle_generating(self, state: ConversationTurnState) -> dict[str, Any]:
        session = state["session"]
        spec = session.specification
        if spec is None:
            session.phase = Phase.GATHERING
            return _response(session, OPEN_QUESTION, questions=STARTER_QUESTIONS)

        from flowforge.graph.workflows.generation import run_generation

        outcome = await run_generation(spec, self._generation_graph, self.pipeline.coordinator)
        session.retry_context = outcome.error_context
        earlier_warnings = state.get("warnings", []) if state.get("run_generation") else []

        if not outcome.succeeded or outcome.artifact is None or outcome.verdict is None:
            decision = outcome.decision
            issues = [i.message for i in outcome.verdict.blocking_issues()] if outcome.verdict else []
            return _response(
                session,
                decision.explanation if decision and decision.explanation else "I couldn't build the workflow.",
                issues=issues,
                warnings=earlier_warnings,
                suggestions=decision.suggestions if decision else [],
            )

        artifact, verdict = outcome.artifact, outcome.verdict
        session.artifact = artifact
        session.verdict = verdict
        session.deployed_artifact_id = None
        session.phase = Phase.DEPLOYING
        suggestions = list(verdict.recommendations)
        if verdict.required_credentials and not any("credentials" in s for s in suggestions):
            suggestions.append(f"Set up credentials: {', '.join(verdict.required_credentials)}")
        text = (
            f"Your workflow '{artifact.name}' is ready with {len(artifact.nodes)} nodes "
            f"(validation score {verdict.score}/100). Say 'deploy' when you'd like to activate it."
        )
        return _response(
            session,
            text,
            issues=[issue.message for issue in verdict.issues],
            warnings=[*earlier_warnings, *(w.message for w in verdict.warnings)],
            suggestions=suggestions,
        )

    async def handle_deploying(self, state: ConversationTurnState) -> dict[str, Any]:
        session = state["session"]
        intent = state["intent"].intent
        artifact, verdict = session.artifact, session.verdict

        if intent not in (IntentType.DEPLOYMENT, IntentType.CONFIRMATION):
            return self._answer_about_artifact(session, state["utterance"])

        if artifact is None or verdict is None or not verdict.is_valid:
            blocking = [i.message for i in verdict.blocking_issues()] if verdict else []
            return _response(session, "This workflow can't be deployed until its blocking issues are fixed.", issues=blocking)

        deployer = self.pipeline.deployer
        if deployer is None:
            return _response(
                session,
                "Deployment isn't configured for this service. You can export the workflow and import it yourself.",
                suggestions=["Set ENGINE_URL and ENGINE_API_KEY to enable deployment"],
            )

        coordinator = self.pipeline.coordinator
        context = coordinator.start(DEPLOYMENT_OPERATION, Phase.DEPLOYING)
        session.retry_context = context
        while True:
            try:
                result = await deployer.deploy(artifact, workflow_id=session.deployed_artifact_id)
                break
            except DeploymentError as e:
                if e.artifact_id:
                    # Created but not activated; later attempts only activate
                    session.deployed_artifact_id = e.artifact_id
                decision = coordinator.record_failure(context, e)
                if decision.action != RecoveryAction.RETRY_DELAYED:
                    if decision.should_retry:
                        decision = coordinator.explain(context)
                    return _response(
                        session,
                        decision.explanation or f"Deployment failed: {e}",
                        suggestions=decision.suggestions,
                    )
                await asyncio.sleep(decision.delay_seconds)

        coordinator.record_success(context)
        session.deployed_artifact_id = result.artifact_id
        session.phase = Phase.COMPLETED
        state_text = "deployed and active" if result.activated else "deployed"
        return _response(
            session,
            f"Your workflow is {state_text} (id {result.artifact_id}).",
            suggestions=["Describe another workflow to start a new one"],
        )

    async def handle_completed(self, state: ConversationTurnState) -> dict[str, Any]:
        session = state["session"]
        session.reset()
        return await self._gather(session, state["utterance"], [])

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _extract(self, utterance: str, recent_turns: Sequence[Turn]) -> Specification | None:
        try:
            return await self.pipeline.extractor.extract(utterance, recent_turns)
        except ExtractionError as e:
            logger.warning("Extraction failed (%s): %s", e.correlation_id, e)
            return None

    async def _gather(
        self,
        session: ConversationSession,
        utterance: str,
        recent_turns: Sequence[Turn],
    ) -> dict[str, Any]:
        session.phase = Phase.GATHERING
        new = await self._extract(utterance, recent_turns)
        if new is None:
            return _response(session, OPEN_QUESTION, questions=STARTER_QUESTIONS)
        session.specification = merge_specifications(session.specification, new)
        return self._after_merge(session, reask=False)

    def _after_merge(self, session: ConversationSession, *, reask: bool) -> dict[str, Any]:
        spec = session.specification
        if spec is None:
            session.phase = Phase.GATHERING
            return _response(session, OPEN_QUESTION, questions=STARTER_QUESTIONS)

        gaps = analyze_gaps(spec)
        if not gaps:
            session.phase = Phase.CONFIRMING
            return _response(session, _confirmation_text(spec), warnings=spec.issues)

        session.phase = Phase.REFINING
        questions = generate_questions(spec, gaps, limit=self.pipeline.max_clarifying_questions)
        if reask:
            text = "Sorry, I didn't catch that. A few details are still missing:"
        else:
            text = "Got it! A few more details and your workflow will be ready:"
        return _response(session, text, questions=questions, warnings=spec.issues)

    def _answer_about_artifact(self, session: ConversationSession, utterance: str) -> dict[str, Any]:
        artifact, verdict = session.artifact, session.verdict
        if artifact is None:
            session.phase = Phase.GENERATING
            return _response(session, "The workflow hasn't been built yet. Say anything to try again.")

        credentials = verdict.required_credentials if verdict else []
        if _CREDENTIALS_QUESTION.search(utterance):
            if credentials:
                text = f"This workflow needs these credentials set up: {', '.join(credentials)}."
            else:
                text = "This workflow doesn't need any credentials."
        elif _NODES_QUESTION.search(utterance):
            steps = "\n".join(f"{i}. {node.name} ({node.node_type})" for i, node in enumerate(artifact.nodes, 1))
            text = f"The workflow runs these steps in order:\n{steps}"
        else:
            text = f"Your workflow '{artifact.name}' is ready. Say 'deploy' to activate it, or 'start over' to build another."
        return _response(
            session,
            text,
            suggestions=["Deploy the workflow", "Ask which credentials it needs", "Start over"],
        )

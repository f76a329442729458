"""Conversation service: the public entry points of the pipeline.

Owns session persistence and per-session serialisation. Each turn runs
the conversation graph over a working copy of the session, which is
saved only once the turn has produced a response.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from flowforge.dal.sessions import SessionStore
from flowforge.exceptions import SessionNotFoundError
from flowforge.graph.nodes.conversation import WELCOME_MESSAGE
from flowforge.graph.state import (
    ConversationResponse,
    ConversationSession,
    ConversationTurnState,
    IntentType,
    Phase,
    Progress,
    TurnRole,
)
from flowforge.graph.workflows.conversation import compile_conversation_graph
from flowforge.services.pipeline import Pipeline

logger = logging.getLogger(__name__)

APOLOGY = "Sorry, something went wrong while handling that. Could you try again?"

PHASE_SUGGESTIONS: dict[Phase, list[str]] = {
    Phase.GATHERING: [
        "Describe what should start the workflow",
        "Mention the apps it should connect to",
    ],
    Phase.REFINING: ["Answer the questions above", "Say 'start over' to begin again"],
    Phase.CONFIRMING: ["Reply 'yes' to build it", "Tell me what to change"],
    Phase.GENERATING: ["Send any message to try building it again", "Say 'start over' to begin again"],
    Phase.DEPLOYING: ["Say 'deploy' to activate it", "Ask which credentials it needs"],
    Phase.COMPLETED: ["Describe another workflow to start a new one"],
}

_GENERATION_PROGRESS: dict[Phase, int] = {
    Phase.GATHERING: 0,
    Phase.REFINING: 40,
    Phase.CONFIRMING: 80,
    Phase.GENERATING: 80,
    Phase.DEPLOYING: 100,
    Phase.COMPLETED: 100,
}


def compute_progress(session: ConversationSession, open_questions: int) -> Progress:
    spec = session.specification
    if spec is None:
        return Progress(generation_ready=_GENERATION_PROGRESS[session.phase])

    requirements = 40
    requirements += 20 if spec.trigger_resolved else 0
    requirements += 20 if spec.actions else 0
    requirements += 20 if spec.integrations else 0
    if spec.feasible is None:
        validation = 0
    else:
        validation = 100 if spec.feasible else 50
    return Progress(
        requirements_gathered=requirements,
        specification_complete=max(0, 100 - 25 * open_questions),
        validation_passed=validation,
        generation_ready=_GENERATION_PROGRESS[session.phase],
    )


class ConversationService:
    """Runs conversations through the phase state machine."""

    def __init__(self, pipeline: Pipeline, store: SessionStore):
        self.pipeline = pipeline
        self.store = store
        self._graph = compile_conversation_graph(pipeline)
        # session id -> (lock, number of turns holding or waiting on it)
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}

    @asynccontextmanager
    async def _lock(self, session_id: str) -> AsyncIterator[None]:
        """Serialise turns on one session; the lock is dropped once nobody waits on it."""
        lock, users = self._locks.get(session_id) or (asyncio.Lock(), 0)
        self._locks[session_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[session_id]
            if users <= 1:
                del self._locks[session_id]
            else:
                self._locks[session_id] = (lock, users - 1)

    async def start_conversation(
        self,
        user_id: str,
        initial_message: str | None = None,
    ) -> ConversationResponse:
        """Create a session and greet the user, or answer their first message."""
        session = ConversationSession(user_id=user_id)
        await self.store.save(session)
        logger.info("Started conversation %s for %s", session.id, user_id)
        if initial_message and initial_message.strip():
            return await self.process_message(session.id, initial_message)

        async with self._lock(session.id):
            session.add_turn(TurnRole.ASSISTANT, WELCOME_MESSAGE)
            await self.store.save(session)
        return self._build_response(
            session,
            WELCOME_MESSAGE,
            {"suggestions": PHASE_SUGGESTIONS[Phase.GATHERING]},
        )

    async def process_message(self, session_id: str, utterance: str) -> ConversationResponse:
        """Handle one user turn.

        Raises:
            SessionNotFoundError: If no session exists for ``session_id``
        """
        async with self._lock(session_id):
            stored = await self.store.load(session_id)
            if stored is None:
                raise SessionNotFoundError(session_id)

            working = stored.model_copy(deep=True)
            prior_turns = working.recent_turns(self.pipeline.context_window_turns)
            state: ConversationTurnState = {
                "session": working,
                "utterance": utterance,
                "prior_turns": prior_turns,
            }
            try:
                result = await self._graph.ainvoke(state)  # type: ignore[arg-type]
            except Exception:
                logger.exception("Turn failed for session %s", session_id)
                session = stored
                session.add_turn(TurnRole.USER, utterance)
                session.add_turn(TurnRole.ASSISTANT, APOLOGY)
                session.updated_at = datetime.now(UTC)
                await self.store.save(session)
                return self._build_response(session, APOLOGY, {})

            session = result["session"]
            response_text = result.get("response_text", "")
            session.add_turn(TurnRole.USER, utterance)
            session.add_turn(TurnRole.ASSISTANT, response_text)
            intent = result.get("intent")
            if intent is not None and intent.intent == IntentType.RESET:
                session.title = None
            session.updated_at = datetime.now(UTC)
            await self.store.save(session)

        logger.info(
            "Session %s: %s -> %s",
            session_id,
            stored.phase.value,
            session.phase.value,
        )
        return self._build_response(session, response_text, result)

    async def reset_conversation(self, session_id: str) -> ConversationSession:
        """Return the session to an empty gathering state.

        Raises:
            SessionNotFoundError: If no session exists for ``session_id``
        """
        async with self._lock(session_id):
            session = await self.store.load(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            session.reset()
            session.updated_at = datetime.now(UTC)
            await self.store.save(session)
        return session

    async def get_session(self, session_id: str) -> ConversationSession:
        session = await self.store.load(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def _build_response(
        self,
        session: ConversationSession,
        response_text: str,
        result: dict,
    ) -> ConversationResponse:
        questions = list(result.get("clarifying_questions") or [])
        suggestions = list(result.get("suggestions") or []) or PHASE_SUGGESTIONS[session.phase]
        show_artifact = session.phase in (Phase.DEPLOYING, Phase.COMPLETED)
        return ConversationResponse(
            session_id=session.id,
            response_text=response_text,
            phase=session.phase,
            clarifying_questions=questions,
            artifact=session.artifact if show_artifact else None,
            verdict=session.verdict if show_artifact else None,
            issues=list(result.get("issues") or []),
            warnings=list(result.get("warnings") or []),
            suggestions=suggestions,
            progress=compute_progress(session, len(questions)),
            deployed_artifact_id=session.deployed_artifact_id,
        )

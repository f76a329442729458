"""Intent classification for single user utterances.

Two strategies share the ``IntentStrategy`` protocol: a deterministic
keyword matcher and an LLM classifier that falls back to the keyword
matcher whenever the model cannot be used.
"""

import logging
import re
from collections.abc import Sequence
from typing import Protocol

from pydantic import ValidationError

from flowforge.exceptions import LLMError
from flowforge.graph.state import IntentResult, IntentType, Phase, Turn
from flowforge.llm.completion import CompletionClient

logger = logging.getLogger(__name__)

_RESET = re.compile(
    r"\b(start over|start again|start from scratch|from scratch|reset|new conversation|begin again|forget (?:it|everything))\b",
    re.I,
)
_DEPLOY = re.compile(r"\b(deploy|activate|go live|publish|launch|turn it on|switch it on)\b", re.I)
_CONFIRM = re.compile(
    r"^\s*(y|yes|yep|yeah|yup|sure|ok|okay|correct|confirm(?:ed)?|proceed|approved?|perfect)\b"
    r"|\b(yes|correct|proceed|go ahead|looks (?:good|great|right)|sounds (?:good|great)"
    r"|do it|create it|build it|make it|that's right|that is right|ship it|confirm(?:ed)?)\b",
    re.I,
)
_CHANGE = re.compile(r"\b(no|not|but|change|instead|actually|wait|wrong|rather|except|also|add)\b", re.I)
_NEW_REQUEST = re.compile(
    r"\b(create|build|make|automate|automation|workflow|whenever|when|every|each|send|notify|post"
    r"|alert|sync|remind|daily|hourly|weekly)\b",
    re.I,
)
_QUESTION = re.compile(r"\?\s*$|^\s*(how|what|which|why|can|could|does|do|is|are)\b", re.I)


class IntentStrategy(Protocol):
    async def classify(
        self,
        utterance: str,
        phase: Phase,
        recent_turns: Sequence[Turn] = (),
    ) -> IntentResult: ...


class KeywordIntentStrategy:
    """Deterministic intent matcher.

    Checks run in priority order: reset, deployment, confirmation (unless
    the utterance also asks for a change), new request, question, then a
    phase-dependent default.
    """

    async def classify(
        self,
        utterance: str,
        phase: Phase,
        recent_turns: Sequence[Turn] = (),
    ) -> IntentResult:
        return classify_keywords(utterance, phase)


def classify_keywords(utterance: str, phase: Phase) -> IntentResult:
    text = utterance.strip()
    if not text:
        return IntentResult(intent=IntentType.OTHER, confidence=0.2)

    if _RESET.search(text):
        return IntentResult(intent=IntentType.RESET, confidence=0.95)
    if _DEPLOY.search(text) and not _QUESTION.search(text):
        return IntentResult(intent=IntentType.DEPLOYMENT, confidence=0.9)

    if _CONFIRM.search(text):
        if _CHANGE.search(text):
            return IntentResult(intent=IntentType.CLARIFICATION, confidence=0.7)
        return IntentResult(intent=IntentType.CONFIRMATION, confidence=0.9)

    refining = phase in (Phase.REFINING, Phase.CONFIRMING)
    if _NEW_REQUEST.search(text):
        if refining:
            return IntentResult(intent=IntentType.CLARIFICATION, confidence=0.7)
        return IntentResult(intent=IntentType.NEW_REQUEST, confidence=0.8)

    if _QUESTION.search(text):
        return IntentResult(intent=IntentType.OTHER, confidence=0.6)

    if phase == Phase.GATHERING:
        return IntentResult(intent=IntentType.NEW_REQUEST, confidence=0.5)
    if refining:
        return IntentResult(intent=IntentType.CLARIFICATION, confidence=0.5)
    return IntentResult(intent=IntentType.OTHER, confidence=0.4)


INTENT_SYSTEM_PROMPT = (
    "You classify a single message in a conversation where a user is describing a "
    "workflow automation they want built. Reply with JSON only: "
    '{"intent": one of "new_request", "clarification", "confirmation", "deployment", '
    '"reset", "other"; "confidence": number between 0 and 1}.\n'
    "- new_request: describes something new to automate\n"
    "- clarification: answers a question or changes details of the current workflow\n"
    "- confirmation: agrees that the summarised workflow should be created\n"
    "- deployment: asks to deploy or activate the generated workflow\n"
    "- reset: asks to start over\n"
    "- other: anything else"
)


class LLMIntentStrategy:
    """Intent classification through a structured LLM call."""

    def __init__(
        self,
        completion: CompletionClient,
        fallback: IntentStrategy | None = None,
    ):
        self._completion = completion
        self._fallback = fallback or KeywordIntentStrategy()

    async def classify(
        self,
        utterance: str,
        phase: Phase,
        recent_turns: Sequence[Turn] = (),
    ) -> IntentResult:
        context = "\n".join(f"{turn.role.value}: {turn.content}" for turn in recent_turns)
        prompt = (
            f"Current phase: {phase.value}\n"
            f"Recent conversation:\n{context or '(none)'}\n\n"
            f"Message to classify:\n{utterance}"
        )
        try:
            data = await self._completion.complete_json(
                prompt,
                system_prompt=INTENT_SYSTEM_PROMPT,
                temperature=0.0,
                max_tokens=60,
            )
            return IntentResult(
                intent=IntentType(str(data.get("intent", "")).lower()),
                confidence=float(data.get("confidence", 0.5)),
            )
        except (LLMError, ValidationError, ValueError, TypeError) as e:
            logger.info("LLM intent classification unavailable, using keywords: %s", e)
            return await self._fallback.classify(utterance, phase, recent_turns)


async def classify_intent(
    utterance: str,
    phase: Phase,
    recent_turns: Sequence[Turn] = (),
    strategy: IntentStrategy | None = None,
) -> IntentResult:
    """Classify one utterance (keyword strategy unless another is given)."""
    strategy = strategy or KeywordIntentStrategy()
    return await strategy.classify(utterance, phase, recent_turns)

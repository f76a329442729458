"""Requirement extraction: utterance + recent turns -> partial Specification.

Extractors return None when nothing workflow-related can be read from
the input. Output of the wrong shape raises ``ExtractionError`` here at
the boundary rather than leaking into the merge logic.
"""

import json
import logging
from collections.abc import Sequence
from typing import Any, Protocol

from pydantic import ValidationError

from flowforge.exceptions import ExtractionError, LLMError, LLMResponseError
from flowforge.graph.state import (
    Action,
    ScheduleTrigger,
    Specification,
    Turn,
    TurnRole,
    UnknownTrigger,
    build_trigger,
)
from flowforge.llm.completion import CompletionClient
from flowforge.requirements.heuristics import (
    detect_actions,
    detect_integrations,
    detect_trigger,
    estimate_complexity,
    normalize_schedule_parameters,
)

logger = logging.getLogger(__name__)


class RequirementExtractor(Protocol):
    async def extract(
        self,
        utterance: str,
        recent_turns: Sequence[Turn] = (),
    ) -> Specification | None: ...


def _user_context(utterance: str, recent_turns: Sequence[Turn]) -> str:
    earlier = [turn.content for turn in recent_turns if turn.role == TurnRole.USER]
    return "\n".join([*earlier, utterance])


class KeywordRequirementExtractor:
    """Offline extractor built on keyword heuristics.

    Reads the current utterance together with the user's recent turns so
    that a short answer ("at 8am") is interpreted against the request it
    refines.
    """

    async def extract(
        self,
        utterance: str,
        recent_turns: Sequence[Turn] = (),
    ) -> Specification | None:
        text = _user_context(utterance, recent_turns)
        trigger = detect_trigger(text)
        actions = detect_actions(text, trigger)
        integrations = detect_integrations(text, trigger, actions)
        spec = Specification(
            trigger=trigger,
            actions=actions,
            integrations=integrations,
            complexity=estimate_complexity(len(actions), len(integrations)),
        )
        if spec.is_empty:
            return None
        return spec


EXTRACTION_SYSTEM_PROMPT = """You extract workflow automation requirements from a conversation.
Reply with one JSON object and nothing else:
{
  "trigger": {"type": "schedule|webhook|manual|email|<service>_event|unknown",
              "description": "...", "parameters": {...}},
  "actions": [{"type": "slack|email_send|http_request|google_sheets|...",
               "description": "...", "parameters": {...}}],
  "integrations": ["slack", "..."],
  "issues": ["anything unclear or contradictory"]
}
Use "unknown" for the trigger type when the user has not said what starts the workflow.
Only include parameters the user actually stated (e.g. a time as "HH:MM", an interval as
{"unit": "minutes|hours|days", "value": <number>}, a channel, a URL).
If the message contains no workflow requirements at all, reply with {}."""


def specification_from_payload(data: Any) -> Specification | None:
    """Validate a raw extraction payload into a Specification.

    Returns None for an empty payload; raises ExtractionError for
    anything that does not have the expected shape. Any ``feasible``
    value in the payload is ignored.
    """
    if not isinstance(data, dict):
        raise ExtractionError("Extraction payload must be a JSON object", raw_output=data)
    if not data:
        return None

    trigger_raw = data.get("trigger")
    if trigger_raw is None:
        trigger = UnknownTrigger()
    elif isinstance(trigger_raw, str):
        trigger = build_trigger(trigger_raw)
    elif isinstance(trigger_raw, dict):
        kind = trigger_raw.get("type")
        description = trigger_raw.get("description")
        parameters = trigger_raw.get("parameters") or {}
        if not isinstance(kind, str | None) or not isinstance(description, str | None):
            raise ExtractionError("Trigger type and description must be strings", raw_output=data)
        if not isinstance(parameters, dict):
            raise ExtractionError("Trigger parameters must be an object", raw_output=data)
        trigger = build_trigger(kind, description=description or "", parameters=parameters)
        if isinstance(trigger, ScheduleTrigger):
            try:
                trigger.parameters = normalize_schedule_parameters(trigger.parameters)
            except ValueError as e:
                raise ExtractionError(f"Unreadable schedule: {e}", raw_output=data) from e
    else:
        raise ExtractionError("Trigger must be an object or a string", raw_output=data)

    actions_raw = data.get("actions") or []
    integrations_raw = data.get("integrations") or []
    issues_raw = data.get("issues") or []
    if not isinstance(actions_raw, list) or not isinstance(integrations_raw, list):
        raise ExtractionError("Actions and integrations must be lists", raw_output=data)
    if not isinstance(issues_raw, list):
        raise ExtractionError("Issues must be a list", raw_output=data)

    try:
        actions = [
            Action(type=item) if isinstance(item, str) else Action.model_validate(item)
            for item in actions_raw
        ]
        spec = Specification(
            trigger=trigger,
            actions=[action for action in actions if action.type],
            integrations=[str(item) for item in integrations_raw],
            issues=[str(item) for item in issues_raw],
        )
    except ValidationError as e:
        raise ExtractionError(f"Malformed extraction payload: {e}", raw_output=data) from e

    if spec.is_empty:
        return None
    spec.complexity = estimate_complexity(len(spec.actions), len(spec.integrations), len(spec.issues))
    return spec


class LLMRequirementExtractor:
    """Extraction through a structured LLM call."""

    def __init__(
        self,
        completion: CompletionClient,
        fallback: RequirementExtractor | None = None,
    ):
        self._completion = completion
        self._fallback = fallback

    async def extract(
        self,
        utterance: str,
        recent_turns: Sequence[Turn] = (),
    ) -> Specification | None:
        history = "\n".join(f"{turn.role.value}: {turn.content}" for turn in recent_turns)
        prompt = (
            f"Conversation so far:\n{history or '(none)'}\n\n"
            f"Latest user message:\n{utterance}\n\n"
            "Extract the complete set of requirements stated so far."
        )
        try:
            data = await self._completion.complete_json(
                prompt,
                system_prompt=EXTRACTION_SYSTEM_PROMPT,
                temperature=0.0,
            )
        except LLMResponseError as e:
            raise ExtractionError(
                "Model returned non-JSON extraction output", raw_output=e.raw_output
            ) from e
        except LLMError as e:
            if self._fallback is None:
                raise
            logger.info("LLM extraction unavailable, using keywords: %s", e)
            return await self._fallback.extract(utterance, recent_turns)
        logger.debug("Extraction payload: %s", json.dumps(data)[:500])
        return specification_from_payload(data)

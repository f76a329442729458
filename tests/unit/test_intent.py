"""Tests for intent classification."""

import pytest

from flowforge.exceptions import LLMError, LLMResponseError
from flowforge.graph.state import IntentType, Phase, Turn, TurnRole
from flowforge.requirements import KeywordIntentStrategy, LLMIntentStrategy, classify_intent
from tests.fakes import FakeCompletion


class TestKeywordIntentStrategy:
    """Tests for the deterministic keyword matcher."""

    @pytest.mark.parametrize(
        ("utterance", "phase", "intent"),
        [
            ("Every morning at 9am send a Slack message to #general", Phase.GATHERING, IntentType.NEW_REQUEST),
            ("yes create it", Phase.CONFIRMING, IntentType.CONFIRMATION),
            ("Looks good", Phase.CONFIRMING, IntentType.CONFIRMATION),
            ("yes but use #random instead", Phase.CONFIRMING, IntentType.CLARIFICATION),
            ("Let's start over", Phase.REFINING, IntentType.RESET),
            ("deploy it", Phase.DEPLOYING, IntentType.DEPLOYMENT),
            ("how do I deploy?", Phase.DEPLOYING, IntentType.OTHER),
            ("post to #random", Phase.REFINING, IntentType.CLARIFICATION),
            ("#random please", Phase.REFINING, IntentType.CLARIFICATION),
            ("hello", Phase.GATHERING, IntentType.NEW_REQUEST),
            ("hello", Phase.DEPLOYING, IntentType.OTHER),
        ],
    )
    async def test_classification(self, utterance, phase, intent):
        result = await KeywordIntentStrategy().classify(utterance, phase)
        assert result.intent == intent

    async def test_reset_has_highest_confidence(self):
        result = await classify_intent("reset and deploy", Phase.DEPLOYING)
        assert result.intent == IntentType.RESET
        assert result.confidence == 0.95

    async def test_empty_utterance(self):
        result = await classify_intent("   ", Phase.GATHERING)
        assert result.intent == IntentType.OTHER
        assert result.confidence == 0.2

    async def test_new_request_confidence(self):
        result = await classify_intent("Every hour sync my sheet", Phase.GATHERING)
        assert result.confidence == 0.8


class TestLLMIntentStrategy:
    """Tests for LLM classification and its keyword fallback."""

    async def test_uses_model_answer(self):
        completion = FakeCompletion({"intent": "Deployment", "confidence": 0.85})
        strategy = LLMIntentStrategy(completion)

        result = await strategy.classify("ship the thing", Phase.DEPLOYING)

        assert result.intent == IntentType.DEPLOYMENT
        assert result.confidence == 0.85

    async def test_prompt_carries_phase_and_context(self):
        completion = FakeCompletion({"intent": "clarification", "confidence": 0.7})
        turns = [Turn(role=TurnRole.ASSISTANT, content="Which Slack channel?")]

        await LLMIntentStrategy(completion).classify("#general", Phase.REFINING, turns)

        assert "Current phase: refining" in completion.prompts[0]
        assert "assistant: Which Slack channel?" in completion.prompts[0]

    @pytest.mark.parametrize(
        "response",
        [
            LLMResponseError("not json", raw_output="hmm"),
            LLMError("provider down"),
            {"intent": "dance", "confidence": 0.9},
            {"intent": "reset", "confidence": 7},
        ],
    )
    async def test_falls_back_to_keywords(self, response):
        strategy = LLMIntentStrategy(FakeCompletion(response))

        result = await strategy.classify("yes create it", Phase.CONFIRMING)

        assert result.intent == IntentType.CONFIRMATION
        assert result.confidence == 0.9

"""Resilient chat model wrapper with retry, circuit breaking and failover."""

import asyncio
import logging
import time
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_core.outputs import ChatResult
from pydantic import Field, PrivateAttr

from flowforge.llm.circuit_breaker import MAX_RETRIES, RETRY_DELAYS, get_circuit_breaker

logger = logging.getLogger(__name__)


class ResilientLLM(BaseChatModel):
    """BaseChatModel wrapper that retries the primary provider and then fails over.

    Each provider has a shared circuit breaker; an open circuit skips the
    remaining retries and goes straight to the fallback (if any).
    """

    primary_llm: BaseChatModel
    provider: str
    fallback_llm: BaseChatModel | None = None
    fallback_provider: str | None = None
    max_retries: int = MAX_RETRIES
    retry_delays: list[float] = Field(default_factory=lambda: list(RETRY_DELAYS))
    _circuit_breaker: Any = PrivateAttr()

    def model_post_init(self, __context: Any) -> None:
        self._circuit_breaker = get_circuit_breaker(self.provider)

    @property
    def _llm_type(self) -> str:
        return "resilient"

    def _delay_for(self, attempt: int) -> float:
        if not self.retry_delays:
            return 0
        return self.retry_delays[min(attempt, len(self.retry_delays) - 1)]

    def _generate(
        self,
        messages: list[BaseMessage],
        stop: list[str] | None = None,
        run_manager: Any = None,
        **kwargs: Any,
    ) -> ChatResult:
        """Sync generate with retry and failover. Use ainvoke() from async code."""
        last_error: Exception | None = None
        for attempt in range(self.max_retries):
            if not self._circuit_breaker.can_attempt():
                logger.info("Circuit breaker open for %s, skipping attempt", self.provider)
                break
            try:
                result = self.primary_llm._generate(
                    messages, stop=stop, run_manager=run_manager, **kwargs
                )
                self._circuit_breaker.record_success()
                return result
            except Exception as e:
                last_error = e
                self._circuit_breaker.record_failure()
                if attempt < self.max_retries - 1:
                    delay = self._delay_for(attempt)
                    logger.warning(
                        "LLM call failed (attempt %d/%d): %s. Retrying in %ss...",
                        attempt + 1,
                        self.max_retries,
                        e,
                        delay,
                    )
                    time.sleep(delay)
                else:
                    logger.error("All retries exhausted for %s: %s", self.provider, e)

        if self.fallback_llm is not None:
            fallback_cb = get_circuit_breaker(self.fallback_provider or "fallback")
            if fallback_cb.can_attempt():
                logger.info("Attempting fallback provider: %s", self.fallback_provider)
                try:
                    result = self.fallback_llm._generate(
                        messages, stop=stop, run_manager=run_manager, **kwargs
                    )
                    fallback_cb.record_success()
                    return result
                except Exception as e:
                    fallback_cb.record_failure()
                    logger.error("Fallback provider also failed: %s", e)
                    if last_error:
                        raise last_error from e
                    raise
        if last_error:
            raise last_error
        raise RuntimeError(f"LLM provider {self.provider} is unavailable (circuit open)")

    async def _agenerate(
        self,
        messages: list[BaseMessage],
        stop: list[str] | None = None,
        run_manager: Any = None,
        **kwargs: Any,
    ) -> ChatResult:
        """Async generate with retry and failover."""
        last_error: Exception | None = None
        for attempt in range(self.max_retries):
            if not self._circuit_breaker.can_attempt():
                logger.info("Circuit breaker open for %s, skipping attempt", self.provider)
                break
            try:
                result = await self.primary_llm._agenerate(
                    messages, stop=stop, run_manager=run_manager, **kwargs
                )
                self._circuit_breaker.record_success()
                return result
            except Exception as e:
                last_error = e
                self._circuit_breaker.record_failure()
                if attempt < self.max_retries - 1:
                    delay = self._delay_for(attempt)
                    logger.warning(
                        "LLM call failed (attempt %d/%d): %s. Retrying in %ss...",
                        attempt + 1,
                        self.max_retries,
                        e,
                        delay,
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error("All retries exhausted for %s: %s", self.provider, e)

        if self.fallback_llm is not None:
            fallback_cb = get_circuit_breaker(self.fallback_provider or "fallback")
            if fallback_cb.can_attempt():
                logger.info("Attempting fallback provider: %s", self.fallback_provider)
                try:
                    result = await self.fallback_llm._agenerate(
                        messages, stop=stop, run_manager=run_manager, **kwargs
                    )
                    fallback_cb.record_success()
                    return result
                except Exception as e:
                    fallback_cb.record_failure()
                    logger.error("Fallback provider also failed: %s", e)
                    if last_error:
                        raise last_error from e
                    raise
        if last_error:
            raise last_error
        raise RuntimeError(f"LLM provider {self.provider} is unavailable (circuit open)")

"""Text completion surface used by the conversation pipeline.

Wraps a LangChain chat model behind a narrow ``complete`` call with a
hard timeout, translating provider failures into ``LLMError``.
"""

import asyncio
import logging
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from flowforge.exceptions import LLMError, LLMResponseError
from flowforge.llm.parsing import extract_json
from flowforge.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class CompletionClient:
    """Prompt-in, text-out access to the configured LLM.

    A chat model can be injected (tests, custom providers); otherwise one is
    built through :func:`flowforge.llm.get_llm` per call so that ``model``,
    ``temperature`` and ``max_tokens`` overrides are honoured.
    """

    def __init__(
        self,
        llm: BaseChatModel | None = None,
        settings: Settings | None = None,
        timeout_seconds: float | None = None,
    ):
        self._llm = llm
        self._settings = settings or get_settings()
        self.timeout_seconds = timeout_seconds or self._settings.llm_timeout_seconds

    @property
    def provider(self) -> str:
        return self._settings.llm_provider

    def _resolve_llm(
        self,
        model: str | None,
        max_tokens: int | None,
        temperature: float | None,
    ) -> BaseChatModel:
        if self._llm is not None:
            return self._llm
        from flowforge.llm.factory import get_llm

        kwargs: dict[str, Any] = {}
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        return get_llm(
            temperature=temperature,
            model=model,
            settings=self._settings,
            **kwargs,
        )

    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Send one prompt and return the model's text.

        Raises:
            LLMError: On timeout or provider failure
        """
        messages: list[BaseMessage] = []
        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))
        messages.append(HumanMessage(content=prompt))

        llm = self._resolve_llm(model, max_tokens, temperature)
        try:
            response = await asyncio.wait_for(llm.ainvoke(messages), self.timeout_seconds)
        except TimeoutError as e:
            raise LLMError(
                f"LLM call timed out after {self.timeout_seconds}s",
                provider=self.provider,
                timeout=True,
            ) from e
        except LLMError:
            raise
        except Exception as e:
            logger.warning("LLM call failed: %s", e)
            raise LLMError(str(e), provider=self.provider) from e

        content = response.content if hasattr(response, "content") else response
        if isinstance(content, list):
            content = "".join(
                part.get("text", "") if isinstance(part, dict) else str(part) for part in content
            )
        return str(content)

    async def complete_json(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> dict[str, Any]:
        """Like :meth:`complete`, but the answer must contain a JSON object.

        Raises:
            LLMResponseError: If no JSON object can be parsed from the answer
        """
        text = await self.complete(
            prompt,
            system_prompt=system_prompt,
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        data = extract_json(text)
        if data is None:
            raise LLMResponseError(
                "LLM response did not contain a JSON object",
                provider=self.provider,
                raw_output=text,
            )
        return data

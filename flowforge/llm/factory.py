"""LLM provider factory.

Every supported backend speaks the OpenAI chat API, so a single
``ChatOpenAI`` client covers them; only the base URL and auth differ.

Environment variables:
- LLM_PROVIDER: openai (default), openrouter, ollama, together, groq, custom
- LLM_MODEL: Model name (e.g., gpt-4o-mini, anthropic/claude-sonnet-4, llama3)
- LLM_API_KEY: API key for the provider
- LLM_BASE_URL: Custom base URL for OpenAI-compatible APIs
"""

from typing import Any

from langchain_core.language_models import BaseChatModel

from flowforge.exceptions import ConfigurationError
from flowforge.llm.resilient import ResilientLLM
from flowforge.settings import Settings, get_settings

PROVIDER_BASE_URLS = {
    "openrouter": "https://openrouter.ai/api/v1",
    "openai": "https://api.openai.com/v1",
    "together": "https://api.together.xyz/v1",
    "groq": "https://api.groq.com/openai/v1",
    "ollama": "http://localhost:11434/v1",
}


def get_llm(
    temperature: float | None = None,
    model: str | None = None,
    provider: str | None = None,
    settings: Settings | None = None,
    **kwargs: Any,
) -> BaseChatModel:
    """Get a resilient chat model for the configured provider.

    Args:
        temperature: Override default temperature
        model: Override default model name ("ollama/llama3" selects the ollama provider)
        provider: Override default provider
        settings: Optional settings override
        **kwargs: Extra ChatOpenAI arguments (e.g. max_tokens)

    Returns:
        ResilientLLM wrapping the primary (and optional fallback) model

    Raises:
        ConfigurationError: If the provider is unknown or credentials are missing
    """
    settings = settings or get_settings()
    model_name = model or settings.llm_model
    temp = temperature if temperature is not None else settings.llm_temperature

    if model_name.startswith("ollama/") and provider is None:
        provider = "ollama"
        model_name = model_name.split("/", 1)[1]

    provider = provider or settings.llm_provider

    primary_llm = _create_llm_instance(provider, model_name, temp, settings, **kwargs)

    fallback_llm = None
    if settings.llm_fallback_provider and settings.llm_fallback_model:
        fallback_llm = _create_llm_instance(
            settings.llm_fallback_provider,
            settings.llm_fallback_model,
            temp,
            settings,
            **kwargs,
        )

    return ResilientLLM(
        primary_llm=primary_llm,
        provider=provider,
        fallback_llm=fallback_llm,
        fallback_provider=settings.llm_fallback_provider if fallback_llm else None,
    )


def _create_llm_instance(
    provider: str,
    model: str,
    temperature: float,
    settings: Settings,
    **kwargs: Any,
) -> BaseChatModel:
    from langchain_openai import ChatOpenAI

    api_key = settings.llm_api_key.get_secret_value()
    if not api_key and provider != "ollama":
        raise ConfigurationError(f"LLM_API_KEY is required when using {provider} provider")

    base_url = settings.llm_base_url or PROVIDER_BASE_URLS.get(provider)
    if base_url is None:
        raise ConfigurationError(
            f"Unknown provider '{provider}'. Set LLM_BASE_URL for custom providers."
        )

    llm_kwargs: dict[str, Any] = {
        "model": model,
        "temperature": temperature,
        "base_url": base_url,
        "api_key": api_key or "ollama",
        **kwargs,
    }

    if provider == "openrouter":
        llm_kwargs.setdefault("default_headers", {})
        llm_kwargs["default_headers"]["X-Title"] = "FlowForge"

    return ChatOpenAI(**llm_kwargs)


def list_supported_providers() -> dict[str, str]:
    """List supported LLM providers and their base URLs."""
    return dict(PROVIDER_BASE_URLS)

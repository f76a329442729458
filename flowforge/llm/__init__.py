"""LLM provider factory, resilient wrapper and completion client."""

from flowforge.llm.circuit_breaker import (
    MAX_RETRIES,
    RETRY_DELAYS,
    CircuitBreaker,
    get_circuit_breaker,
    reset_circuit_breakers,
)
from flowforge.llm.completion import CompletionClient
from flowforge.llm.factory import PROVIDER_BASE_URLS, get_llm, list_supported_providers
from flowforge.llm.parsing import extract_json
from flowforge.llm.resilient import ResilientLLM

__all__ = [
    "MAX_RETRIES",
    "PROVIDER_BASE_URLS",
    "RETRY_DELAYS",
    "CircuitBreaker",
    "CompletionClient",
    "ResilientLLM",
    "extract_json",
    "get_circuit_breaker",
    "get_llm",
    "list_supported_providers",
    "reset_circuit_breakers",
]

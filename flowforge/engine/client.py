"""HTTP client for the workflow engine's REST API.

Connection handling follows the usual pattern: a shared
``httpx.AsyncClient`` created lazily and closed explicitly.
"""

import logging
import time
from typing import Any

import httpx
from pydantic import BaseModel, Field

from flowforge.exceptions import ConfigurationError, DeploymentError
from flowforge.settings import Settings, get_settings

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-N8N-API-KEY"


class EngineClientConfig(BaseModel):
    """Configuration for the engine client."""

    base_url: str = Field(..., description="Workflow engine base URL")
    api_key: str = Field(default="", description="Engine API key")
    timeout: int = Field(default=30, description="Request timeout in seconds")


class EngineClient:
    """Thin async wrapper over the engine API."""

    def __init__(
        self,
        config: EngineClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or self._resolve_config(get_settings())
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "EngineClient":
        return cls(cls._resolve_config(settings))

    @staticmethod
    def _resolve_config(settings: Settings) -> EngineClientConfig:
        if not settings.engine_url:
            raise ConfigurationError("ENGINE_URL is not set; deployment is unavailable")
        return EngineClientConfig(
            base_url=settings.engine_url.rstrip("/"),
            api_key=settings.engine_api_key.get_secret_value(),
            timeout=settings.engine_timeout_seconds,
        )

    def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the shared AsyncClient."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                transport=self._transport,
                limits=httpx.Limits(max_keepalive_connections=10, max_connections=50),
            )
        return self._http_client

    async def close(self) -> None:
        """Close the shared HTTP client and release connections."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Make a request and return the decoded JSON body.

        Raises:
            DeploymentError: On any non-2xx response or transport failure.
                ``transient`` is set for 5xx, 429, timeouts and network errors.
        """
        client = self._get_http_client()
        headers = {API_KEY_HEADER: self.config.api_key} if self.config.api_key else {}
        start = time.perf_counter()
        try:
            response = await client.request(method, path, json=json, headers=headers)
        except httpx.TimeoutException as e:
            raise DeploymentError(
                f"Workflow engine timed out after {self.config.timeout}s",
                transient=True,
            ) from e
        except httpx.TransportError as e:
            raise DeploymentError(
                f"Workflow engine connection failed: {type(e).__name__}",
                transient=True,
            ) from e

        duration_ms = (time.perf_counter() - start) * 1000
        logger.debug("%s %s -> %d (%.0fms)", method, path, response.status_code, duration_ms)

        if response.is_success:
            return response.json() if response.content else {}

        status = response.status_code
        detail = response.text[:200] if response.content else response.reason_phrase
        raise DeploymentError(
            f"Workflow engine returned HTTP {status}: {detail}",
            status_code=status,
            transient=status >= 500 or status == 429,
        )

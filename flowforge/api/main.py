"""FastAPI application configuration and setup.

HTTP surface for the conversation service, with correlation ids,
consistent error bodies and lifecycle management.
"""

import logging
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from contextvars import ContextVar

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from flowforge import __version__
from flowforge.api.routes import api_router
from flowforge.dal import build_session_store
from flowforge.exceptions import ConfigurationError, FlowForgeError, SessionNotFoundError
from flowforge.services import ConversationService, Pipeline
from flowforge.settings import Settings, get_settings

logger = logging.getLogger(__name__)

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def _build_service(settings: Settings) -> ConversationService:
    return ConversationService(Pipeline.from_settings(settings), build_session_store(settings))


def create_app(
    settings: Settings | None = None,
    service: ConversationService | None = None,
) -> FastAPI:
    """Create and configure a FastAPI application instance.

    Args:
        settings: Optional settings override (uses get_settings() if not provided)
        service: Optional pre-built conversation service (tests)
    """
    if settings is None:
        settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        uses_database = service is None and settings.session_store == "database"
        if uses_database:
            from flowforge.storage import init_db

            await init_db()
        if getattr(app.state, "conversation_service", None) is None:
            app.state.conversation_service = _build_service(settings)
        yield
        if uses_database:
            from flowforge.storage import close_db

            await close_db()

    app = FastAPI(
        title="FlowForge",
        description="Conversational workflow builder",
        version=__version__,
        docs_url="/api/docs" if settings.debug else None,
        openapi_url="/api/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.conversation_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.environment in ("development", "testing") else [],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Correlation-ID"],
    )
    app.middleware("http")(_correlation_middleware)
    app.include_router(api_router, prefix="/api/v1")
    _register_exception_handlers(app, settings)
    return app


async def _correlation_middleware(request: Request, call_next):
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
    token = _correlation_id.set(correlation_id)
    try:
        response = await call_next(request)
    finally:
        _correlation_id.reset(token)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


def _error_body(status_code: int, message: str, error_type: str, correlation_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": status_code,
                "message": message,
                "type": error_type,
                "correlation_id": correlation_id,
            }
        },
        headers={"X-Correlation-ID": correlation_id},
    )


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(FlowForgeError)
    async def flowforge_error_handler(request: Request, exc: FlowForgeError) -> JSONResponse:
        correlation_id = get_correlation_id() or exc.correlation_id
        error_type = exc.__class__.__name__.replace("Error", "_error").lower()
        if isinstance(exc, SessionNotFoundError):
            return _error_body(404, str(exc), error_type, correlation_id)

        status_code = 503 if isinstance(exc, ConfigurationError) else 500
        logger.error("%s (%s): %s", error_type, correlation_id, exc)
        message = str(exc) if settings.debug else f"An error occurred. Correlation ID: {correlation_id}"
        return _error_body(status_code, message, error_type, correlation_id)

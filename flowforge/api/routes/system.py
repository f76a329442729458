"""System endpoints."""

from fastapi import APIRouter, Request

from flowforge import __version__
from flowforge.api.schemas import HealthResponse

router = APIRouter(tags=["System"])


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    settings = request.app.state.settings
    return HealthResponse(
        version=__version__,
        llm_enabled=settings.use_llm,
        session_store=settings.session_store,
    )

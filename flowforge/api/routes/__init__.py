"""API route registration.

Aggregates all API routers into a single router
for inclusion in the main application.
"""

from fastapi import APIRouter

from flowforge.api.routes.conversations import router as conversations_router
from flowforge.api.routes.system import router as system_router

api_router = APIRouter()

api_router.include_router(system_router)
api_router.include_router(conversations_router)

__all__ = ["api_router"]

"""API routes for deckexport."""

from fastapi import APIRouter

from deckexport.api.routes.export import router as export_router
from deckexport.api.routes.health import router as health_router

# Main API router, mounted under the configured prefix
api_router = APIRouter()
api_router.include_router(export_router, tags=["Export"])

__all__ = ["api_router", "health_router"]

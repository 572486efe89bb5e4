"""API routes for BlockCanvas."""

from fastapi import APIRouter

from blockcanvas.api.routes.diagrams import router as diagrams_router
from blockcanvas.api.routes.health import router as health_router

# Main API router
api_router = APIRouter()

api_router.include_router(health_router, tags=["Health"])
api_router.include_router(diagrams_router, prefix="/diagrams", tags=["Diagrams"])

__all__ = ["api_router"]

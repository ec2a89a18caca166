"""API routers for SkyTrack."""

from fastapi import APIRouter

from .clients import router as clients_router
from .health import router as health_router
from .tracks import router as tracks_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(clients_router)
api_router.include_router(tracks_router)

__all__ = ["api_router"]

from fastapi import FastAPI

from app.config import get_settings

from .health import router as health_router
from .hub import router as hub_router
from .notifications import router as notifications_router


def register_routes(app: FastAPI) -> None:
    """Register every API router on the FastAPI application."""

    settings = get_settings()
    app.include_router(health_router)
    app.include_router(notifications_router, prefix=settings.api_prefix)
    app.include_router(hub_router)

"""API routes package."""

from service.routes.record_routes import router as record_router
from service.routes.sync_routes import router as sync_router

__all__ = ["record_router", "sync_router"]

"""API routes package."""

from replicator.routes.event_routes import router as event_router

__all__ = ["event_router"]

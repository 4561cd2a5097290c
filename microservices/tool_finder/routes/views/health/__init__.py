"""Health check views and routes."""

from .health_routes import router as health_router

# Export router
health_routes = health_router

__all__ = ["health_routes"]

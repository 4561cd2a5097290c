"""Chat views and routes."""

from .chat_routes import router as chat_router

# Export router
chat_routes = chat_router

__all__ = ["chat_routes"]

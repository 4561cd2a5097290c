"""Routes for the AI tool finder."""

# Import all route modules from views
from .views import chat_routes, find_tools, health_routes

__all__ = [
    "chat_routes",
    "find_tools",
    "health_routes",
]

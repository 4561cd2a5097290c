"""Views package for organizing route modules."""

# Import routers from submodules
from .chat import chat_routes
from .health import health_routes
from .search import find_tools

# Export all routers
__all__ = [
    "chat_routes",
    "find_tools",
    "health_routes",
]

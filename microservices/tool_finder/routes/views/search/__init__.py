"""Search-related views and routes."""

from .find_tools import router as find_tools_router

# Export router
find_tools = find_tools_router

__all__ = ["find_tools"]

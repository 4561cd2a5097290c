"""Tool finder services: Firecrawl adapter, discovery pipeline and chat."""

from .chat import ChatService
from .firecrawl import FirecrawlConfig, FirecrawlService
from .tool_finder import EmptyQueryError, ToolFinderService

__all__ = [
    "ChatService",
    "EmptyQueryError",
    "FirecrawlConfig",
    "FirecrawlService",
    "ToolFinderService",
]

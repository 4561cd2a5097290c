"""AI tool discovery pipeline."""

from .service import EmptyQueryError, ToolFinderService
from .sources import DirectorySource, ToolSource, WebSearchSource, default_sources

__all__ = [
    "EmptyQueryError",
    "ToolFinderService",
    "ToolSource",
    "DirectorySource",
    "WebSearchSource",
    "default_sources",
]

"""Serializers for the AI tool finder."""

from .tools import (
    AppTool,
    ChatRequest,
    ChatResponse,
    FindToolsRequest,
    FindToolsResponse,
    ToolCandidate,
    ToolPricingTier,
)

__all__ = [
    "AppTool",
    "ToolPricingTier",
    "ToolCandidate",
    "FindToolsRequest",
    "FindToolsResponse",
    "ChatRequest",
    "ChatResponse",
]

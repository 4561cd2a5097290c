"""Service providers for the route handlers.

Services are built once per process and handed to routes through
``Depends``; tests swap them with ``app.dependency_overrides``.
"""

from functools import lru_cache

from microservices.tool_finder.ai_agents.core.llm import AzureOpenAIService
from microservices.tool_finder.ai_agents.tools.chat import ChatService
from microservices.tool_finder.ai_agents.tools.firecrawl import FirecrawlService
from microservices.tool_finder.ai_agents.tools.tool_finder import ToolFinderService


@lru_cache()
def get_firecrawl_service() -> FirecrawlService:
    return FirecrawlService()


@lru_cache()
def get_llm_service() -> AzureOpenAIService:
    return AzureOpenAIService()


@lru_cache()
def get_tool_finder_service() -> ToolFinderService:
    return ToolFinderService(get_firecrawl_service(), get_llm_service())


@lru_cache()
def get_chat_service() -> ChatService:
    return ChatService(get_llm_service())

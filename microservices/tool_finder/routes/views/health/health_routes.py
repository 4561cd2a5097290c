"""Health check routes for the Firecrawl and Azure OpenAI services."""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from microservices.tool_finder.ai_agents.core.llm import AzureOpenAIService
from microservices.tool_finder.ai_agents.tools.firecrawl import FirecrawlService
from microservices.tool_finder.ai_agents.tools.tool_finder import ToolFinderService
from microservices.tool_finder.routes.dependencies import (
    get_firecrawl_service,
    get_llm_service,
    get_tool_finder_service,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
async def health(
    firecrawl_service: FirecrawlService = Depends(get_firecrawl_service),
    llm_service: AzureOpenAIService = Depends(get_llm_service),
    tool_finder: ToolFinderService = Depends(get_tool_finder_service),
) -> Dict[str, Any]:
    """Report service configuration and pipeline stage timings.

    Returns:
        ``healthy`` when both external services are configured,
        ``degraded`` otherwise
    """
    firecrawl_ready = firecrawl_service.is_configured()
    llm_ready = llm_service.is_initialized()

    if not (firecrawl_ready and llm_ready):
        logger.warning(
            f"⚠️ [HEALTH] Degraded: firecrawl={firecrawl_ready}, azure_openai={llm_ready}"
        )

    return {
        "status": "healthy" if firecrawl_ready and llm_ready else "degraded",
        "services": {
            "firecrawl": firecrawl_service.config.to_dict(),
            "azure_openai": {
                **llm_service.config.to_dict(),
                "client_initialized": llm_ready,
            },
        },
        "sources": [source.name for source in tool_finder.sources],
        "performance": tool_finder.performance_monitor.get_performance_report(),
    }

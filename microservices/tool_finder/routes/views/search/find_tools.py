"""Find tools endpoint."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from microservices.tool_finder.ai_agents.tools.tool_finder import (
    EmptyQueryError,
    ToolFinderService,
)
from microservices.tool_finder.routes.dependencies import get_tool_finder_service
from microservices.tool_finder.serializers import FindToolsRequest, FindToolsResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/find", response_model=FindToolsResponse)
async def find_tools(
    request: FindToolsRequest,
    tool_finder: ToolFinderService = Depends(get_tool_finder_service),
) -> FindToolsResponse:
    """Find AI tools for a natural-language query.

    The optional ``requestId`` is echoed back so a client can drop
    responses of searches it has already replaced.
    """
    logger.info(f"🔍 [FIND TOOLS] Query: '{request.query[:100]}' (request {request.request_id})")

    try:
        tools = await tool_finder.find_tools(request.query)
    except EmptyQueryError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"❌ [FIND TOOLS] Error: {e}")
        raise HTTPException(
            status_code=500, detail=f"An error occurred during search: {e}"
        )

    return FindToolsResponse(
        status="success",
        query=request.query,
        tools=[tool.to_response() for tool in tools],
        count=len(tools),
        request_id=request.request_id,
    )

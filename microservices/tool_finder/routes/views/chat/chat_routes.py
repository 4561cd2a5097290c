"""Chat assistant endpoint."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from microservices.tool_finder.ai_agents.tools.chat import ChatService
from microservices.tool_finder.routes.dependencies import get_chat_service
from microservices.tool_finder.serializers import ChatRequest, ChatResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest, chat_service: ChatService = Depends(get_chat_service)
) -> ChatResponse:
    """Answer a question, optionally about the tool currently shown."""
    if not request.message.strip():
        raise HTTPException(status_code=400, detail="Message must not be empty")

    tool_name = (request.tool or {}).get("name", "no tool")
    logger.info(f"💬 [CHAT] Message about {tool_name}")

    reply = await chat_service.get_ai_chat_response(request.message, request.tool)
    return ChatResponse(status="success", reply=reply)

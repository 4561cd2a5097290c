"""Chat assistant answering questions about the tool on screen."""

import json
import logging
from typing import Any, Dict, Optional

from microservices.tool_finder.ai_agents.core.llm import AzureOpenAIService

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = (
    "I'm having a little trouble connecting right now. Please try again in a moment."
)

GENERAL_SYSTEM_PROMPT = (
    "You are a helpful AI assistant specialized in discussing software tools. "
    "Be concise and informative."
)


def _joined(values: Any) -> str:
    if isinstance(values, list) and values:
        return ", ".join(str(value) for value in values)
    return "not listed"


class ChatService:
    """Contextual chat replies backed by the analysis service."""

    def __init__(self, llm_service: AzureOpenAIService):
        self.llm_service = llm_service

    @staticmethod
    def build_prompts(message: str, tool_context: Optional[Dict[str, Any]]):
        """Return the system prompt and the augmented user message."""
        if not tool_context:
            return (
                GENERAL_SYSTEM_PROMPT,
                f"The user asks: {message}. Since no specific tool is in context, try to "
                "provide a general helpful answer or guide them to search for a tool.",
            )

        name = tool_context.get("name") or "this tool"
        system_prompt = (
            f"You are an AI assistant discussing the tool: {name}.\n"
            f"Description: {tool_context.get('description') or 'not provided'}.\n"
            f"URL: {tool_context.get('url') or 'not provided'}.\n"
            "Be helpful and answer questions specifically about this tool based on the "
            "provided context and the user's query. If the user asks for information not "
            f"in the context, politely say you don't have that specific detail for {name} "
            "but can answer general questions or talk about its known features."
        )
        features = _joined(tool_context.get("features"))
        use_cases = _joined(tool_context.get("useCases") or tool_context.get("use_cases"))
        user_message = (
            f"Considering the tool {name} (features: {features}, use cases: {use_cases}), "
            f"the user asks: {message}"
        )
        return system_prompt, user_message

    async def get_ai_chat_response(
        self, message: str, tool_context: Optional[Dict[str, Any]] = None
    ) -> str:
        """Get a reply to a user message, optionally about a specific tool.

        Args:
            message: The user's message or question
            tool_context: The tool record currently shown, if any

        Returns:
            The assistant reply, or an apology when the service is unavailable
        """
        try:
            system_prompt, chat_message = self.build_prompts(message, tool_context)
            reply = await self.llm_service.analyze_tool(
                {
                    "task": "contextual_chat_response",
                    "query": message,
                    "tool_info": tool_context,
                    "system_prompt": system_prompt,
                    "chat_message": chat_message,
                }
            )
        except Exception as e:
            logger.error(f"❌ [CHAT] Error getting AI chat response: {e}")
            return APOLOGY_MESSAGE

        # Some replies arrive as {"response": "..."}
        try:
            parsed = json.loads(reply)
        except (TypeError, ValueError):
            return reply
        if isinstance(parsed, dict) and parsed.get("response"):
            return str(parsed["response"])
        return reply

"""Azure OpenAI analysis service for the tool finder."""

import json
import logging
import re
from typing import Any, Dict, Optional
from urllib.parse import quote

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import AzureChatOpenAI

from microservices.tool_finder.ai_agents.core.llm.config import AzureOpenAIConfig
from microservices.tool_finder.ai_agents.core.llm.prompt_system import (
    PromptSystem,
    TaskType,
)

logger = logging.getLogger(__name__)


class LLMUnavailableError(RuntimeError):
    """Raised when the chat completion endpoint cannot be used."""


def create_fallback_tool_response(query: str) -> str:
    """Create a fallback tool list in case the API call fails.

    Args:
        query: The user query

    Returns:
        A JSON string containing a single fallback tool
    """
    query_clean = re.sub(r"[^\w\s]", "", query).strip()
    tool_name = f"AI {query_clean[:1].upper() + query_clean[1:]} Assistant"

    return json.dumps(
        [
            {
                "name": tool_name,
                "description": f"An advanced AI tool designed to help with {query} tasks through intelligent automation and data processing.",
                "url": f"https://theresanaiforthat.com/search?q={quote(query)}",
                "pricing": "Freemium (Free tier available with paid upgrades)",
                "categories": [query, "AI", "Automation"],
                "useCases": [
                    f"Streamlining {query} workflows",
                    f"Automating repetitive {query} tasks",
                    f"Generating insights from {query} data",
                ],
                "pros": [
                    "Easy to use interface",
                    "No coding required",
                    "Regular updates and improvements",
                    "Integrates with popular tools",
                ],
                "cons": [
                    "Advanced features require paid subscription",
                    "May require initial setup time",
                ],
            }
        ]
    )


class AzureOpenAIService:
    """Builds task prompts and sends them to the Azure OpenAI deployment."""

    def __init__(self, config: Optional[AzureOpenAIConfig] = None):
        """Initialize the analysis service.

        Missing credentials are logged, not raised: the service starts in a
        degraded mode and fails on the first real request.
        """
        self.config = config or AzureOpenAIConfig()
        self.prompt_system = PromptSystem(self.config.max_content_chars)
        self.llm = None
        self._initialize_client()

    def _initialize_client(self):
        """Initialize the Azure chat client."""
        if not self.config.is_configured():
            logger.warning(
                "⚠️ [AZURE OPENAI] AZURE_API_KEY or AZURE_ENDPOINT not configured; analysis requests will fail"
            )
            return

        try:
            self.llm = AzureChatOpenAI(
                azure_endpoint=self.config.azure_endpoint,
                azure_deployment=self.config.deployment,
                api_version=self.config.api_version,
                api_key=self.config.api_key,
                timeout=self.config.timeout_seconds,
                max_retries=0,
            )
            logger.info(
                f"✅ [AZURE OPENAI] Client initialized for deployment '{self.config.deployment}'"
            )
        except Exception as e:
            logger.error(f"❌ [AZURE OPENAI] Error initializing client: {e}")
            self.llm = None

    def is_initialized(self) -> bool:
        """Check whether the client is ready to send requests."""
        return self.llm is not None

    async def _complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
        json_mode: bool,
    ) -> str:
        """Send one chat completion request and return the reply text."""
        if self.llm is None:
            logger.error("❌ [AZURE OPENAI] API key or endpoint is missing")
            raise LLMUnavailableError("Azure OpenAI API key is missing")

        call_kwargs: Dict[str, Any] = {
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            call_kwargs["response_format"] = {"type": "json_object"}

        response = await self.llm.bind(**call_kwargs).ainvoke(
            [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]
        )
        return response.content

    async def analyze_tool(self, data: Dict[str, Any]) -> str:
        """Run an analysis task against the chat completion endpoint.

        Args:
            data: Task payload; ``task`` selects prompts and sampling settings

        Returns:
            The raw reply text, JSON for structured tasks. Extraction tasks
            get a fallback tool list instead of an error.
        """
        task = TaskType.from_tag(data.get("task"))

        try:
            task, system_prompt, user_prompt = self.prompt_system.build_prompts(data)
            settings = self.prompt_system.get_settings(task, data.get("task"))
            if settings.json_mode and "json" not in system_prompt.lower():
                system_prompt += "\nRespond with a single JSON object."

            logger.info(f"🤖 [AZURE OPENAI] Calling Azure OpenAI with task: {task.value}")
            content = await self._complete(
                system_prompt,
                user_prompt,
                temperature=settings.temperature,
                max_tokens=settings.max_tokens,
                json_mode=settings.json_mode,
            )
            logger.info("✅ [AZURE OPENAI] Response received successfully")
            return content

        except Exception as e:
            logger.error(f"❌ [AZURE OPENAI] Error analyzing tool ({task.value}): {e}")

            if task.is_extraction:
                logger.warning(
                    f"⚠️ [AZURE OPENAI] Returning fallback tool response for {task.value}"
                )
                return create_fallback_tool_response(data.get("query") or "AI tool")
            raise

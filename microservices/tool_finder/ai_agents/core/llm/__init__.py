"""LLM (Large Language Model) services and utilities."""

from .config import AzureOpenAIConfig
from .json_parser import LLMJsonResult, parse_llm_json
from .llm_service import (
    AzureOpenAIService,
    LLMUnavailableError,
    create_fallback_tool_response,
)
from .prompt_system import PromptSystem, TaskType

__all__ = [
    "AzureOpenAIConfig",
    "AzureOpenAIService",
    "LLMUnavailableError",
    "LLMJsonResult",
    "PromptSystem",
    "TaskType",
    "create_fallback_tool_response",
    "parse_llm_json",
]

"""Prompt templates for the tool analysis tasks."""

import json
import logging
from enum import Enum
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class TaskType(Enum):
    """Task tags understood by the analysis service."""

    EXTRACT_AI_TOOLS_FROM_SEARCH = "extract_ai_tools_from_search"
    EXTRACT_TOOLS_GENERIC = "extract_tools_generic"
    EXTRACT_TOOLS = "extract_tools"
    RANK_TOOLS_BY_RELEVANCE = "rank_tools_by_relevance"
    ENHANCE_TOOL_DETAILS = "enhance_tool_details"
    CONTEXTUAL_CHAT_RESPONSE = "contextual_chat_response"
    GENERAL_ANALYSIS = "general_analysis"

    @classmethod
    def from_tag(cls, tag: Optional[str]) -> "TaskType":
        """Map a payload task tag to a task type, defaulting to general analysis."""
        if not tag:
            return cls.GENERAL_ANALYSIS
        for task in cls:
            if task.value == tag:
                return task
        logger.warning(f"Unknown task tag '{tag}', using general analysis")
        return cls.GENERAL_ANALYSIS

    @property
    def is_extraction(self) -> bool:
        """Extraction-family tasks resolve to a fallback tool list on failure."""
        return "extract" in self.value


class TaskSettings:
    """Sampling parameters for a task."""

    def __init__(self, temperature: float, max_tokens: int, json_mode: bool):
        """Initialize task settings."""
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.json_mode = json_mode


STRUCTURED_SETTINGS = TaskSettings(temperature=0.1, max_tokens=4000, json_mode=True)
CHAT_SETTINGS = TaskSettings(temperature=0.5, max_tokens=500, json_mode=False)
GENERAL_SETTINGS = TaskSettings(temperature=0.7, max_tokens=4000, json_mode=False)


class PromptTemplate:
    """A system/user prompt pair for one task."""

    def __init__(self, task: TaskType, system_template: str, user_template: str):
        """Initialize prompt template with task, system and user templates."""
        self.task = task
        self.system_template = system_template
        self.user_template = user_template

    def format(self, **kwargs) -> Tuple[str, str]:
        """Format both templates with provided variables."""
        try:
            return (
                self.system_template.format(**kwargs),
                self.user_template.format(**kwargs),
            )
        except KeyError as e:
            logger.error(f"Missing required variable {e} for prompt {self.task}")
            raise


TOOL_LIST_SHAPE = """Return a JSON object of the form {{"tools": [ ... ]}}."""


class PromptSystem:
    """Centralized prompt management for the analysis tasks."""

    def __init__(self, max_content_chars: int = 70000):
        """Initialize prompt system with all templates."""
        self.max_content_chars = max_content_chars
        self.templates = self._initialize_templates()

    def _initialize_templates(self) -> Dict[TaskType, PromptTemplate]:
        """Initialize all prompt templates."""
        return {
            TaskType.EXTRACT_AI_TOOLS_FROM_SEARCH: PromptTemplate(
                TaskType.EXTRACT_AI_TOOLS_FROM_SEARCH,
                """You are an expert at extracting AI tool information from websites.
Your task is to extract detailed information about AI tools from the provided content.
""" + TOOL_LIST_SHAPE + """
Each tool has these properties:
- name: The name of the tool
- description: A brief description of what the tool does
- url: The URL to access the tool
- pricing: Any pricing information available (string)
- categories: An array of categories the tool belongs to
- useCases: (Optional) Array of use cases for the tool
- pros: (Optional) Array of advantages/benefits
- cons: (Optional) Array of limitations/drawbacks
- imageUrl: (Optional) URL to the tool's logo or image
- videoEmbed: (Optional) URL to a demo video

Focus on finding ALL tools mentioned in the content that match the search query.
If you cannot find any tools, return at least one likely AI tool related to the query.""",
                """Search query: "{query}"
Extract all AI tools related to this query from the following content.
{content}

Respond ONLY with valid JSON. No explanation or other text.
If no tools are explicitly found, create a plausible AI tool that would match the query.""",
            ),
            TaskType.EXTRACT_TOOLS_GENERIC: PromptTemplate(
                TaskType.EXTRACT_TOOLS_GENERIC,
                """You are an expert at identifying and extracting software tool information from web content.
Your task is to analyze the provided HTML/markdown and extract information about any relevant AI tools.
""" + TOOL_LIST_SHAPE + """
Each tool has these properties:
- name: The name of the tool
- description: A detailed description of what the tool does
- url: The URL to access the tool (use a reasonable URL if not found)
- pricing: Any pricing information (optional)
- categories: Categories the tool belongs to (optional)
- features: Array of key features (optional)
- useCases: Array of specific use cases (optional)
- pros: Array of advantages/benefits (optional)
- cons: Array of limitations/drawbacks (optional)

Focus on finding tools that use AI for {query} tasks.""",
                """Query: "{query}"
Content to analyze:
{content}

Respond ONLY with valid JSON. No explanation or other text.""",
            ),
            TaskType.EXTRACT_TOOLS: PromptTemplate(
                TaskType.EXTRACT_TOOLS,
                """You are an expert data analyst specializing in extracting structured information about AI tools.
Your task is to analyze the provided JSON data and extract information about AI tools focused on {query}.
""" + TOOL_LIST_SHAPE,
                """Extract tool information from this data:
{data}

Focus on tools related to: "{query}"
Respond ONLY with valid JSON. Each tool should have:
- name
- description
- url
- pricing (if available)
- categories (if available)
- features (if available)
- useCases (if available)
- pros (if available)
- cons (if available)""",
            ),
            TaskType.RANK_TOOLS_BY_RELEVANCE: PromptTemplate(
                TaskType.RANK_TOOLS_BY_RELEVANCE,
                """You are an expert at ranking and evaluating AI tools based on user queries.
Your task is to analyze and rank the provided tools based on their relevance to the user's query.
Order them from most to least relevant to the query "{query}".
Consider factors like feature match, description relevance, and specific capabilities.""",
                """Query: "{query}"
Tools to rank: {tools}

Reorder these tools based on their relevance to the query.
""" + TOOL_LIST_SHAPE + """ The list holds the same tools ordered by relevance, with the most relevant tool first.
Do not add or remove any tools. Do not modify the tool data, only their order.""",
            ),
            TaskType.ENHANCE_TOOL_DETAILS: PromptTemplate(
                TaskType.ENHANCE_TOOL_DETAILS,
                """You are an expert at enhancing AI tool descriptions and information.
Your task is to take partial information about an AI tool and enhance it with additional details.
Fill in missing information using reasonable inferences based on the tool's name, description, and purpose.""",
                """Tool to enhance: {tool}
User query: "{query}"

Enhance this tool information by:
1. Generating appropriate pros and cons if missing
2. Creating reasonable use cases related to "{query}" if missing
3. Inferring potential features based on the description
4. Suggesting appropriate categories if missing

Return the enhanced tool as a single JSON object with all the original fields plus any added fields.
Use the keys name, description, tagline, features, useCases, pros, cons, categories, pricing.""",
            ),
            TaskType.CONTEXTUAL_CHAT_RESPONSE: PromptTemplate(
                TaskType.CONTEXTUAL_CHAT_RESPONSE,
                "{system_prompt}",
                "{chat_message}",
            ),
            TaskType.GENERAL_ANALYSIS: PromptTemplate(
                TaskType.GENERAL_ANALYSIS,
                """You are an expert at analyzing and recommending AI tools and software.
Given tool information, analyze its features, benefits, and use cases to provide
a comprehensive recommendation. Focus on practical applications for "{query}" and value proposition.""",
                """Please analyze this tool and provide a recommendation:
{payload}""",
            ),
        }

    def get_template(self, task: TaskType) -> PromptTemplate:
        """Get a prompt template by task."""
        if task not in self.templates:
            raise ValueError(f"Unknown task type: {task}")
        return self.templates[task]

    @staticmethod
    def get_settings(task: TaskType, tag: Optional[str] = None) -> TaskSettings:
        """Get sampling parameters for a task.

        Any task tag other than chat, recognized or not, gets the structured
        settings. Only untagged payloads fall back to the general settings.
        """
        if task == TaskType.CONTEXTUAL_CHAT_RESPONSE:
            return CHAT_SETTINGS
        if task == TaskType.GENERAL_ANALYSIS and not tag:
            return GENERAL_SETTINGS
        return STRUCTURED_SETTINGS

    def _truncate(self, text: str) -> str:
        return text[: self.max_content_chars]

    def _dump(self, value: Any) -> str:
        if isinstance(value, str):
            return value
        return json.dumps(value, default=str)

    def build_prompts(self, payload: Dict[str, Any]) -> Tuple[TaskType, str, str]:
        """Select and fill the templates for a task payload.

        Args:
            payload: Task payload; ``task`` selects the template

        Returns:
            Tuple of task type, system prompt and user prompt
        """
        task = TaskType.from_tag(payload.get("task"))
        template = self.get_template(task)
        query = payload.get("query") or ""

        if task in (
            TaskType.EXTRACT_AI_TOOLS_FROM_SEARCH,
            TaskType.EXTRACT_TOOLS_GENERIC,
        ):
            content = payload.get("content") or self._dump(payload)
            variables = {"query": query, "content": self._truncate(content)}
        elif task == TaskType.EXTRACT_TOOLS:
            variables = {"query": query, "data": self._dump(payload.get("data"))}
        elif task == TaskType.RANK_TOOLS_BY_RELEVANCE:
            variables = {"query": query, "tools": self._dump(payload.get("tools", []))}
        elif task == TaskType.ENHANCE_TOOL_DETAILS:
            variables = {"query": query, "tool": self._dump(payload.get("tool", {}))}
        elif task == TaskType.CONTEXTUAL_CHAT_RESPONSE:
            variables = {
                "system_prompt": payload.get("system_prompt")
                or "You are a helpful AI assistant. The user is asking about an AI tool.",
                "chat_message": payload.get("chat_message") or query,
            }
        else:
            variables = {
                "query": query or "the user",
                "payload": self._truncate(self._dump(payload)),
            }

        system_prompt, user_prompt = template.format(**variables)
        return task, system_prompt, user_prompt

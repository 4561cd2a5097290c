"""Tests for the Azure OpenAI analysis layer."""

import json
from unittest import IsolatedAsyncioTestCase, TestCase
from unittest.mock import AsyncMock, MagicMock, patch

from .config import AzureOpenAIConfig
from .json_parser import parse_llm_json
from .llm_service import (
    AzureOpenAIService,
    LLMUnavailableError,
    create_fallback_tool_response,
)
from .prompt_system import PromptSystem, TaskType

ENDPOINT = (
    "https://tools-resource.cognitiveservices.azure.com/openai/deployments/gpt-4o/"
    "chat/completions?api-version=2024-10-21"
)


class ParseLLMJsonTests(TestCase):
    """Tests for the LLM JSON reply parser."""

    def test_plain_and_fenced_json(self):
        """Test bare JSON and markdown fenced JSON both parse."""
        self.assertEqual(parse_llm_json('[{"name": "A"}]').data, [{"name": "A"}])
        fenced = '```json\n{"tools": [{"name": "B"}]}\n```'
        self.assertEqual(parse_llm_json(fenced).as_list(), [{"name": "B"}])

    def test_json_embedded_in_prose(self):
        """Test the JSON payload is found inside surrounding text."""
        result = parse_llm_json('Here you go: {"name": "C", "pros": ["fast"]} Enjoy!')
        self.assertTrue(result.success)
        self.assertEqual(result.as_dict()["pros"], ["fast"])

    def test_control_characters_are_tolerated(self):
        """Test raw newlines inside strings do not break parsing."""
        result = parse_llm_json('{"description": "line one\nline two"}')
        self.assertEqual(result.data["description"], "line one\nline two")

    def test_failures(self):
        """Test empty and non-JSON replies yield failures."""
        for text in (None, "", "   ", "no json at all", "{broken"):
            result = parse_llm_json(text)
            self.assertFalse(result.success, text)
            self.assertIsNone(result.as_list())
            self.assertIsNone(result.as_dict())

    def test_as_list_unwrapping(self):
        """Test the shapes JSON mode replies come in are unwrapped."""
        self.assertEqual(parse_llm_json('{"products": [{"name": "P"}]}').as_list(), [{"name": "P"}])
        self.assertEqual(parse_llm_json('{"ranking": [{"name": "R"}]}').as_list(), [{"name": "R"}])
        self.assertEqual(parse_llm_json('{"name": "Solo"}').as_list(), [{"name": "Solo"}])
        self.assertIsNone(parse_llm_json('{"count": 2}').as_list())

    def test_as_dict_unwrapping(self):
        """Test enhancement replies wrapped in a tool key or a list are unwrapped."""
        self.assertEqual(parse_llm_json('{"tool": {"name": "T"}}').as_dict(), {"name": "T"})
        self.assertEqual(parse_llm_json('[{"name": "L"}]').as_dict(), {"name": "L"})
        self.assertIsNone(parse_llm_json('[1, 2]').as_dict())


class PromptSystemTests(TestCase):
    """Tests for prompt selection and settings."""

    def setUp(self):
        self.prompts = PromptSystem(max_content_chars=50)

    def test_task_tags(self):
        """Test tags map to task types and unknown tags fall back."""
        self.assertEqual(TaskType.from_tag("rank_tools_by_relevance"), TaskType.RANK_TOOLS_BY_RELEVANCE)
        self.assertEqual(TaskType.from_tag(None), TaskType.GENERAL_ANALYSIS)
        self.assertEqual(TaskType.from_tag("something_else"), TaskType.GENERAL_ANALYSIS)
        self.assertTrue(TaskType.EXTRACT_TOOLS_GENERIC.is_extraction)
        self.assertFalse(TaskType.ENHANCE_TOOL_DETAILS.is_extraction)

    def test_settings_per_task(self):
        """Test sampling settings for tagged, chat and default tasks."""
        ranking = self.prompts.get_settings(TaskType.RANK_TOOLS_BY_RELEVANCE)
        chat = self.prompts.get_settings(TaskType.CONTEXTUAL_CHAT_RESPONSE)
        general = self.prompts.get_settings(TaskType.GENERAL_ANALYSIS)

        self.assertEqual((ranking.temperature, ranking.max_tokens, ranking.json_mode), (0.1, 4000, True))
        self.assertEqual((chat.temperature, chat.max_tokens, chat.json_mode), (0.5, 500, False))
        self.assertEqual((general.temperature, general.max_tokens, general.json_mode), (0.7, 4000, False))

    def test_unknown_tag_gets_structured_settings(self):
        """Test an unrecognized task tag still gets low temperature and JSON mode."""
        task = TaskType.from_tag("summarize_tool")
        settings = self.prompts.get_settings(task, "summarize_tool")

        self.assertEqual(task, TaskType.GENERAL_ANALYSIS)
        self.assertEqual((settings.temperature, settings.json_mode), (0.1, True))

    def test_content_is_truncated(self):
        """Test page content inserted into prompts is truncated."""
        task, _, user_prompt = self.prompts.build_prompts(
            {"task": "extract_tools_generic", "query": "notes", "content": "x" * 200}
        )
        self.assertEqual(task, TaskType.EXTRACT_TOOLS_GENERIC)
        self.assertIn("x" * 50, user_prompt)
        self.assertNotIn("x" * 51, user_prompt)

    def test_ranking_prompt_lists_tools(self):
        """Test the ranking prompt carries the tools and the query."""
        _, system_prompt, user_prompt = self.prompts.build_prompts(
            {"task": "rank_tools_by_relevance", "query": "notes", "tools": [{"name": "Quill"}]}
        )
        self.assertIn('"notes"', system_prompt)
        self.assertIn('"name": "Quill"', user_prompt)
        self.assertIn('{"tools": [ ... ]}', user_prompt)

    def test_chat_prompt_passthrough(self):
        """Test the chat task uses the caller's system prompt and message."""
        _, system_prompt, user_prompt = self.prompts.build_prompts(
            {
                "task": "contextual_chat_response",
                "system_prompt": "You discuss Quill.",
                "chat_message": "Is it free?",
            }
        )
        self.assertEqual(system_prompt, "You discuss Quill.")
        self.assertEqual(user_prompt, "Is it free?")


class AzureOpenAIConfigTests(TestCase):
    """Tests for endpoint parsing."""

    def test_endpoint_is_split(self):
        """Test the full URL is split into endpoint, deployment and version."""
        config = AzureOpenAIConfig(api_key="key", endpoint_url=ENDPOINT)

        self.assertEqual(config.azure_endpoint, "https://tools-resource.cognitiveservices.azure.com")
        self.assertEqual(config.deployment, "gpt-4o")
        self.assertEqual(config.api_version, "2024-10-21")
        self.assertTrue(config.is_configured())
        self.assertNotIn("api_key", config.to_dict())

    def test_missing_values(self):
        """Test a config without key or endpoint is not configured."""
        self.assertFalse(AzureOpenAIConfig(api_key="", endpoint_url=ENDPOINT).is_configured())
        self.assertFalse(AzureOpenAIConfig(api_key="key", endpoint_url="").is_configured())


class AzureOpenAIServiceTests(IsolatedAsyncioTestCase):
    """Tests for task dispatch and failure handling."""

    def make_service(self):
        with patch("microservices.tool_finder.ai_agents.core.llm.llm_service.AzureChatOpenAI") as mock_client:
            service = AzureOpenAIService(AzureOpenAIConfig(api_key="key", endpoint_url=ENDPOINT))
        return service, mock_client

    async def test_client_built_from_endpoint(self):
        """Test the chat client receives the parsed endpoint parts."""
        service, mock_client = self.make_service()

        self.assertTrue(service.is_initialized())
        kwargs = mock_client.call_args.kwargs
        self.assertEqual(kwargs["azure_deployment"], "gpt-4o")
        self.assertEqual(kwargs["api_version"], "2024-10-21")

    async def test_structured_task_uses_json_mode(self):
        """Test tagged tasks are sent with low temperature and JSON mode."""
        service, _ = self.make_service()
        bound = MagicMock()
        bound.ainvoke = AsyncMock(return_value=MagicMock(content='{"tools": []}'))
        service.llm = MagicMock()
        service.llm.bind.return_value = bound

        reply = await service.analyze_tool(
            {"task": "rank_tools_by_relevance", "query": "notes", "tools": []}
        )

        self.assertEqual(reply, '{"tools": []}')
        service.llm.bind.assert_called_once_with(
            temperature=0.1, max_tokens=4000, response_format={"type": "json_object"}
        )
        messages = bound.ainvoke.call_args.args[0]
        self.assertEqual(len(messages), 2)

    async def test_chat_task_is_free_text(self):
        """Test the chat task is sent without JSON mode."""
        service, _ = self.make_service()
        bound = MagicMock()
        bound.ainvoke = AsyncMock(return_value=MagicMock(content="Sure!"))
        service.llm = MagicMock()
        service.llm.bind.return_value = bound

        await service.analyze_tool({"task": "contextual_chat_response", "chat_message": "hi"})

        service.llm.bind.assert_called_once_with(temperature=0.5, max_tokens=500)

    async def test_unknown_tag_is_sent_in_json_mode(self):
        """Test an unrecognized tag is sent as a structured JSON task."""
        service, _ = self.make_service()
        bound = MagicMock()
        bound.ainvoke = AsyncMock(return_value=MagicMock(content="{}"))
        service.llm = MagicMock()
        service.llm.bind.return_value = bound

        await service.analyze_tool({"task": "summarize_tool", "query": "notes"})

        service.llm.bind.assert_called_once_with(
            temperature=0.1, max_tokens=4000, response_format={"type": "json_object"}
        )
        system_message = bound.ainvoke.call_args.args[0][0]
        self.assertIn("JSON", system_message.content)

    async def test_extraction_failure_returns_fallback_list(self):
        """Test extraction tasks resolve to a fallback tool list on failure."""
        service = AzureOpenAIService(AzureOpenAIConfig(api_key="", endpoint_url=""))

        reply = await service.analyze_tool({"task": "extract_tools_generic", "query": "notes"})

        tools = json.loads(reply)
        self.assertEqual(len(tools), 1)
        self.assertEqual(tools[0]["name"], "AI Notes Assistant")

    async def test_other_task_failure_is_raised(self):
        """Test non-extraction tasks re-raise failures."""
        service = AzureOpenAIService(AzureOpenAIConfig(api_key="", endpoint_url=""))

        with self.assertRaises(LLMUnavailableError):
            await service.analyze_tool({"task": "enhance_tool_details", "tool": {}})

    def test_fallback_response_shape(self):
        """Test the canned fallback list holds the expected fields."""
        tool = json.loads(create_fallback_tool_response("photo editing?"))[0]
        self.assertEqual(tool["name"], "AI Photo editing Assistant")
        self.assertIn("photo%20editing%3F", tool["url"])

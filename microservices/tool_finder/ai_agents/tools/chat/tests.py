"""Tests for the chat assistant."""

import json
from unittest import IsolatedAsyncioTestCase
from unittest.mock import AsyncMock, MagicMock

from .service import APOLOGY_MESSAGE, ChatService

TOOL = {
    "name": "CutPro AI",
    "description": "Edits videos automatically",
    "url": "https://cutpro.example",
    "features": ["Auto cut", "Captions"],
    "useCases": ["YouTube editing"],
}


class ChatServiceTests(IsolatedAsyncioTestCase):
    """Tests for contextual chat replies."""

    def setUp(self):
        self.llm = MagicMock()
        self.llm.analyze_tool = AsyncMock(return_value="It trims silences for you.")
        self.service = ChatService(self.llm)

    async def test_reply_with_tool_context(self):
        """Test the tool context is sent with the chat task."""
        reply = await self.service.get_ai_chat_response("What does it do?", TOOL)

        self.assertEqual(reply, "It trims silences for you.")
        payload = self.llm.analyze_tool.call_args.args[0]
        self.assertEqual(payload["task"], "contextual_chat_response")
        self.assertIn("CutPro AI", payload["system_prompt"])
        self.assertIn("Auto cut, Captions", payload["chat_message"])
        self.assertIn("What does it do?", payload["chat_message"])

    async def test_reply_without_tool_context(self):
        """Test a general prompt is used when no tool is shown."""
        await self.service.get_ai_chat_response("Any good note apps?")

        payload = self.llm.analyze_tool.call_args.args[0]
        self.assertIn("no specific tool is in context", payload["chat_message"])
        self.assertIn("specialized in discussing software tools", payload["system_prompt"])

    async def test_json_reply_is_unwrapped(self):
        """Test a {"response": ...} reply is unwrapped."""
        self.llm.analyze_tool.return_value = json.dumps({"response": "Yes, it has captions."})

        reply = await self.service.get_ai_chat_response("Captions?", TOOL)

        self.assertEqual(reply, "Yes, it has captions.")

    async def test_failure_returns_apology(self):
        """Test a failed call returns the apology message."""
        self.llm.analyze_tool.side_effect = RuntimeError("Azure OpenAI API key is missing")

        reply = await self.service.get_ai_chat_response("Hello?", TOOL)

        self.assertEqual(reply, APOLOGY_MESSAGE)

"""Tests for the tool finder HTTP routes."""

from unittest import TestCase
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from microservices.tool_finder.ai_agents.core.llm import (
    AzureOpenAIConfig,
    AzureOpenAIService,
)
from microservices.tool_finder.ai_agents.core.performance_monitor import (
    PerformanceMonitor,
)
from microservices.tool_finder.ai_agents.core.validation import ToolDataFormatter
from microservices.tool_finder.ai_agents.tools.chat import APOLOGY_MESSAGE, ChatService
from microservices.tool_finder.ai_agents.tools.firecrawl import (
    FirecrawlConfig,
    FirecrawlService,
)
from microservices.tool_finder.ai_agents.tools.tool_finder import EmptyQueryError
from microservices.tool_finder.main import app
from microservices.tool_finder.routes.dependencies import (
    get_chat_service,
    get_firecrawl_service,
    get_llm_service,
    get_tool_finder_service,
)


class RouteTestCase(TestCase):
    """Base class wiring fake services into the app."""

    def setUp(self):
        self.tool_finder = MagicMock()
        self.tool_finder.sources = []
        self.tool_finder.performance_monitor = PerformanceMonitor()
        self.chat_service = MagicMock()
        self.firecrawl = FirecrawlService(FirecrawlConfig(api_key="fc-test"))
        self.llm = AzureOpenAIService(AzureOpenAIConfig(api_key="", endpoint_url=""))

        app.dependency_overrides[get_tool_finder_service] = lambda: self.tool_finder
        app.dependency_overrides[get_chat_service] = lambda: self.chat_service
        app.dependency_overrides[get_firecrawl_service] = lambda: self.firecrawl
        app.dependency_overrides[get_llm_service] = lambda: self.llm
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()


class FindToolsRouteTests(RouteTestCase):
    """Tests for POST /tool_finder/find."""

    def test_find_tools_success(self):
        """Test tools are returned with camelCase keys and the request id."""
        tool = ToolDataFormatter.create_fallback_tool("video editing", "NoSource")
        self.tool_finder.find_tools = AsyncMock(return_value=[tool])

        response = self.client.post(
            "/tool_finder/find", json={"query": "video editing", "requestId": "r-7"}
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "success")
        self.assertEqual(body["count"], 1)
        self.assertEqual(body["requestId"], "r-7")
        self.assertIn("useCases", body["tools"][0])
        self.assertEqual(body["tools"][0]["name"], "AI Video Editing Tool")
        self.tool_finder.find_tools.assert_awaited_once_with("video editing")

    def test_empty_query_returns_400(self):
        """Test an empty query is rejected."""
        self.tool_finder.find_tools = AsyncMock(
            side_effect=EmptyQueryError("Search query must not be empty")
        )

        response = self.client.post("/tool_finder/find", json={"query": "  "})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Search query must not be empty")

    def test_unexpected_error_returns_500(self):
        """Test unexpected failures surface as server errors."""
        self.tool_finder.find_tools = AsyncMock(side_effect=RuntimeError("boom"))

        response = self.client.post("/tool_finder/find", json={"query": "notes"})

        self.assertEqual(response.status_code, 500)
        self.assertIn("boom", response.json()["detail"])

    def test_missing_query_is_a_validation_error(self):
        """Test a body without a query is rejected by validation."""
        response = self.client.post("/tool_finder/find", json={})
        self.assertEqual(response.status_code, 422)


class ChatRouteTests(RouteTestCase):
    """Tests for POST /tool_finder/chat."""

    def test_chat_reply(self):
        """Test the reply is returned for a message about a tool."""
        self.chat_service.get_ai_chat_response = AsyncMock(return_value="It edits video.")
        tool = {"name": "CutPro AI", "description": "Edits videos", "url": "https://cutpro.example"}

        response = self.client.post(
            "/tool_finder/chat", json={"message": "What is it?", "tool": tool}
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "success", "reply": "It edits video."})
        self.chat_service.get_ai_chat_response.assert_awaited_once_with("What is it?", tool)

    def test_chat_without_credentials_apologizes(self):
        """Test the real chat service answers with an apology when offline."""
        app.dependency_overrides[get_chat_service] = lambda: ChatService(self.llm)

        response = self.client.post("/tool_finder/chat", json={"message": "Hello"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["reply"], APOLOGY_MESSAGE)

    def test_empty_message_returns_400(self):
        """Test an empty chat message is rejected."""
        response = self.client.post("/tool_finder/chat", json={"message": " "})
        self.assertEqual(response.status_code, 400)


class HealthRouteTests(RouteTestCase):
    """Tests for GET /tool_finder/health/."""

    def test_health_reports_degraded_without_llm(self):
        """Test the health report lists service configuration and timings."""
        response = self.client.get("/tool_finder/health/")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "degraded")
        self.assertTrue(body["services"]["firecrawl"]["configured"])
        self.assertFalse(body["services"]["azure_openai"]["client_initialized"])
        self.assertIn("performance_status", body["performance"])

"""Tests for retry, validation and formatting helpers."""

from unittest import IsolatedAsyncioTestCase, TestCase
from unittest.mock import AsyncMock, MagicMock, patch

from microservices.tool_finder.serializers import AppTool, ToolCandidate

from .performance_monitor import PerformanceMonitor
from .retry import DEFAULT_EXHAUSTED_MESSAGE, RetryExhaustedError, retry_with_fallback
from .validation import ToolDataFormatter, ToolDataValidator, normalize_query


def ok(**kwargs):
    return {"success": True, **kwargs}


def failed(error="failed"):
    return {"success": False, "error": error}


@patch("microservices.tool_finder.ai_agents.core.retry.asyncio.sleep", new_callable=AsyncMock)
class RetryWithFallbackTests(IsolatedAsyncioTestCase):
    """Tests for the shared retry helper."""

    async def test_returns_first_success(self, mock_sleep):
        """Test that a successful first attempt is returned without waiting."""
        operation = AsyncMock(return_value=ok(data=1))

        result = await retry_with_fallback(operation, max_attempts=3, delay_seconds=2)

        self.assertEqual(result["data"], 1)
        operation.assert_awaited_once()
        mock_sleep.assert_not_awaited()

    async def test_ceiling_and_fixed_delay(self, mock_sleep):
        """Test the attempt ceiling and a fixed delay between attempts."""
        operation = AsyncMock(return_value=failed("rate limited"))

        with self.assertRaises(RetryExhaustedError) as ctx:
            await retry_with_fallback(operation, max_attempts=3, delay_seconds=2)

        self.assertEqual(operation.await_count, 3)
        self.assertEqual([c.args[0] for c in mock_sleep.await_args_list], [2, 2])
        self.assertEqual(ctx.exception.message, "rate limited")
        self.assertEqual(ctx.exception.attempts, 3)

    async def test_on_failure_and_degrade_hooks(self, mock_sleep):
        """Test hooks run between attempts and degrade runs before the last one."""
        events = []
        operation = AsyncMock(side_effect=[failed(), failed(), ok()])

        async def run():
            events.append("call")
            return await operation()

        await retry_with_fallback(
            run,
            max_attempts=3,
            delay_seconds=0,
            on_failure=lambda attempt: events.append(f"toggle{attempt}"),
            degrade=lambda: events.append("degrade"),
        )

        self.assertEqual(
            events, ["call", "toggle1", "call", "toggle2", "degrade", "call"]
        )

    async def test_exceptions_are_retried(self, mock_sleep):
        """Test that a raised exception counts as a failed attempt."""
        operation = AsyncMock(side_effect=[ConnectionError("reset"), ok()])

        result = await retry_with_fallback(operation, max_attempts=2, delay_seconds=0)

        self.assertTrue(result["success"])
        self.assertEqual(operation.await_count, 2)

    async def test_generic_message_without_error(self, mock_sleep):
        """Test the generic message when failures carry no error."""
        operation = AsyncMock(return_value=MagicMock(success=False, error=None))

        with self.assertRaises(RetryExhaustedError) as ctx:
            await retry_with_fallback(operation, max_attempts=2, delay_seconds=0)

        self.assertEqual(ctx.exception.message, DEFAULT_EXHAUSTED_MESSAGE)


class QueryNormalizerTests(TestCase):
    """Tests for query normalization."""

    def test_strips_fillers_and_punctuation(self):
        """Test filler phrases and punctuation are removed."""
        self.assertEqual(normalize_query("What is the best AI tool for image generation?"), "image generation")
        self.assertEqual(normalize_query("  tools for   video editing. "), "video editing")

    def test_keeps_words_containing_fillers(self):
        """Test fillers are only removed as whole words."""
        self.assertEqual(normalize_query("email automation"), "email automation")
        self.assertEqual(normalize_query("detailed paint app"), "detailed paint app")

    def test_is_idempotent(self):
        """Test normalizing twice equals normalizing once."""
        for query in (
            "what is the best AI tool for writing?",
            "tools for tools for music",
            "the best!",
            "AI",
            "  Resume   builder ",
        ):
            once = normalize_query(query)
            self.assertEqual(normalize_query(once), once, query)

    def test_never_empty_for_non_empty_input(self):
        """Test the raw query is kept when normalization would empty it."""
        self.assertEqual(normalize_query("  AI? "), "AI?")
        self.assertEqual(normalize_query("what is the best"), "what is the best")


class ToolDataValidatorTests(TestCase):
    """Tests for candidate and record validation."""

    def setUp(self):
        self.validator = ToolDataValidator()

    def test_listicle_names(self):
        """Test list article titles are detected as whole words."""
        self.assertTrue(self.validator.is_listicle("Top 10 AI Video Editors"))
        self.assertTrue(self.validator.is_listicle("The BEST image generators"))
        self.assertTrue(self.validator.is_listicle("AI tools to use in 2025"))
        self.assertFalse(self.validator.is_listicle("Topaz Video AI"))
        self.assertFalse(self.validator.is_listicle("Bestow Writer"))

    def test_candidate_rules(self):
        """Test candidates need a name and a product or directory URL."""
        directory = "https://www.producthunt.com/search?q=x+AI"
        valid = ToolCandidate(name="Quill", url="https://quill.example", source="S")
        no_name = ToolCandidate(name=" ", url="https://x.example", source="S")
        no_url = ToolCandidate(name="Quill", description="Writes", source="S", directory_url=directory)
        nothing = ToolCandidate(name="Quill", source="S", directory_url=directory)

        self.assertIs(self.validator.validate_candidate(valid), valid)
        self.assertIsNone(self.validator.validate_candidate(no_name))
        self.assertEqual(self.validator.validate_candidate(no_url).url, directory)
        self.assertIsNone(self.validator.validate_candidate(nothing))

    def test_missing_detail_fields(self):
        """Test empty detail fields are reported."""
        details = {"features": ["a"], "use_cases": [], "pros": None}
        self.assertEqual(
            self.validator.missing_detail_fields(details), ["use_cases", "pros", "cons"]
        )

    def test_required_fields(self):
        """Test records need a name, description and url."""
        tool = AppTool(name="Quill", description="Writes", url="https://quill.example", source="S")
        blank = AppTool(name="Quill", description=" ", url="https://quill.example", source="S")
        self.assertTrue(self.validator.has_required_fields(tool))
        self.assertFalse(self.validator.has_required_fields(blank))


class ToolDataFormatterTests(TestCase):
    """Tests for record shaping."""

    def setUp(self):
        self.formatter = ToolDataFormatter()

    def test_fallback_tool(self):
        """Test the fallback record is derived from the query only."""
        tool = self.formatter.create_fallback_tool("image generation", "NoSource")

        self.assertEqual(tool.name, "AI Image Generation Tool")
        self.assertEqual(
            tool.url, "https://www.google.com/search?q=image%20generation%20AI%20tool"
        )
        self.assertEqual(tool.source, "NoSource")
        self.assertTrue(tool.features and tool.use_cases and tool.pros and tool.cons)

    def test_fallback_name_for_punctuation_query(self):
        """Test a punctuation-only query gives a single-spaced fallback name."""
        tool = self.formatter.create_fallback_tool(normalize_query("???"), "NoSource")

        self.assertEqual(tool.name, "AI Tool")

    def test_finalize_applies_defaults(self):
        """Test gaps are filled with templated defaults."""
        tool = self.formatter.finalize_tool(
            {"name": "Quill", "description": "", "upvotes": 12},
            "writing",
            "https://quill.example",
            "ProductHunt",
        )

        self.assertEqual(tool.url, "https://quill.example")
        self.assertEqual(tool.description, "An AI tool for writing. Visit the website to learn more.")
        self.assertEqual(tool.features[1], "Intuitive interface for Quill")
        self.assertEqual(tool.categories, ["writing", "AI"])
        self.assertEqual(tool.badges, ["AI", "writing"])
        self.assertEqual(tool.pricing, "Check website")
        self.assertEqual(tool.upvotes, 12)

    def test_merge_and_fill_gaps(self):
        """Test extraction overwrites while enhancement only fills gaps."""
        details = {"name": "Quill", "description": "Old", "features": []}
        merged = self.formatter.merge_extracted(
            details, {"description": "New", "useCases": ["Blogs"], "unknown": "x"}
        )
        self.assertEqual(merged["description"], "New")
        self.assertEqual(merged["use_cases"], ["Blogs"])
        self.assertNotIn("unknown", merged)

        filled = self.formatter.fill_gaps(merged, {"description": "Other", "features": ["Drafts"]})
        self.assertEqual(filled["description"], "New")
        self.assertEqual(filled["features"], ["Drafts"])

    def test_pricing_tiers(self):
        """Test pricing accepts text or tier lists."""
        self.assertEqual(self.formatter.coerce_pricing("Free"), "Free")
        tiers = self.formatter.coerce_pricing(
            [{"name": "Pro", "price": "$10", "billingPeriod": "month", "features": "A, B"}]
        )
        self.assertEqual(tiers[0].billing_period, "month")
        self.assertEqual(tiers[0].features, ["A", "B"])

        tool = self.formatter.finalize_tool(
            {"name": "Quill", "description": "d", "pricing": tiers}, "q", "https://q.example", "S"
        )
        self.assertEqual(tool.to_response()["pricing"][0]["billingPeriod"], "month")


class PerformanceMonitorTests(IsolatedAsyncioTestCase):
    """Tests for stage timing."""

    async def test_stage_timing_and_report(self):
        """Test stage timings and request averages are recorded."""
        monitor = PerformanceMonitor()

        async with monitor.time_operation("ranking"):
            pass
        monitor.record_request(10.0)
        monitor.record_request(50.0, used_fallback=True)

        report = monitor.get_performance_report()
        self.assertIn("ranking_time", report)
        self.assertEqual(report["average_response_time"], 30.0)
        self.assertEqual(report["fallback_results"], 1)
        self.assertEqual(report["performance_status"], "good")

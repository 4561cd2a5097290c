"""Tests for the Firecrawl adapter."""

from unittest import IsolatedAsyncioTestCase, TestCase
from unittest.mock import AsyncMock, patch

from .config import FirecrawlConfig
from .helpers import ProductCardParser, extract_products
from .models import CrawlOptions, ScrapeOptions, SearchOptions
from .service import FirecrawlService

FAILURE = {"success": False, "error": "blocked"}


def make_service(api_key="fc-test"):
    """Build a service with no waits between attempts."""
    config = FirecrawlConfig(api_key=api_key, base_url="https://firecrawl.test")
    config.scrape_retry_delay = 0
    config.search_retry_delay = 0
    config.crawl_retry_delay = 0
    config.crawl_poll_interval = 0
    return FirecrawlService(config)


def payloads(mock_request):
    """Request bodies sent through the mocked ``_request``."""
    return [call.args[2] for call in mock_request.call_args_list]


class ScrapeUrlTests(IsolatedAsyncioTestCase):
    """Tests for single-page scraping."""

    def setUp(self):
        self.service = make_service()

    async def test_success_on_first_attempt(self):
        """Test a scrape that succeeds immediately with default options."""
        response = {"success": True, "data": {"markdown": "# Tool", "html": "<h1>Tool</h1>"}}
        with patch.object(
            self.service, "_request", new=AsyncMock(return_value=response)
        ) as mock_request:
            result = await self.service.scrape_url("https://tool.example")

        self.assertTrue(result.success)
        self.assertEqual(result.data.markdown, "# Tool")
        mock_request.assert_awaited_once()
        body = payloads(mock_request)[0]
        self.assertEqual(body["url"], "https://tool.example")
        self.assertEqual(body["formats"], ["markdown", "html"])
        self.assertEqual(body["proxy"], "stealth")
        self.assertTrue(body["onlyMainContent"])

    async def test_proxy_alternates_and_final_attempt_is_degraded(self):
        """Test three failed attempts toggle the proxy and simplify the last one."""
        options = ScrapeOptions(formats=["markdown", "html"], wait_for=3000)
        with patch.object(
            self.service, "_request", new=AsyncMock(return_value=FAILURE)
        ) as mock_request:
            result = await self.service.scrape_url("https://tool.example", options)

        self.assertFalse(result.success)
        self.assertEqual(result.error, "blocked")
        self.assertEqual(mock_request.await_count, 3)

        bodies = payloads(mock_request)
        self.assertEqual([b["proxy"] for b in bodies], ["stealth", "basic", "stealth"])
        self.assertEqual(bodies[1]["waitFor"], 3000)
        self.assertEqual(bodies[2]["formats"], ["markdown"])
        self.assertNotIn("jsonOptions", bodies[2])
        self.assertNotIn("onlyMainContent", bodies[2])
        self.assertNotIn("waitFor", bodies[2])

    async def test_json_format_without_options_is_dropped(self):
        """Test that a json format without jsonOptions is removed."""
        response = {"success": True, "data": {"markdown": "text"}}
        with patch.object(
            self.service, "_request", new=AsyncMock(return_value=response)
        ) as mock_request:
            await self.service.scrape_url(
                "https://tool.example", ScrapeOptions(formats=["json", "markdown"])
            )

        self.assertEqual(payloads(mock_request)[0]["formats"], ["markdown"])

    async def test_transport_error_counts_as_failed_attempt(self):
        """Test an exception is retried like a failure result."""
        response = {"success": True, "data": {"markdown": "ok"}}
        with patch.object(
            self.service,
            "_request",
            new=AsyncMock(side_effect=[ConnectionError("reset"), response]),
        ) as mock_request:
            result = await self.service.scrape_url("https://tool.example")

        self.assertTrue(result.success)
        self.assertEqual(mock_request.await_count, 2)
        self.assertEqual(payloads(mock_request)[1]["proxy"], "basic")

    async def test_missing_api_key_fails_without_request(self):
        """Test that an unconfigured service fails at the first request."""
        service = make_service(api_key="")
        with patch.object(service, "_request", new=AsyncMock()) as mock_request:
            result = await service.scrape_url("https://tool.example")

        self.assertFalse(result.success)
        self.assertIn("not configured", result.error)
        mock_request.assert_not_awaited()

    async def test_agent_extraction_sends_tool_schema(self):
        """Test deep extraction requests json with the tool details schema."""
        response = {"success": True, "data": {"json": {"name": "Midjourney"}}}
        with patch.object(
            self.service, "_request", new=AsyncMock(return_value=response)
        ) as mock_request:
            result = await self.service.extract_tool_info_with_agent("https://midjourney.com")

        self.assertTrue(result.success)
        self.assertEqual(result.data.json_data, {"name": "Midjourney"})
        body = payloads(mock_request)[0]
        self.assertEqual(body["formats"], ["json"])
        self.assertIn("useCases", body["jsonOptions"]["schema"]["properties"])
        self.assertEqual(body["waitFor"], 3000)


class SearchTests(IsolatedAsyncioTestCase):
    """Tests for web search."""

    def setUp(self):
        self.service = make_service()

    async def test_search_returns_documents(self):
        """Test search results are parsed into documents."""
        response = {
            "success": True,
            "data": [
                {"url": "https://a.example", "title": "Tool A", "markdown": "About A"},
                {"url": "https://b.example", "title": "Tool B"},
            ],
        }
        with patch.object(
            self.service, "_request", new=AsyncMock(return_value=response)
        ) as mock_request:
            result = await self.service.search(
                "image generation AI tool", SearchOptions(limit=5, only_main_content=True)
            )

        self.assertTrue(result.success)
        self.assertEqual([doc.title for doc in result.data], ["Tool A", "Tool B"])
        body = payloads(mock_request)[0]
        self.assertEqual(body["limit"], 5)
        self.assertEqual(body["scrapeOptions"]["formats"], ["markdown"])

    async def test_search_final_attempt_keeps_only_limit(self):
        """Test three attempts, the last one carrying only query and limit."""
        with patch.object(
            self.service, "_request", new=AsyncMock(return_value=FAILURE)
        ) as mock_request:
            result = await self.service.search("x", SearchOptions(limit=5))

        self.assertFalse(result.success)
        self.assertEqual(mock_request.await_count, 3)
        self.assertEqual(payloads(mock_request)[2], {"query": "x", "limit": 5})


class CrawlTests(IsolatedAsyncioTestCase):
    """Tests for crawl jobs."""

    def setUp(self):
        self.service = make_service()

    async def test_crawl_polls_until_completed(self):
        """Test a crawl job is started and polled to completion."""
        responses = [
            {"success": True, "id": "job-1"},
            {"success": True, "status": "scraping"},
            {
                "success": True,
                "status": "completed",
                "total": 1,
                "completed": 1,
                "data": [{"markdown": "page"}],
            },
        ]
        with patch.object(
            self.service, "_request", new=AsyncMock(side_effect=responses)
        ) as mock_request:
            result = await self.service.crawl_website("https://tool.example")

        self.assertTrue(result.success)
        self.assertEqual(result.status, "completed")
        self.assertEqual(result.data[0].markdown, "page")
        self.assertEqual(mock_request.call_args_list[1].args[:2], ("GET", "/v1/crawl/job-1"))

    async def test_crawl_gives_up_after_two_attempts(self):
        """Test the crawl retry ceiling and final degrade."""
        with patch.object(
            self.service, "_request", new=AsyncMock(return_value=FAILURE)
        ) as mock_request:
            result = await self.service.crawl_website(
                "https://tool.example", CrawlOptions(limit=3)
            )

        self.assertFalse(result.success)
        self.assertEqual(mock_request.await_count, 2)
        bodies = payloads(mock_request)
        self.assertEqual(bodies[0]["scrapeOptions"]["proxy"], "stealth")
        self.assertEqual(bodies[1]["scrapeOptions"]["proxy"], "basic")
        self.assertEqual(bodies[1]["scrapeOptions"]["formats"], ["markdown"])


DIRECTORY_HTML = """
<main>
  <section>
    <a href="/posts/pixelmagic"><img src="https://img.example/pm.png"/>PixelMagic</a>
    <a href="/posts/pixelmagic">Generate images from text</a>
    <button>1,204</button>
  </section>
  <section>
    <a href="https://www.producthunt.com/products/drawbot?ref=search">DrawBot</a>
    <button>87</button>
  </section>
  <a href="/topics/ai">AI</a>
</main>
"""


class ScrapeToolSearchTests(IsolatedAsyncioTestCase):
    """Tests for directory searches."""

    def setUp(self):
        self.service = make_service()

    async def test_products_from_llm_extraction(self):
        """Test the product list comes from the JSON extraction pass."""
        responses = [
            {"success": True, "data": {"html": "<main></main>"}},
            {
                "success": True,
                "data": {"json": {"products": [{"name": "PixelMagic", "url": "https://www.producthunt.com/posts/pixelmagic"}]}},
            },
        ]
        with patch.object(
            self.service, "_request", new=AsyncMock(side_effect=responses)
        ) as mock_request:
            result = await self.service.scrape_tool_search("image generation")

        self.assertTrue(result.success)
        self.assertEqual(result.data.json_data["products"][0]["name"], "PixelMagic")
        self.assertEqual(
            payloads(mock_request)[0]["url"],
            "https://www.producthunt.com/search?q=image+generation+AI",
        )

    async def test_falls_back_to_card_parser(self):
        """Test the HTML cards are parsed when extraction yields nothing."""
        responses = [
            {"success": True, "data": {"html": DIRECTORY_HTML}},
            {"success": True, "data": {"json": {"products": []}}},
        ]
        with patch.object(self.service, "_request", new=AsyncMock(side_effect=responses)):
            result = await self.service.scrape_tool_search("image generation")

        self.assertTrue(result.success)
        names = [p["name"] for p in result.data.json_data["products"]]
        self.assertEqual(names, ["PixelMagic", "DrawBot"])
        self.assertEqual(result.data.html, DIRECTORY_HTML)

    async def test_unsupported_site(self):
        """Test an unknown directory fails without a request."""
        with patch.object(self.service, "_request", new=AsyncMock()) as mock_request:
            result = await self.service.scrape_tool_search("x", site="nowhere")

        self.assertFalse(result.success)
        mock_request.assert_not_awaited()


class ProductCardParserTests(TestCase):
    """Tests for the HTML product card parser."""

    def test_parse_cards(self):
        """Test names, descriptions, links, images and upvotes are collected."""
        parser = ProductCardParser("https://www.producthunt.com/search?q=image+AI")
        products = parser.parse(DIRECTORY_HTML)

        self.assertEqual(len(products), 2)
        first, second = products
        self.assertEqual(first["url"], "https://www.producthunt.com/posts/pixelmagic")
        self.assertEqual(first["description"], "Generate images from text")
        self.assertEqual(first["imageUrl"], "https://img.example/pm.png")
        self.assertEqual(first["upvotes"], 1204)
        self.assertEqual(second["url"], "https://www.producthunt.com/products/drawbot")
        self.assertEqual(second["upvotes"], 87)

    def test_parse_empty_html(self):
        """Test that missing HTML yields no products."""
        self.assertEqual(ProductCardParser("https://x.example").parse(None), [])

    def test_extract_products_accepts_list_or_object(self):
        """Test bare lists and wrapped product lists are both accepted."""
        self.assertEqual(extract_products([{"name": "A"}, "junk"]), [{"name": "A"}])
        self.assertEqual(extract_products({"products": [{"name": "B"}]}), [{"name": "B"}])
        self.assertEqual(extract_products("nothing"), [])

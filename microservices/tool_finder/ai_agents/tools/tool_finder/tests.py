"""Tests for the tool discovery pipeline."""

import json
from unittest import IsolatedAsyncioTestCase
from unittest.mock import AsyncMock, MagicMock

from microservices.tool_finder.ai_agents.core.llm import (
    AzureOpenAIConfig,
    AzureOpenAIService,
)
from microservices.tool_finder.ai_agents.tools.firecrawl import (
    FirecrawlConfig,
    FirecrawlDocument,
    FirecrawlScrapeResult,
    FirecrawlSearchResult,
    FirecrawlService,
)
from microservices.tool_finder.serializers import ToolCandidate

from .service import EmptyQueryError, ToolFinderService
from .sources import DirectorySource, ToolSource, WebSearchSource, default_sources

EXTRACTION_FAILED = FirecrawlScrapeResult(success=False, error="blocked")


class FakeSource(ToolSource):
    """Source returning a fixed candidate list."""

    def __init__(self, name, candidates=None, error=None):
        self.name = name
        self.candidates = candidates or []
        self.error = error
        self.calls = 0

    async def search(self, query):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.candidates)


def candidate(name, url="", description="An AI tool", **kwargs):
    return ToolCandidate(
        name=name, url=url, description=description, source="ProductHunt", **kwargs
    )


def make_firecrawl(extraction=EXTRACTION_FAILED):
    firecrawl = MagicMock()
    firecrawl.extract_tool_info_with_agent = AsyncMock(return_value=extraction)
    return firecrawl


def make_llm(*replies):
    llm = MagicMock()
    llm.analyze_tool = AsyncMock(side_effect=list(replies))
    return llm


def offline_firecrawl():
    """A real Firecrawl service whose transport always fails."""
    config = FirecrawlConfig(api_key="fc-test", base_url="https://firecrawl.test")
    config.scrape_retry_delay = 0
    config.search_retry_delay = 0
    service = FirecrawlService(config)
    service._request = AsyncMock(side_effect=ConnectionError("network down"))
    return service


def offline_llm():
    """A real analysis service without credentials."""
    return AzureOpenAIService(AzureOpenAIConfig(api_key="", endpoint_url=""))


class FindToolsScenarioTests(IsolatedAsyncioTestCase):
    """End-to-end behaviour of ``find_tools``."""

    async def test_everything_failing_yields_fallback_record(self):
        """Test that a query with every external call failing gets a fallback."""
        firecrawl = offline_firecrawl()
        finder = ToolFinderService(firecrawl, offline_llm())

        tools = await finder.find_tools("image generation")

        self.assertEqual(len(tools), 1)
        tool = tools[0]
        self.assertIn("Image Generation", tool.name)
        self.assertTrue(tool.url.startswith("https://www.google.com/search?q="))
        self.assertEqual(tool.source, "NoSource")
        # Directory search (3 attempts) then generic search (3 attempts)
        self.assertEqual(firecrawl._request.await_count, 6)

    async def test_single_candidate_with_successful_enrichment(self):
        """Test a single enriched candidate comes back with full details."""
        extraction = FirecrawlScrapeResult(
            success=True,
            data=FirecrawlDocument.model_validate(
                {
                    "json": {
                        "name": "CutPro AI",
                        "description": "Edits videos automatically",
                        "features": ["Auto cut", "Captions"],
                        "useCases": ["YouTube editing"],
                        "pros": ["Fast"],
                        "cons": ["Paid export"],
                        "websiteUrl": "https://cutpro.example",
                    }
                }
            ),
        )
        source = FakeSource(
            "ProductHunt", [candidate("CutPro AI", url="https://www.producthunt.com/posts/cutpro")]
        )
        llm = make_llm()
        finder = ToolFinderService(make_firecrawl(extraction), llm, sources=[source])

        tools = await finder.find_tools("video editing")

        self.assertEqual(len(tools), 1)
        tool = tools[0]
        self.assertEqual(tool.features, ["Auto cut", "Captions"])
        self.assertEqual(tool.use_cases, ["YouTube editing"])
        self.assertEqual(tool.pros, ["Fast"])
        self.assertEqual(tool.cons, ["Paid export"])
        self.assertEqual(tool.url, "https://cutpro.example")
        llm.analyze_tool.assert_not_awaited()

    async def test_empty_query_is_rejected(self):
        """Test that an empty or whitespace query raises immediately."""
        finder = ToolFinderService(make_firecrawl(), make_llm(), sources=[])

        with self.assertRaises(EmptyQueryError):
            await finder.find_tools("")
        with self.assertRaises(EmptyQueryError):
            await finder.find_tools("   ")

    async def test_short_ranking_reply_keeps_original_order(self):
        """Test a ranking reply missing a tool returns the unranked list."""
        source = FakeSource(
            "ProductHunt",
            [
                candidate("Alpha", url="https://alpha.example"),
                candidate("Beta", url="https://beta.example"),
                candidate("Gamma", url="https://gamma.example"),
            ],
        )
        enhancement = json.dumps({"features": ["F"], "useCases": ["U"], "pros": ["P"], "cons": ["C"]})
        ranking = json.dumps({"tools": [{"name": "Gamma"}, {"name": "Alpha"}]})
        llm = make_llm(enhancement, enhancement, enhancement, ranking)
        finder = ToolFinderService(make_firecrawl(), llm, sources=[source])

        tools = await finder.find_tools("writing")

        self.assertEqual([tool.name for tool in tools], ["Alpha", "Beta", "Gamma"])


class PipelineTests(IsolatedAsyncioTestCase):
    """Tests for individual pipeline steps."""

    async def test_fallback_is_deterministic(self):
        """Test the same query always produces the same fallback record."""
        finder = ToolFinderService(make_firecrawl(), make_llm(), sources=[FakeSource("Empty")])

        first = await finder.find_tools("what is the best tool for music?")
        second = await finder.find_tools("what is the best tool for music?")

        self.assertEqual(first[0].name, second[0].name)
        self.assertEqual(first[0].url, second[0].url)
        self.assertEqual(first[0].name, "AI Music Tool")

    async def test_sources_tried_in_order_with_early_exit(self):
        """Test the second source is only used when the first yields nothing usable."""
        listicles = FakeSource("ProductHunt", [candidate("Top 10 AI Writers", url="https://list.example")])
        web = FakeSource("GenericWebSearch", [candidate("Quill", url="https://quill.example")])
        unused = FakeSource("Unused", [candidate("Other", url="https://other.example")])
        llm = make_llm(json.dumps({"features": ["Drafting"]}))
        finder = ToolFinderService(make_firecrawl(), llm, sources=[listicles, web, unused])

        tools = await finder.find_tools("writing")

        self.assertEqual([tool.name for tool in tools], ["Quill"])
        self.assertEqual(listicles.calls, 1)
        self.assertEqual(unused.calls, 0)

    async def test_failing_source_is_skipped(self):
        """Test that a source raising an error does not stop discovery."""
        broken = FakeSource("Broken", error=RuntimeError("boom"))
        working = FakeSource("Working", [candidate("Quill", url="https://quill.example")])
        finder = ToolFinderService(
            make_firecrawl(), make_llm(RuntimeError("llm down")), sources=[broken, working]
        )

        tools = await finder.find_tools("writing")

        self.assertEqual(tools[0].name, "Quill")
        self.assertTrue(tools[0].features)
        self.assertTrue(tools[0].pros)

    async def test_candidates_bounded_to_three(self):
        """Test that only the first three candidates are enriched."""
        source = FakeSource(
            "ProductHunt",
            [candidate(f"Tool {i}", url=f"https://tool{i}.example") for i in range(5)],
        )
        firecrawl = make_firecrawl()
        llm = MagicMock()
        llm.analyze_tool = AsyncMock(side_effect=RuntimeError("unavailable"))
        finder = ToolFinderService(firecrawl, llm, sources=[source])

        tools = await finder.find_tools("notes")

        self.assertEqual(len(tools), 3)
        self.assertEqual(firecrawl.extract_tool_info_with_agent.await_count, 3)

    async def test_enhancement_fills_only_missing_fields(self):
        """Test enhancement keeps extracted values and defaults cover the rest."""
        extraction = FirecrawlScrapeResult(
            success=True,
            data=FirecrawlDocument.model_validate({"json": {"features": ["Extracted"]}}),
        )
        source = FakeSource("ProductHunt", [candidate("Quill", url="https://quill.example")])
        llm = make_llm(json.dumps({"tool": {"features": ["Invented"], "pros": ["Handy"]}}))
        finder = ToolFinderService(make_firecrawl(extraction), llm, sources=[source])

        tool = (await finder.find_tools("writing"))[0]

        self.assertEqual(tool.features, ["Extracted"])
        self.assertEqual(tool.pros, ["Handy"])
        self.assertTrue(tool.use_cases)
        self.assertTrue(tool.cons)

    async def test_candidate_without_url_skips_deep_extraction(self):
        """Test a directory-only candidate keeps its name and the directory link."""
        directory_url = "https://www.producthunt.com/search?q=notes+AI"
        listing_page = FirecrawlScrapeResult(
            success=True,
            data=FirecrawlDocument.model_validate(
                {
                    "json": {
                        "name": "Product Hunt",
                        "description": "The best new products in tech.",
                        "websiteUrl": "https://www.producthunt.com",
                    }
                }
            ),
        )
        source = FakeSource(
            "ProductHunt",
            [candidate("NoteBot", url="", description="Takes notes", directory_url=directory_url)],
        )
        firecrawl = make_firecrawl(listing_page)
        llm = make_llm(json.dumps({"name": "Other", "features": ["Summaries"]}))
        finder = ToolFinderService(firecrawl, llm, sources=[source])

        tools = await finder.find_tools("notes")

        firecrawl.extract_tool_info_with_agent.assert_not_awaited()
        self.assertEqual(tools[0].name, "NoteBot")
        self.assertEqual(tools[0].description, "Takes notes")
        self.assertEqual(tools[0].url, directory_url)
        self.assertEqual(tools[0].features, ["Summaries"])
        self.assertEqual(llm.analyze_tool.call_args.args[0]["task"], "enhance_tool_details")

    async def test_product_url_is_deep_extracted(self):
        """Test a candidate with its own site is extracted against that site."""
        source = FakeSource(
            "ProductHunt",
            [
                candidate(
                    "Quill",
                    url="https://quill.example",
                    directory_url="https://www.producthunt.com/search?q=writing+AI",
                )
            ],
        )
        firecrawl = make_firecrawl()
        finder = ToolFinderService(firecrawl, make_llm("not json"), sources=[source])

        await finder.find_tools("writing")

        firecrawl.extract_tool_info_with_agent.assert_awaited_once_with("https://quill.example")

    async def test_unexpected_error_yields_main_error_fallback(self):
        """Test an unexpected failure during enrichment returns a fallback."""
        source = FakeSource("ProductHunt", [candidate("Quill", url="https://quill.example")])
        firecrawl = MagicMock()
        firecrawl.extract_tool_info_with_agent = AsyncMock(side_effect=RuntimeError("boom"))
        finder = ToolFinderService(firecrawl, make_llm(), sources=[source])

        tools = await finder.find_tools("writing")

        self.assertEqual(len(tools), 1)
        self.assertEqual(tools[0].source, "MainError")

    async def test_performance_metrics_recorded(self):
        """Test each request is recorded, including fallbacks."""
        finder = ToolFinderService(make_firecrawl(), make_llm(), sources=[FakeSource("Empty")])

        await finder.find_tools("music")

        report = finder.performance_monitor.get_performance_report()
        self.assertEqual(report["total_requests"], 1)
        self.assertEqual(report["fallback_results"], 1)


class RankToolsTests(IsolatedAsyncioTestCase):
    """Tests for relevance ranking."""

    def setUp(self):
        formatter_finder = ToolFinderService(make_firecrawl(), make_llm(), sources=[])
        self.tools = [
            formatter_finder.formatter.finalize_tool(
                {"name": name, "description": "d"}, "q", f"https://{name}.example", "Test"
            )
            for name in ("Alpha", "Beta", "Gamma")
        ]

    async def test_ranking_is_a_permutation(self):
        """Test a full ranking reply reorders the records."""
        reply = json.dumps({"tools": [{"name": "Gamma"}, {"name": "Alpha"}, {"name": "Beta"}]})
        finder = ToolFinderService(make_firecrawl(), make_llm(reply), sources=[])

        ranked = await finder.rank_tools(self.tools, "q")

        self.assertEqual([tool.name for tool in ranked], ["Gamma", "Alpha", "Beta"])
        self.assertEqual(sorted(id(t) for t in ranked), sorted(id(t) for t in self.tools))

    async def test_unknown_or_duplicate_names_keep_original_order(self):
        """Test replies naming unknown or repeated tools are rejected."""
        reply = json.dumps([{"name": "Gamma"}, {"name": "Gamma"}, {"name": "Delta"}])
        finder = ToolFinderService(make_firecrawl(), make_llm(reply), sources=[])

        ranked = await finder.rank_tools(self.tools, "q")

        self.assertEqual(ranked, self.tools)

    async def test_unparseable_reply_or_failed_call_keeps_order(self):
        """Test malformed replies and failed calls return the input."""
        finder = ToolFinderService(
            make_firecrawl(), make_llm("no json here", RuntimeError("down")), sources=[]
        )

        self.assertEqual(await finder.rank_tools(self.tools, "q"), self.tools)
        self.assertEqual(await finder.rank_tools(self.tools, "q"), self.tools)


class SourceTests(IsolatedAsyncioTestCase):
    """Tests for the default candidate sources."""

    def setUp(self):
        self.firecrawl = FirecrawlService(FirecrawlConfig(api_key="fc-test"))

    async def test_directory_source_maps_products(self):
        """Test directory products become candidates with the directory URL."""
        self.firecrawl.scrape_tool_search = AsyncMock(
            return_value=FirecrawlScrapeResult(
                success=True,
                data=FirecrawlDocument.model_validate(
                    {
                        "json": {
                            "products": [
                                {
                                    "name": "PixelMagic",
                                    "description": "Text to image",
                                    "url": "https://www.producthunt.com/posts/pixelmagic",
                                    "upvotes": 120.0,
                                    "imageUrl": "https://img.example/p.png",
                                }
                            ]
                        }
                    }
                ),
            )
        )

        candidates = await DirectorySource(self.firecrawl).search("image generation")

        self.assertEqual(len(candidates), 1)
        first = candidates[0]
        self.assertEqual(first.name, "PixelMagic")
        self.assertEqual(first.upvotes, 120)
        self.assertEqual(first.source, "ProductHunt")
        self.assertEqual(
            first.directory_url, "https://www.producthunt.com/search?q=image+generation+AI"
        )

    async def test_web_search_source_uses_query_suffix_and_limit(self):
        """Test the generic search asks for '<query> AI tool' with limit 5."""
        long_page = "x" * 800
        self.firecrawl.search = AsyncMock(
            return_value=FirecrawlSearchResult(
                success=True,
                data=[FirecrawlDocument(url="https://cut.example", title="CutPro", markdown=long_page)],
            )
        )

        candidates = await WebSearchSource(self.firecrawl).search("video editing")

        args, _ = self.firecrawl.search.call_args
        self.assertEqual(args[0], "video editing AI tool")
        self.assertEqual(args[1].limit, 5)
        self.assertEqual(candidates[0].name, "CutPro")
        self.assertEqual(len(candidates[0].description), 500)

    async def test_failed_search_yields_no_candidates(self):
        """Test a failed adapter call yields an empty candidate list."""
        self.firecrawl.search = AsyncMock(
            return_value=FirecrawlSearchResult(success=False, error="down")
        )

        self.assertEqual(await WebSearchSource(self.firecrawl).search("x"), [])

    def test_default_sources_order(self):
        """Test ProductHunt is queried before the generic web search."""
        names = [source.name for source in default_sources(self.firecrawl)]
        self.assertEqual(names, ["ProductHunt", "GenericWebSearch"])

    def test_source_base_requires_search(self):
        """Test a source without a search method cannot be created."""

        class Incomplete(ToolSource):
            name = "Incomplete"

        with self.assertRaises(TypeError):
            ToolSource()
        with self.assertRaises(TypeError):
            Incomplete()

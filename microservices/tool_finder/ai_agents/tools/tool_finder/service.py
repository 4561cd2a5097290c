"""Tool discovery pipeline: normalize, search sources, enrich, rank."""

import logging
import time
from typing import Any, Dict, List, Optional

from microservices.tool_finder.ai_agents.core.llm import (
    AzureOpenAIService,
    parse_llm_json,
)
from microservices.tool_finder.ai_agents.core.performance_monitor import (
    PerformanceMonitor,
)
from microservices.tool_finder.ai_agents.core.validation import (
    ToolDataFormatter,
    ToolDataValidator,
    normalize_query,
)
from microservices.tool_finder.ai_agents.tools.firecrawl import FirecrawlService
from microservices.tool_finder.serializers import AppTool, ToolCandidate

from .sources import ToolSource, default_sources

logger = logging.getLogger(__name__)

SOURCE_NONE = "NoSource"
SOURCE_PROCESSING_FAILED = "ProcessingFailed"
SOURCE_MAIN_ERROR = "MainError"


class EmptyQueryError(ValueError):
    """Raised when a search is requested with an empty query."""


class ToolFinderService:
    """Finds, enriches and ranks AI tools for a natural-language query.

    Sources are tried in order and the first one that yields usable
    candidates wins. At most ``max_candidates`` candidates are enriched,
    one after another, and the result always holds at least one record.
    """

    def __init__(
        self,
        firecrawl_service: FirecrawlService,
        llm_service: AzureOpenAIService,
        sources: Optional[List[ToolSource]] = None,
        max_candidates: int = 3,
        performance_monitor: Optional[PerformanceMonitor] = None,
    ):
        """Initialize the tool finder with its adapters."""
        self.firecrawl_service = firecrawl_service
        self.llm_service = llm_service
        self.sources = sources if sources is not None else default_sources(firecrawl_service)
        self.max_candidates = max_candidates
        self.validator = ToolDataValidator()
        self.formatter = ToolDataFormatter()
        self.performance_monitor = performance_monitor or PerformanceMonitor()

        logger.info(
            f"✅ [TOOL FINDER] Initialized with sources: {[source.name for source in self.sources]}"
        )

    async def find_tools(self, query: str) -> List[AppTool]:
        """Find AI tools matching a query.

        Args:
            query: Raw user query

        Returns:
            At least one tool record; a synthesized fallback record when
            discovery finds nothing

        Raises:
            EmptyQueryError: If the query is empty or whitespace
        """
        if not query or not query.strip():
            raise EmptyQueryError("Search query must not be empty")

        start_time = time.time()
        clean_query = query.strip()
        used_fallback = False

        try:
            async with self.performance_monitor.time_operation("normalize"):
                clean_query = normalize_query(query)
            logger.info(f"🔍 [TOOL FINDER] Cleaned search query: '{clean_query}'")

            async with self.performance_monitor.time_operation("source_search"):
                candidates = await self._collect_candidates(clean_query)

            if not candidates:
                logger.info("📭 [TOOL FINDER] No tools found from any source, creating a fallback")
                used_fallback = True
                return [self.formatter.create_fallback_tool(clean_query, SOURCE_NONE)]

            candidates = candidates[: self.max_candidates]

            async with self.performance_monitor.time_operation("enrichment"):
                tools = await self._enrich_candidates(candidates, clean_query)

            if not tools:
                logger.info("📭 [TOOL FINDER] Tool processing produced no records, creating a fallback")
                used_fallback = True
                return [
                    self.formatter.create_fallback_tool(clean_query, SOURCE_PROCESSING_FAILED)
                ]

            if len(tools) > 1:
                async with self.performance_monitor.time_operation("ranking"):
                    tools = await self.rank_tools(tools, clean_query)

            logger.info(f"✅ [TOOL FINDER] Returning {len(tools)} tools for '{clean_query}'")
            return tools

        except Exception as e:
            logger.error(f"❌ [TOOL FINDER] Error finding tools: {e}", exc_info=True)
            used_fallback = True
            return [self.formatter.create_fallback_tool(clean_query, SOURCE_MAIN_ERROR)]

        finally:
            self.performance_monitor.record_request(
                time.time() - start_time, used_fallback=used_fallback
            )

    async def _collect_candidates(self, query: str) -> List[ToolCandidate]:
        """Query sources in order, stopping at the first with usable candidates."""
        for source in self.sources:
            logger.info(f"🌐 [TOOL FINDER] Searching {source.name} for: '{query}'")
            try:
                raw_candidates = await source.search(query)
            except Exception as e:
                logger.error(f"❌ [TOOL FINDER] Source {source.name} failed: {e}")
                continue

            candidates = self.validator.validate_candidates(raw_candidates)
            if candidates:
                logger.info(
                    f"✅ [TOOL FINDER] {len(candidates)} candidates from {source.name}"
                )
                return candidates

            logger.info(f"⚠️ [TOOL FINDER] No usable candidates from {source.name}")
        return []

    async def _enrich_candidates(
        self, candidates: List[ToolCandidate], query: str
    ) -> List[AppTool]:
        tools = []
        for candidate in candidates:
            logger.info(
                f"🛠️ [TOOL FINDER] Processing tool: {candidate.name} from {candidate.source}"
            )
            tool = await self._enrich_candidate(candidate, query)
            if tool is not None:
                tools.append(tool)
        return tools

    async def _enrich_candidate(
        self, candidate: ToolCandidate, query: str
    ) -> Optional[AppTool]:
        """Deep-extract, then fill gaps with the LLM, then apply defaults."""
        initial_url = candidate.url
        details = self.formatter.candidate_to_details(candidate)

        if candidate.directory_url and initial_url == candidate.directory_url:
            # Only the directory page is known; extracting it would describe the directory.
            logger.info(
                f"ℹ️ [TOOL FINDER] No product site for {candidate.name}, skipping deep extraction"
            )
        else:
            details = await self._extract_details(candidate, details)

        missing = self.validator.missing_detail_fields(details)
        if missing:
            logger.info(f"🧩 [TOOL FINDER] Enhancing {candidate.name}, missing: {missing}")
            details = await self._enhance_details(details, query)

        tool = self.formatter.finalize_tool(details, query, initial_url, candidate.source)
        if not self.validator.has_required_fields(tool):
            logger.warning(f"❌ [TOOL FINDER] Dropping incomplete record for {candidate.name}")
            return None
        return tool

    async def _extract_details(
        self, candidate: ToolCandidate, details: Dict[str, Any]
    ) -> Dict[str, Any]:
        extraction = await self.firecrawl_service.extract_tool_info_with_agent(candidate.url)
        if (
            extraction.success
            and extraction.data is not None
            and isinstance(extraction.data.json_data, dict)
        ):
            logger.info(f"✅ [TOOL FINDER] Extracted details for {candidate.name}")
            return self.formatter.merge_extracted(details, extraction.data.json_data)

        logger.warning(
            f"⚠️ [TOOL FINDER] Deep extraction failed for {candidate.url}, relying on initial data"
        )
        return details

    async def _enhance_details(self, details: Dict[str, Any], query: str) -> Dict[str, Any]:
        try:
            reply = await self.llm_service.analyze_tool(
                {"task": "enhance_tool_details", "tool": details, "query": query}
            )
        except Exception as e:
            logger.error(f"❌ [TOOL FINDER] Enhancement call failed: {e}")
            return details

        enhancement = parse_llm_json(reply).as_dict()
        if not enhancement:
            logger.error("❌ [TOOL FINDER] Failed to parse enhancement reply")
            return details
        return self.formatter.fill_gaps(details, enhancement)

    async def rank_tools(self, tools: List[AppTool], query: str) -> List[AppTool]:
        """Order tools by relevance to the query.

        The reply is mapped back onto the input records by name, so the
        result is always a permutation of ``tools``. Any mismatch, parse
        error or failed call returns the input order.
        """
        logger.info(f"📊 [TOOL FINDER] Ranking {len(tools)} tools for query: '{query}'")
        try:
            reply = await self.llm_service.analyze_tool(
                {
                    "task": "rank_tools_by_relevance",
                    "tools": [self.formatter.prepare_tool_for_ranking(tool) for tool in tools],
                    "query": query,
                }
            )
        except Exception as e:
            logger.error(f"❌ [TOOL FINDER] Error ranking tools, returning unranked: {e}")
            return tools

        ranked_entries = parse_llm_json(reply).as_list()
        if not ranked_entries:
            logger.warning("⚠️ [TOOL FINDER] Ranking reply unusable, returning unranked")
            return tools

        used = set()
        ranked: List[AppTool] = []
        for entry in ranked_entries:
            name = entry.get("name") if isinstance(entry, dict) else entry
            if not isinstance(name, str):
                continue
            for index, tool in enumerate(tools):
                if index not in used and tool.name == name:
                    used.add(index)
                    ranked.append(tool)
                    break

        if len(ranked) != len(tools):
            logger.warning(
                f"⚠️ [TOOL FINDER] Ranking returned {len(ranked)} of {len(tools)} tools, returning unranked"
            )
            return tools

        logger.info("✅ [TOOL FINDER] Successfully ranked tools")
        return ranked

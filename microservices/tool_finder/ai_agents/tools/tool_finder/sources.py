"""Candidate sources queried by the tool finder."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from microservices.tool_finder.ai_agents.tools.firecrawl import (
    FirecrawlDocument,
    FirecrawlService,
    SearchOptions,
)
from microservices.tool_finder.ai_agents.tools.firecrawl.helpers import extract_products
from microservices.tool_finder.serializers import ToolCandidate

logger = logging.getLogger(__name__)

GENERIC_DESCRIPTION_CHARS = 500


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _upvotes(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str) and value.replace(",", "").isdigit():
        return int(value.replace(",", ""))
    return None


class ToolSource(ABC):
    """A site or channel that returns raw tool candidates for a query."""

    name = "Source"

    @abstractmethod
    async def search(self, query: str) -> List[ToolCandidate]:
        """Return raw candidates for a normalized query."""


class DirectorySource(ToolSource):
    """Tool directory search (ProductHunt by default)."""

    def __init__(
        self,
        firecrawl_service: FirecrawlService,
        site: str = "producthunt",
        name: str = "ProductHunt",
    ):
        self.firecrawl_service = firecrawl_service
        self.site = site
        self.name = name

    def _to_candidate(
        self, product: Dict[str, Any], directory_url: Optional[str]
    ) -> ToolCandidate:
        categories = product.get("categories") or product.get("category") or []
        if isinstance(categories, str):
            categories = [categories]
        return ToolCandidate(
            name=_text(product.get("name")),
            description=_text(product.get("description") or product.get("tagline")),
            url=_text(product.get("url")),
            source=self.name,
            tagline=_text(product.get("tagline")) or None,
            upvotes=_upvotes(product.get("upvotes")),
            image_url=_text(product.get("imageUrl")) or None,
            categories=[str(c) for c in categories if c],
            directory_url=directory_url,
        )

    async def search(self, query: str) -> List[ToolCandidate]:
        result = await self.firecrawl_service.scrape_tool_search(query, self.site)
        if not result.success or result.data is None:
            logger.warning(f"⚠️ [{self.name.upper()}] No results: {result.error}")
            return []

        directory_url = self.firecrawl_service.config.directory_search_url(
            self.site, query
        )
        products = extract_products(result.data.json_data)
        logger.info(f"📦 [{self.name.upper()}] Found {len(products)} potential tools")
        return [self._to_candidate(product, directory_url) for product in products]


class WebSearchSource(ToolSource):
    """Generic web search for ``<query> AI tool``."""

    def __init__(
        self,
        firecrawl_service: FirecrawlService,
        limit: int = 5,
        name: str = "GenericWebSearch",
    ):
        self.firecrawl_service = firecrawl_service
        self.limit = limit
        self.name = name

    def _to_candidate(self, document: FirecrawlDocument) -> ToolCandidate:
        metadata = document.metadata or {}
        name = _text(document.title) or _text(metadata.get("title"))
        url = _text(document.url) or _text(metadata.get("sourceURL"))
        description = _text(document.description) or _text(metadata.get("description"))
        if not description:
            page_text = _text(document.markdown) or _text(document.content)
            description = page_text[:GENERIC_DESCRIPTION_CHARS]
        return ToolCandidate(
            name=name, description=description, url=url, source=self.name
        )

    async def search(self, query: str) -> List[ToolCandidate]:
        result = await self.firecrawl_service.search(
            f"{query} AI tool",
            SearchOptions(limit=self.limit, fetch_page_content=True, only_main_content=True),
        )
        if not result.success:
            logger.warning(f"⚠️ [{self.name.upper()}] Search failed: {result.error}")
            return []

        logger.info(f"📦 [{self.name.upper()}] Found {len(result.data)} results")
        return [self._to_candidate(document) for document in result.data]


def default_sources(firecrawl_service: FirecrawlService) -> List[ToolSource]:
    """ProductHunt first, then a generic web search."""
    return [DirectorySource(firecrawl_service), WebSearchSource(firecrawl_service)]

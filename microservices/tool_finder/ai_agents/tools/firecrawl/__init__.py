"""Firecrawl scraping and search adapter."""

from .config import FirecrawlConfig
from .models import (
    CrawlOptions,
    FirecrawlCrawlResult,
    FirecrawlDocument,
    FirecrawlScrapeResult,
    FirecrawlSearchResult,
    JsonOptions,
    ScrapeOptions,
    SearchOptions,
)
from .service import FirecrawlService

__all__ = [
    "FirecrawlConfig",
    "FirecrawlService",
    "CrawlOptions",
    "FirecrawlCrawlResult",
    "FirecrawlDocument",
    "FirecrawlScrapeResult",
    "FirecrawlSearchResult",
    "JsonOptions",
    "ScrapeOptions",
    "SearchOptions",
]

"""Firecrawl configuration."""

import logging
import os
from typing import Any, Dict, Optional
from urllib.parse import quote_plus

from envs.env_loader import EnvLoader

logger = logging.getLogger(__name__)


class FirecrawlConfig:
    """Configuration for the Firecrawl scraping/search API."""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        """Initialize Firecrawl configuration."""
        env = EnvLoader()
        self.api_key = api_key if api_key is not None else env.firecrawl_api_key
        self.base_url = (base_url or env.firecrawl_base_url).rstrip("/")
        self.timeout_seconds = int(os.getenv("FIRECRAWL_TIMEOUT_SECONDS", "90"))

        # Retry ceilings and fixed delays per operation
        self.scrape_max_attempts = int(os.getenv("FIRECRAWL_SCRAPE_ATTEMPTS", "3"))
        self.scrape_retry_delay = float(os.getenv("FIRECRAWL_SCRAPE_DELAY", "2"))
        self.search_max_attempts = int(os.getenv("FIRECRAWL_SEARCH_ATTEMPTS", "3"))
        self.search_retry_delay = float(os.getenv("FIRECRAWL_SEARCH_DELAY", "2"))
        self.crawl_max_attempts = int(os.getenv("FIRECRAWL_CRAWL_ATTEMPTS", "2"))
        self.crawl_retry_delay = float(os.getenv("FIRECRAWL_CRAWL_DELAY", "3"))

        # Crawl job polling
        self.crawl_poll_interval = float(os.getenv("FIRECRAWL_CRAWL_POLL_INTERVAL", "2"))
        self.crawl_max_polls = int(os.getenv("FIRECRAWL_CRAWL_MAX_POLLS", "60"))

        self.default_proxy = os.getenv("FIRECRAWL_DEFAULT_PROXY", "stealth")

        # Directory search pages, keyed by site name
        self.directory_search_urls = {
            "producthunt": "https://www.producthunt.com/search?q={query}",
        }

        if not self.api_key:
            logger.warning(
                "⚠️ [FIRECRAWL] FIRECRAWL_API_KEY not set - requests will fail until it is configured"
            )

    def directory_search_url(self, site: str, query: str) -> Optional[str]:
        """Build the search page URL of a directory site for a query."""
        template = self.directory_search_urls.get(site.lower())
        if not template:
            return None
        return template.format(query=quote_plus(f"{query} AI"))

    def is_configured(self) -> bool:
        """Check if Firecrawl is properly configured."""
        return bool(self.api_key)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary without secrets."""
        return {
            "configured": self.is_configured(),
            "base_url": self.base_url,
            "timeout_seconds": self.timeout_seconds,
            "scrape_max_attempts": self.scrape_max_attempts,
            "search_max_attempts": self.search_max_attempts,
            "crawl_max_attempts": self.crawl_max_attempts,
            "default_proxy": self.default_proxy,
            "directories": list(self.directory_search_urls),
        }

"""Firecrawl service for scraping, crawling and searching the web."""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp
from pydantic import ValidationError

from microservices.tool_finder.ai_agents.core.retry import (
    RetryExhaustedError,
    retry_with_fallback,
)

from .config import FirecrawlConfig
from .helpers import (
    BROWSER_HEADERS,
    PRODUCT_LIST_SCHEMA,
    STRUCTURED_SYSTEM_PROMPT,
    TOOL_DETAILS_PROMPT,
    TOOL_DETAILS_SCHEMA,
    ProductCardParser,
    extract_products,
    product_list_prompt,
)
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

logger = logging.getLogger(__name__)

DEFAULT_FORMATS = ["markdown", "html"]
NOT_CONFIGURED_ERROR = "Firecrawl API key is not configured"


class _AttemptState:
    """Proxy mode and degrade flag shared by the attempts of one call."""

    def __init__(self, proxy: str):
        self.proxy = proxy
        self.minimal = False

    def toggle_proxy(self, attempt: int) -> None:
        self.proxy = "basic" if self.proxy == "stealth" else "stealth"
        logger.info(f"🔀 [FIRECRAWL] Switching to {self.proxy} proxy after attempt {attempt}")

    def simplify(self) -> None:
        self.minimal = True


class FirecrawlService:
    """Typed wrapper over the Firecrawl v1 REST API.

    Every public method returns a result object with ``success`` set and
    never raises; failures carry an ``error`` message.
    """

    def __init__(self, config: Optional[FirecrawlConfig] = None):
        """Initialize Firecrawl service."""
        self.config = config or FirecrawlConfig()
        if self.config.is_configured():
            logger.info(f"✅ [FIRECRAWL] Service initialized for {self.config.base_url}")
        else:
            logger.warning("⚠️ [FIRECRAWL] Service running without an API key")

    def is_configured(self) -> bool:
        return self.config.is_configured()

    async def _request(
        self, method: str, path: str, payload: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Send one request to the Firecrawl API and return its JSON body.

        Non-2xx answers are turned into ``{"success": False, "error": ...}``.
        Transport errors propagate to the retry helper.
        """
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        timeout_config = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout_config) as session:
            async with session.request(
                method, f"{self.config.base_url}{path}", json=payload, headers=headers
            ) as response:
                body = await response.json(content_type=None)
                if not isinstance(body, dict):
                    body = {}
                if response.status >= 400:
                    error = body.get("error") or f"HTTP {response.status}"
                    logger.warning(f"⚠️ [FIRECRAWL] {method} {path} -> {response.status}: {error}")
                    return {"success": False, "error": error}
                body.setdefault("success", True)
                return body

    @staticmethod
    def _prepare_scrape_options(options: Optional[ScrapeOptions]) -> ScrapeOptions:
        prepared = options.model_copy(deep=True) if options else ScrapeOptions()
        if "json" in prepared.formats and prepared.json_options is None:
            logger.warning(
                "⚠️ [FIRECRAWL] JSON format requested without jsonOptions, removing json from formats"
            )
            prepared.formats = [fmt for fmt in prepared.formats if fmt != "json"]
        if not prepared.formats:
            prepared.formats = list(DEFAULT_FORMATS)
        return prepared

    @staticmethod
    def _scrape_body(options: ScrapeOptions, proxy: str, minimal: bool) -> Dict[str, Any]:
        """Request body fields of a scrape; ``minimal`` keeps markdown only."""
        if minimal:
            body: Dict[str, Any] = {"formats": ["markdown"], "proxy": proxy}
        else:
            body = {"formats": list(options.formats), "proxy": proxy}
            if options.json_options is not None:
                body["jsonOptions"] = options.json_options.model_dump(
                    by_alias=True, exclude_none=True
                )
            if options.only_main_content is not None:
                body["onlyMainContent"] = options.only_main_content
            if options.wait_for:
                body["waitFor"] = options.wait_for
        if options.headers:
            body["headers"] = dict(options.headers)
        return body

    async def scrape_url(
        self, url: str, options: Optional[ScrapeOptions] = None
    ) -> FirecrawlScrapeResult:
        """Scrape a single page.

        Up to ``scrape_max_attempts`` attempts with a fixed delay. The proxy
        mode alternates after every failure and the final attempt asks for
        markdown only.

        Args:
            url: Page to scrape
            options: Formats, extraction options and proxy mode

        Returns:
            Scrape result with the page document on success
        """
        if not self.config.is_configured():
            return FirecrawlScrapeResult(success=False, error=NOT_CONFIGURED_ERROR)

        try:
            prepared = self._prepare_scrape_options(options)
            state = _AttemptState(prepared.proxy or self.config.default_proxy)

            async def attempt():
                payload = {"url": url, **self._scrape_body(prepared, state.proxy, state.minimal)}
                return await self._request("POST", "/v1/scrape", payload)

            body = await retry_with_fallback(
                attempt,
                max_attempts=self.config.scrape_max_attempts,
                delay_seconds=self.config.scrape_retry_delay,
                on_failure=state.toggle_proxy,
                degrade=state.simplify,
                label=f"scrape {url}",
            )
            return FirecrawlScrapeResult(
                success=True, data=FirecrawlDocument.model_validate(body.get("data") or {})
            )

        except RetryExhaustedError as e:
            return FirecrawlScrapeResult(success=False, error=e.message)
        except (ValidationError, ValueError) as e:
            logger.error(f"❌ [FIRECRAWL] Error scraping {url}: {e}")
            return FirecrawlScrapeResult(success=False, error=str(e))

    async def _run_crawl_job(
        self, url: str, options: CrawlOptions, state: _AttemptState
    ) -> Dict[str, Any]:
        """Start a crawl job and poll it until it completes or fails."""
        payload = {
            "url": url,
            "limit": options.limit,
            "scrapeOptions": self._scrape_body(
                options.scrape_options, state.proxy, state.minimal
            ),
        }
        started = await self._request("POST", "/v1/crawl", payload)
        if not started.get("success"):
            return started

        job_id = started.get("id")
        if not job_id:
            return {"success": False, "error": "Crawl job id missing from response"}

        logger.info(f"🕷️ [FIRECRAWL] Crawl job {job_id} started for {url}")
        for _ in range(self.config.crawl_max_polls):
            status_body = await self._request("GET", f"/v1/crawl/{job_id}")
            if not status_body.get("success"):
                return status_body

            status = status_body.get("status")
            if status == "completed":
                return status_body
            if status in ("failed", "cancelled"):
                return {"success": False, "error": f"Crawl job {job_id} {status}"}

            await asyncio.sleep(self.config.crawl_poll_interval)

        return {"success": False, "error": f"Crawl job {job_id} did not finish in time"}

    async def crawl_website(
        self, url: str, options: Optional[CrawlOptions] = None
    ) -> FirecrawlCrawlResult:
        """Crawl a website starting from ``url``."""
        if not self.config.is_configured():
            return FirecrawlCrawlResult(success=False, error=NOT_CONFIGURED_ERROR)

        try:
            prepared = options.model_copy(deep=True) if options else CrawlOptions()
            prepared.scrape_options = self._prepare_scrape_options(prepared.scrape_options)
            state = _AttemptState(
                prepared.proxy or prepared.scrape_options.proxy or self.config.default_proxy
            )

            body = await retry_with_fallback(
                lambda: self._run_crawl_job(url, prepared, state),
                max_attempts=self.config.crawl_max_attempts,
                delay_seconds=self.config.crawl_retry_delay,
                on_failure=state.toggle_proxy,
                degrade=state.simplify,
                label=f"crawl {url}",
            )
            documents = [
                FirecrawlDocument.model_validate(item)
                for item in body.get("data") or []
                if isinstance(item, dict)
            ]
            return FirecrawlCrawlResult(
                success=True,
                status="completed",
                total=body.get("total") or len(documents),
                completed=body.get("completed") or len(documents),
                credits_used=body.get("creditsUsed") or 0,
                data=documents,
            )

        except RetryExhaustedError as e:
            return FirecrawlCrawlResult(success=False, error=e.message)
        except (ValidationError, ValueError) as e:
            logger.error(f"❌ [FIRECRAWL] Error crawling {url}: {e}")
            return FirecrawlCrawlResult(success=False, error=str(e))

    async def search(
        self, query: str, options: Optional[SearchOptions] = None
    ) -> FirecrawlSearchResult:
        """Search the web; the final attempt only keeps the result limit."""
        if not self.config.is_configured():
            return FirecrawlSearchResult(success=False, error=NOT_CONFIGURED_ERROR)

        options = options or SearchOptions()
        state = _AttemptState(self.config.default_proxy)
        logger.info(f"🔍 [FIRECRAWL] Searching for: '{query}'")

        async def attempt():
            payload: Dict[str, Any] = {"query": query}
            if options.limit:
                payload["limit"] = options.limit
            if not state.minimal and options.fetch_page_content:
                scrape_options: Dict[str, Any] = {"formats": ["markdown"]}
                if options.only_main_content is not None:
                    scrape_options["onlyMainContent"] = options.only_main_content
                payload["scrapeOptions"] = scrape_options
            return await self._request("POST", "/v1/search", payload)

        try:
            body = await retry_with_fallback(
                attempt,
                max_attempts=self.config.search_max_attempts,
                delay_seconds=self.config.search_retry_delay,
                degrade=state.simplify,
                label=f"search '{query}'",
            )
            documents = [
                FirecrawlDocument.model_validate(item)
                for item in body.get("data") or []
                if isinstance(item, dict)
            ]
            logger.info(f"✅ [FIRECRAWL] Search found {len(documents)} results")
            return FirecrawlSearchResult(success=True, data=documents)

        except RetryExhaustedError as e:
            return FirecrawlSearchResult(success=False, error=e.message)
        except (ValidationError, ValueError) as e:
            logger.error(f"❌ [FIRECRAWL] Error searching '{query}': {e}")
            return FirecrawlSearchResult(success=False, error=str(e))

    async def extract_structured_data(self, url: str, prompt: str) -> FirecrawlScrapeResult:
        """Scrape ``url`` and extract JSON guided by a natural-language prompt."""
        return await self.scrape_url(
            url,
            ScrapeOptions(
                formats=["json"],
                json_options=JsonOptions(
                    prompt=prompt, system_prompt=STRUCTURED_SYSTEM_PROMPT
                ),
            ),
        )

    async def extract_tool_info(self, url: str) -> FirecrawlScrapeResult:
        """Scrape the main content of a tool page as markdown."""
        logger.info(f"📄 [FIRECRAWL] Extracting tool information from: {url}")
        return await self.scrape_url(
            url,
            ScrapeOptions(
                formats=["markdown"], only_main_content=True, wait_for=3000, proxy="stealth"
            ),
        )

    async def extract_tool_info_with_agent(self, url: str) -> FirecrawlScrapeResult:
        """Deep structured extraction of a tool's details from its own website.

        On success ``data.json_data`` holds the fields of the tool details
        schema (name, tagline, description, pricing, features, useCases,
        pros, cons, imageUrl, videoUrl, screenshots, categories, websiteUrl).
        """
        logger.info(f"🤖 [FIRECRAWL] Deep extraction from: {url}")
        return await self.scrape_url(
            url,
            ScrapeOptions(
                formats=["json"],
                json_options=JsonOptions(
                    prompt=TOOL_DETAILS_PROMPT,
                    system_prompt=STRUCTURED_SYSTEM_PROMPT,
                    schema_=TOOL_DETAILS_SCHEMA,
                ),
                only_main_content=True,
                wait_for=3000,
            ),
        )

    async def scrape_tool_search(
        self, query: str, site: str = "producthunt"
    ) -> FirecrawlScrapeResult:
        """Search a tool directory and return the products it lists.

        Each attempt scrapes the search page's HTML, then runs a JSON
        extraction pass for the product list. If that pass finds nothing,
        the product cards are parsed straight from the HTML.

        Returns:
            On success ``data.json_data`` is ``{"products": [...]}`` and
            ``data.html`` holds the search page HTML
        """
        if not self.config.is_configured():
            return FirecrawlScrapeResult(success=False, error=NOT_CONFIGURED_ERROR)

        search_url = self.config.directory_search_url(site, query)
        if not search_url:
            return FirecrawlScrapeResult(
                success=False, error=f"Unsupported directory site: {site}"
            )

        logger.info(f"🔍 [FIRECRAWL] Scraping {site} search for: '{query}'")
        state = _AttemptState(self.config.default_proxy)
        card_parser = ProductCardParser(search_url)

        async def attempt():
            html_body = await self._request(
                "POST",
                "/v1/scrape",
                {
                    "url": search_url,
                    "formats": ["html", "markdown"],
                    "onlyMainContent": True,
                    "waitFor": 3000,
                    "proxy": state.proxy,
                    "headers": dict(BROWSER_HEADERS),
                },
            )
            if not html_body.get("success"):
                return html_body
            html = (html_body.get("data") or {}).get("html") or ""

            extraction_body = await self._request(
                "POST",
                "/v1/scrape",
                {
                    "url": search_url,
                    "formats": ["json"],
                    "jsonOptions": {
                        "prompt": product_list_prompt(query),
                        "schema": PRODUCT_LIST_SCHEMA,
                    },
                    "proxy": state.proxy,
                },
            )
            products = []
            if extraction_body.get("success"):
                products = extract_products((extraction_body.get("data") or {}).get("json"))
                logger.info(f"🧠 [FIRECRAWL] LLM extraction found {len(products)} products")

            if not products:
                products = card_parser.parse(html)

            if not products:
                return {"success": False, "error": f"No products found on {site} for '{query}'"}

            return {"success": True, "data": {"json": {"products": products}, "html": html}}

        try:
            body = await retry_with_fallback(
                attempt,
                max_attempts=self.config.scrape_max_attempts,
                delay_seconds=self.config.scrape_retry_delay,
                on_failure=state.toggle_proxy,
                label=f"{site} search '{query}'",
            )
            return FirecrawlScrapeResult(
                success=True, data=FirecrawlDocument.model_validate(body["data"])
            )

        except RetryExhaustedError as e:
            return FirecrawlScrapeResult(success=False, error=e.message)
        except (ValidationError, ValueError) as e:
            logger.error(f"❌ [FIRECRAWL] Error scraping {site} search: {e}")
            return FirecrawlScrapeResult(success=False, error=str(e))

"""Request options and result types of the Firecrawl adapter."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ProxyMode = Literal["basic", "stealth"]


class JsonOptions(BaseModel):
    """LLM extraction options sent with a ``json`` format scrape."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: Optional[str] = None
    system_prompt: Optional[str] = Field(None, alias="systemPrompt")
    schema_: Optional[Dict[str, Any]] = Field(None, alias="schema")


class ScrapeOptions(BaseModel):
    """Options for a single-page scrape."""

    model_config = ConfigDict(populate_by_name=True)

    formats: List[str] = Field(default_factory=lambda: ["markdown", "html"])
    json_options: Optional[JsonOptions] = Field(None, alias="jsonOptions")
    proxy: Optional[ProxyMode] = None
    only_main_content: Optional[bool] = Field(True, alias="onlyMainContent")
    wait_for: Optional[int] = Field(None, alias="waitFor")
    headers: Optional[Dict[str, str]] = None


class CrawlOptions(BaseModel):
    """Options for a multi-page crawl job."""

    model_config = ConfigDict(populate_by_name=True)

    limit: int = 10
    scrape_options: ScrapeOptions = Field(
        default_factory=ScrapeOptions, alias="scrapeOptions"
    )
    proxy: Optional[ProxyMode] = None


class SearchOptions(BaseModel):
    """Options for a web search."""

    model_config = ConfigDict(populate_by_name=True)

    limit: Optional[int] = None
    fetch_page_content: bool = Field(True, alias="fetchPageContent")
    only_main_content: Optional[bool] = Field(None, alias="onlyMainContent")


class FirecrawlDocument(BaseModel):
    """A scraped page or search hit."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    markdown: Optional[str] = None
    html: Optional[str] = None
    json_data: Optional[Any] = Field(None, alias="json")
    metadata: Optional[Dict[str, Any]] = None
    url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None


class FirecrawlScrapeResult(BaseModel):
    success: bool
    data: Optional[FirecrawlDocument] = None
    error: Optional[str] = None


class FirecrawlCrawlResult(BaseModel):
    success: bool
    status: Optional[str] = None
    total: int = 0
    completed: int = 0
    credits_used: int = 0
    data: List[FirecrawlDocument] = Field(default_factory=list)
    error: Optional[str] = None


class FirecrawlSearchResult(BaseModel):
    success: bool
    data: List[FirecrawlDocument] = Field(default_factory=list)
    error: Optional[str] = None

"""Extraction schemas and HTML helpers for Firecrawl."""

import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept-Language": "en-US,en;q=0.9",
}

STRUCTURED_SYSTEM_PROMPT = "Extract structured data from the provided content."

TOOL_DETAILS_PROMPT = (
    "Extract detailed information about this AI tool from its website. "
    "Include its name, tagline, description, pricing plans, key features, "
    "use cases, pros, cons, logo or image URL, demo video URL, screenshots, "
    "categories and official website URL."
)

TOOL_DETAILS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "tagline": {"type": "string"},
        "description": {"type": "string"},
        "pricing": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "price": {"type": "string"},
                    "billingPeriod": {"type": "string"},
                    "features": {"type": "array", "items": {"type": "string"}},
                },
            },
        },
        "features": {"type": "array", "items": {"type": "string"}},
        "useCases": {"type": "array", "items": {"type": "string"}},
        "pros": {"type": "array", "items": {"type": "string"}},
        "cons": {"type": "array", "items": {"type": "string"}},
        "imageUrl": {"type": "string"},
        "videoUrl": {"type": "string"},
        "screenshots": {"type": "array", "items": {"type": "string"}},
        "categories": {"type": "array", "items": {"type": "string"}},
        "websiteUrl": {"type": "string"},
    },
    "required": ["name", "description"],
}


def product_list_prompt(query: str) -> str:
    """Prompt used to pull a product list out of a directory search page."""
    return (
        f'Extract all AI tools related to "{query}" from this search results page. '
        "For each tool, extract: name (the name of the tool), description (a brief "
        "description of what it does), url (full URL of the tool's page), upvotes "
        "(as a number) and imageUrl (URL of the tool's logo or image). "
        "Extract at least 5 tools if available. If no tools are found, return an "
        "empty products list."
    )


PRODUCT_LIST_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "products": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                    "url": {"type": "string"},
                    "upvotes": {"type": "number"},
                    "imageUrl": {"type": "string"},
                },
                "required": ["name"],
            },
        }
    },
    "required": ["products"],
}


def extract_products(payload: Any) -> List[Dict[str, Any]]:
    """Pull the product list out of a JSON extraction payload.

    The extractor may answer with a bare list or with ``{"products": [...]}``.
    """
    if isinstance(payload, dict):
        payload = payload.get("products") or payload.get("tools") or []
    if not isinstance(payload, list):
        return []
    return [item for item in payload if isinstance(item, dict)]


class ProductCardParser:
    """Parse product cards from a directory search page's HTML.

    Used when the LLM extraction pass comes back empty. Product pages are
    recognized by their link path (``/posts/<slug>`` or ``/products/<slug>``).
    """

    PRODUCT_PATH = re.compile(r"^/(?:posts|products)/[^/?#]+/?$")
    UPVOTE_PATTERN = re.compile(r"^\d[\d,]*$")

    def __init__(self, page_url: str):
        parsed = urlparse(page_url)
        self.origin = f"{parsed.scheme}://{parsed.netloc}"

    def parse(self, html: Optional[str], limit: int = 10) -> List[Dict[str, Any]]:
        """Return product dicts (name, description, url, upvotes, imageUrl)."""
        if not html:
            return []

        soup = BeautifulSoup(html, "html.parser")
        products: Dict[str, Dict[str, Any]] = {}

        for link in soup.find_all("a", href=True):
            href = link["href"].split("?")[0]
            if href.startswith(self.origin):
                href = href[len(self.origin) :]
            if not self.PRODUCT_PATH.match(href):
                continue

            url = urljoin(self.origin, href)
            product = products.setdefault(url, {"url": url})
            text = link.get_text(" ", strip=True)

            if text and not product.get("name"):
                product["name"] = text
            elif text and text != product.get("name") and not product.get("description"):
                product["description"] = text

            image = link.find("img")
            if image is not None and image.get("src") and not product.get("imageUrl"):
                product["imageUrl"] = image["src"]

            card = link.find_parent(["section", "li", "article", "div"])
            if card is not None and "upvotes" not in product:
                upvotes = self._find_upvotes(card)
                if upvotes is not None:
                    product["upvotes"] = upvotes

        parsed = [product for product in products.values() if product.get("name")]
        logger.info(f"🧩 [FIRECRAWL] Card parser found {len(parsed)} products")
        return parsed[:limit]

    def _find_upvotes(self, card) -> Optional[int]:
        for button in card.find_all("button"):
            text = button.get_text(strip=True)
            if self.UPVOTE_PATTERN.match(text):
                return int(text.replace(",", ""))
        return None

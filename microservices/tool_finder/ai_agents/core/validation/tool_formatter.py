"""Shared tool data formatting utilities."""

import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

from pydantic import ValidationError

from microservices.tool_finder.serializers import (
    AppTool,
    ToolCandidate,
    ToolPricingTier,
)

logger = logging.getLogger(__name__)

# Keys used by extraction schemas and LLM replies, mapped to record fields
FIELD_ALIASES = {
    "name": "name",
    "title": "name",
    "description": "description",
    "tagline": "tagline",
    "pricing": "pricing",
    "categories": "categories",
    "features": "features",
    "useCases": "use_cases",
    "use_cases": "use_cases",
    "pros": "pros",
    "cons": "cons",
    "screenshots": "screenshots",
    "videoUrl": "video_embed",
    "videoEmbed": "video_embed",
    "imageUrl": "image_url",
    "logoUrl": "image_url",
    "websiteUrl": "website_url",
    "website": "website_url",
    "rating": "rating",
    "badges": "badges",
}


def _as_text(value: Any) -> Optional[str]:
    """Return stripped text, or None for empty or non-text values."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


class ToolDataFormatter:
    """Shared utility for shaping tool data into ``AppTool`` records."""

    @staticmethod
    def title_case(text: str) -> str:
        """Capitalize the first letter of every word, keeping the rest as typed."""
        return " ".join(word[:1].upper() + word[1:] for word in text.split())

    @staticmethod
    def fallback_search_url(query: str) -> str:
        """Search engine link used when no real tool could be found."""
        return f"https://www.google.com/search?q={quote(query + ' AI tool')}"

    @staticmethod
    def generate_default_features(tool_name: str, query: str) -> List[str]:
        return [
            f"AI-powered {query} capabilities",
            f"Intuitive interface for {tool_name}",
            f"Automates {query} tasks effectively",
        ]

    @staticmethod
    def generate_default_pros(tool_name: str, query: str) -> List[str]:
        return [
            f"{tool_name} offers an intuitive interface for {query} tasks",
            f"Advanced AI algorithms for accurate results related to {query}",
            f"Time-saving automation for {query} workflows",
        ]

    @staticmethod
    def generate_default_cons() -> List[str]:
        return [
            "Advanced features may have a learning curve or require a subscription",
            "Specific integrations might be limited",
        ]

    @staticmethod
    def generate_default_use_cases(query: str) -> List[str]:
        return [
            f"Automated {query} for various applications",
            f"Generating insights from {query} data",
            f"Streamlining {query} workflows with AI assistance",
        ]

    @classmethod
    def create_fallback_tool(cls, query: str, source: str) -> AppTool:
        """Synthesize a tool record from the query alone.

        Name and URL depend only on the query, so the same query always
        produces the same fallback.
        """
        clean_query = re.sub(r"[^\w\s]", "", query).strip()
        tool_name = " ".join(filter(None, ["AI", cls.title_case(clean_query), "Tool"]))
        search_url = cls.fallback_search_url(query)

        return AppTool(
            name=tool_name,
            description=(
                f"A versatile AI tool for {query}. Designed to assist with various tasks "
                "using advanced AI. Please visit the website for specific details. "
                "This is a fallback entry."
            ),
            url=search_url,
            source=source,
            categories=[query, "AI", "Fallback"],
            features=cls.generate_default_features(tool_name, query),
            use_cases=cls.generate_default_use_cases(query),
            pros=cls.generate_default_pros(tool_name, query),
            cons=cls.generate_default_cons(),
            last_updated=date.today().isoformat(),
            pricing="Visit website for details",
            tagline=f"Your AI assistant for {query}",
            website_url=search_url,
        )

    @staticmethod
    def coerce_list(value: Any) -> List[str]:
        """Turn a list, or a comma/newline separated string, into a list of strings."""
        if not value:
            return []
        if isinstance(value, str):
            parts = re.split(r"[\n,;]", value)
            return [part.strip(" -*•\t") for part in parts if part.strip(" -*•\t")]
        if isinstance(value, (list, tuple)):
            items = []
            for item in value:
                if isinstance(item, dict):
                    item = item.get("name") or item.get("title") or item.get("text")
                if item:
                    items.append(str(item).strip())
            return [item for item in items if item]
        return [str(value)]

    @staticmethod
    def coerce_pricing(value: Any) -> Optional[Union[str, List[ToolPricingTier]]]:
        """Accept pricing as text or as a list of tiers."""
        if not value:
            return None
        if isinstance(value, str):
            return value.strip() or None
        if isinstance(value, dict):
            value = value.get("tiers") or value.get("plans") or [value]
        if isinstance(value, list):
            tiers = []
            for entry in value:
                if isinstance(entry, ToolPricingTier):
                    tiers.append(entry)
                    continue
                if not isinstance(entry, dict):
                    continue
                try:
                    tiers.append(
                        ToolPricingTier(
                            name=str(entry.get("name") or entry.get("plan") or "Plan"),
                            price=str(entry.get("price") or "Contact for pricing"),
                            billing_period=entry.get("billingPeriod")
                            or entry.get("billing_period"),
                            features=ToolDataFormatter.coerce_list(
                                entry.get("features")
                            ),
                        )
                    )
                except ValidationError as e:
                    logger.warning(f"Skipping malformed pricing tier {entry}: {e}")
            return tiers or None
        return str(value)

    @staticmethod
    def candidate_to_details(candidate: ToolCandidate) -> Dict[str, Any]:
        """Seed the working record of a candidate before enrichment."""
        return {
            "name": candidate.name,
            "description": candidate.description,
            "url": candidate.url,
            "source": candidate.source,
            "tagline": candidate.tagline,
            "upvotes": candidate.upvotes,
            "image_url": candidate.image_url,
            "categories": list(candidate.categories),
            "website_url": candidate.website_url or candidate.url,
        }

    @staticmethod
    def normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
        """Map schema/LLM keys onto record field names, dropping unknown keys."""
        normalized = {}
        for key, value in data.items():
            field = FIELD_ALIASES.get(key)
            if field and value not in (None, "", [], {}):
                normalized.setdefault(field, value)
        return normalized

    @classmethod
    def merge_extracted(
        cls, details: Dict[str, Any], extracted: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Overlay deep-extraction data on the working record."""
        merged = dict(details)
        for field, value in cls.normalize_keys(extracted).items():
            merged[field] = value
        return merged

    @classmethod
    def fill_gaps(
        cls, details: Dict[str, Any], enhancement: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Copy enhancement fields only where the working record is empty."""
        merged = dict(details)
        for field, value in cls.normalize_keys(enhancement).items():
            if not merged.get(field):
                merged[field] = value
        return merged

    @classmethod
    def finalize_tool(
        cls, details: Dict[str, Any], query: str, initial_url: str, source: str
    ) -> AppTool:
        """Build the final record, applying templated defaults for gaps."""
        name = str(details.get("name") or "").strip() or "Unnamed AI Tool"
        description = str(details.get("description") or "").strip() or (
            f"An AI tool for {query}. Visit the website to learn more."
        )
        website_url = _as_text(details.get("website_url")) or initial_url

        categories = cls.coerce_list(details.get("categories"))
        features = cls.coerce_list(details.get("features"))
        use_cases = cls.coerce_list(details.get("use_cases"))
        pros = cls.coerce_list(details.get("pros"))
        cons = cls.coerce_list(details.get("cons"))
        badges = cls.coerce_list(details.get("badges"))

        upvotes = details.get("upvotes")
        rating = details.get("rating")

        return AppTool(
            name=name,
            description=description,
            url=website_url,
            source=_as_text(details.get("source")) or source,
            tagline=_as_text(details.get("tagline")),
            categories=categories or [query, "AI"],
            upvotes=upvotes if isinstance(upvotes, int) else None,
            features=features or cls.generate_default_features(name, query),
            use_cases=use_cases or cls.generate_default_use_cases(query),
            pricing=cls.coerce_pricing(details.get("pricing")) or "Check website",
            screenshots=cls.coerce_list(details.get("screenshots")) or None,
            video_embed=_as_text(details.get("video_embed")),
            pros=pros or cls.generate_default_pros(name, query),
            cons=cons or cls.generate_default_cons(),
            last_updated=_as_text(details.get("last_updated")) or date.today().isoformat(),
            badges=badges or ["AI", query],
            rating=rating if isinstance(rating, (int, float)) else None,
            image_url=_as_text(details.get("image_url")),
            website_url=website_url,
        )

    @staticmethod
    def prepare_tool_for_ranking(tool: AppTool) -> Dict[str, Any]:
        """Compact view of a record sent to the ranking prompt."""
        return {
            "name": tool.name,
            "description": tool.description,
            "features": tool.features,
            "categories": tool.categories,
        }

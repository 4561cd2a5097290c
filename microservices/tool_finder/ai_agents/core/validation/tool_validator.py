"""Validation of candidates and tool records."""

import logging
import re
from typing import Any, Dict, List, Optional

from microservices.tool_finder.serializers import AppTool, ToolCandidate

logger = logging.getLogger(__name__)


class ToolDataValidator:
    """Validator for candidates before enrichment and records before emission."""

    REQUIRED_FIELDS = ("name", "description", "url")

    DETAIL_FIELDS = ("features", "use_cases", "pros", "cons")

    # Aggregator article titles rather than a single product
    LISTICLE_PATTERN = re.compile(r"\b(?:best|top)\b|tools to use", re.IGNORECASE)

    def is_listicle(self, name: str) -> bool:
        """Check if a candidate name looks like a list article."""
        return bool(name and self.LISTICLE_PATTERN.search(name))

    def validate_candidate(self, candidate: ToolCandidate) -> Optional[ToolCandidate]:
        """Validate a raw candidate.

        Args:
            candidate: Candidate returned by a source

        Returns:
            The candidate, possibly with the directory URL as its link, or
            None if it should be rejected
        """
        name = candidate.name.strip()
        if not name:
            logger.warning(f"❌ REJECTING candidate without a name from {candidate.source}")
            return None

        if self.is_listicle(name):
            logger.info(f"❌ REJECTING list article candidate: '{name}'")
            return None

        if candidate.url.strip():
            return candidate

        # No product link: keep it if it can still be described, linking the directory
        if candidate.description.strip() and candidate.directory_url:
            logger.info(
                f"ℹ️ Candidate '{name}' has no product URL, using directory URL {candidate.directory_url}"
            )
            return candidate.model_copy(update={"url": candidate.directory_url})

        logger.warning(f"❌ REJECTING candidate '{name}' - no usable URL")
        return None

    def validate_candidates(self, candidates: List[ToolCandidate]) -> List[ToolCandidate]:
        """Validate a batch of candidates, dropping rejected ones."""
        validated = []
        for candidate in candidates:
            result = self.validate_candidate(candidate)
            if result is not None:
                validated.append(result)
        return validated

    def missing_detail_fields(self, details: Dict[str, Any]) -> List[str]:
        """List the detail fields (features, use cases, pros, cons) still empty."""
        return [field for field in self.DETAIL_FIELDS if not details.get(field)]

    def has_required_fields(self, tool: AppTool) -> bool:
        """Check that a record can be shown: name, description and url are set."""
        return all(
            isinstance(getattr(tool, field), str) and getattr(tool, field).strip()
            for field in self.REQUIRED_FIELDS
        )

"""Normalization of raw user queries before they reach any source."""

import logging
import re

logger = logging.getLogger(__name__)

FILLER_PATTERN = re.compile(
    r"\b(?:what is|the best|tools? for|ai)\b|[?.!]", re.IGNORECASE
)
WHITESPACE_PATTERN = re.compile(r"\s+")


def _strip_fillers(text: str) -> str:
    stripped = FILLER_PATTERN.sub(" ", text)
    return WHITESPACE_PATTERN.sub(" ", stripped).strip()


def normalize_query(query: str) -> str:
    """Strip filler phrases and punctuation and collapse whitespace.

    Stripping runs until nothing changes, so normalizing an already
    normalized query returns it unchanged. If nothing would be left, the
    trimmed raw query is returned instead.

    Args:
        query: Raw user query

    Returns:
        Normalized query
    """
    trimmed = query.strip()
    current = trimmed
    while True:
        stripped = _strip_fillers(current)
        if stripped == current:
            break
        current = stripped

    if not current:
        logger.info(f"Normalization emptied query '{trimmed}', keeping raw query")
        return trimmed
    return current

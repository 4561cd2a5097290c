"""Parsing of JSON replies returned by the LLM."""

import json
import logging
import re
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

LIST_KEYS = ("tools", "products", "rankedTools", "ranked_tools", "results", "items")


class LLMJsonResult:
    """Outcome of parsing an LLM reply: either ``data`` or an ``error``."""

    def __init__(
        self, success: bool, data: Any = None, error: Optional[str] = None
    ):
        """Initialize the parse result."""
        self.success = success
        self.data = data
        self.error = error

    @classmethod
    def ok(cls, data: Any) -> "LLMJsonResult":
        return cls(True, data=data)

    @classmethod
    def failure(cls, error: str) -> "LLMJsonResult":
        return cls(False, error=error)

    def as_list(self) -> Optional[List[Any]]:
        """Return the payload as a list of entries.

        JSON mode replies are always objects, so ``{"tools": [...]}`` style
        wrappers are unwrapped. A lone tool object becomes a one-item list.
        Returns None when the payload holds no list.
        """
        if not self.success:
            return None
        data = self.data
        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            for key in LIST_KEYS:
                if isinstance(data.get(key), list):
                    return data[key]
            list_values = [value for value in data.values() if isinstance(value, list)]
            if len(list_values) == 1 and all(
                isinstance(item, dict) for item in list_values[0]
            ):
                return list_values[0]
            if data.get("name"):
                return [data]
        return None

    def as_dict(self) -> Optional[Dict[str, Any]]:
        """Return the payload as a single object, unwrapping one-item lists."""
        if not self.success:
            return None
        data = self.data
        if isinstance(data, dict):
            for key in ("tool", "enhancedTool", "enhanced_tool"):
                if isinstance(data.get(key), dict):
                    return data[key]
            return data
        if isinstance(data, list) and len(data) == 1 and isinstance(data[0], dict):
            return data[0]
        return None


def _strip_code_fences(text: str) -> str:
    if "```json" in text:
        return text.split("```json")[1].split("```")[0].strip()
    if "```" in text:
        return text.split("```")[1].split("```")[0].strip()
    return text.strip()


def parse_llm_json(response_text: Optional[str]) -> LLMJsonResult:
    """Parse a JSON reply from the LLM, handling markdown code blocks.

    Args:
        response_text: Raw response text from the LLM

    Returns:
        LLMJsonResult with the parsed data, or a failure with the reason
    """
    if not response_text or not response_text.strip():
        return LLMJsonResult.failure("Empty response")

    text = _strip_code_fences(response_text)

    try:
        return LLMJsonResult.ok(json.loads(text, strict=False))
    except json.JSONDecodeError as json_error:
        logger.warning(f"JSON parsing error: {json_error}")

    # Prose around the payload: take the outermost object or array
    match = re.search(r"(\{.*\}|\[.*\])", text, re.DOTALL)
    if match:
        try:
            return LLMJsonResult.ok(json.loads(match.group(1), strict=False))
        except json.JSONDecodeError as json_error:
            logger.warning(f"Embedded JSON parsing error: {json_error}")

    logger.error(f"Failed JSON text (truncated): {text[:300]}...")
    return LLMJsonResult.failure("Response is not valid JSON")

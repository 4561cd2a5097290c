"""Tool validation and formatting services."""

from .query_normalizer import normalize_query
from .tool_formatter import ToolDataFormatter
from .tool_validator import ToolDataValidator

__all__ = ["ToolDataValidator", "ToolDataFormatter", "normalize_query"]

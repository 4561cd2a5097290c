"""Stage timing for the tool discovery pipeline."""

from contextlib import asynccontextmanager
import logging
import time
from typing import Any, Dict

logger = logging.getLogger(__name__)


class PerformanceMonitor:
    """Monitor and track pipeline stage timings."""

    STAGES = ("normalize", "source_search", "enrichment", "ranking")

    def __init__(self):
        """Initialize performance monitor with empty metrics."""
        self.metrics = {
            "total_requests": 0,
            "total_time": 0.0,
            "average_response_time": 0.0,
            "fallback_results": 0,
        }
        for stage in self.STAGES:
            self.metrics[f"{stage}_time"] = 0.0

    @asynccontextmanager
    async def time_operation(self, operation_name: str):
        """Context manager to time operations."""
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            self.metrics[f"{operation_name}_time"] = duration
            logger.info(f"⏱️ {operation_name} took {duration:.2f}s")

    def record_request(self, total_time: float, used_fallback: bool = False):
        """Record a complete request."""
        self.metrics["total_requests"] += 1
        self.metrics["total_time"] += total_time
        self.metrics["average_response_time"] = (
            self.metrics["total_time"] / self.metrics["total_requests"]
        )
        if used_fallback:
            self.metrics["fallback_results"] += 1

    def get_performance_report(self) -> Dict[str, Any]:
        """Get performance report."""
        return {
            **self.metrics,
            "performance_status": self._get_performance_status(),
        }

    def _get_performance_status(self) -> str:
        """Get performance status.

        Discovery makes several sequential scrape and LLM calls, so the
        thresholds are in tens of seconds.
        """
        avg_time = self.metrics["average_response_time"]
        if avg_time <= 20.0:
            return "excellent"
        elif avg_time <= 40.0:
            return "good"
        elif avg_time <= 60.0:
            return "acceptable"
        else:
            return "needs_optimization"

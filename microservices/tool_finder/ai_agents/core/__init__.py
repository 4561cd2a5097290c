"""Core AI agents functionality organized by purpose."""

from .performance_monitor import PerformanceMonitor
from .retry import RetryExhaustedError, retry_with_fallback

__all__ = [
    "PerformanceMonitor",
    "RetryExhaustedError",
    "retry_with_fallback",
]

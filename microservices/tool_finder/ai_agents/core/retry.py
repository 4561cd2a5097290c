"""Retry helper with a fixed delay and a degrade step for flaky remote calls.

Every external call made by the adapters goes through ``retry_with_fallback``.
The helper does not know about proxies or request formats; callers pass
``on_failure`` (run after each failed attempt that will be retried) and
``degrade`` (run once, right before the final attempt).

Example:
    result = await retry_with_fallback(
        lambda: service._request("POST", "/v1/scrape", payload),
        max_attempts=3,
        delay_seconds=2.0,
        on_failure=toggle_proxy,
        degrade=simplify_payload,
        label=f"scrape {url}",
    )
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_EXHAUSTED_MESSAGE = "Unknown error occurred after multiple attempts"


class RetryExhaustedError(Exception):
    """Raised when every attempt of an operation failed."""

    def __init__(self, message: str, attempts: int):
        """Store the last error message and the number of attempts made."""
        super().__init__(message)
        self.message = message
        self.attempts = attempts


def _result_error(result: Any) -> Optional[str]:
    """Pull an error message off a failure result (object or dict)."""
    if isinstance(result, dict):
        return result.get("error")
    return getattr(result, "error", None)


def _is_success(result: Any) -> bool:
    if isinstance(result, dict):
        return bool(result.get("success"))
    return bool(getattr(result, "success", False))


async def retry_with_fallback(
    operation: Callable[[], Awaitable[Any]],
    max_attempts: int,
    delay_seconds: float,
    on_failure: Optional[Callable[[int], None]] = None,
    degrade: Optional[Callable[[], None]] = None,
    label: str = "operation",
) -> Any:
    """Run ``operation`` until it returns a successful result.

    Args:
        operation: Zero-argument coroutine factory; its result must expose
            ``success`` (attribute or dict key) and optionally ``error``
        max_attempts: Hard ceiling on the number of calls
        delay_seconds: Fixed wait between attempts
        on_failure: Called with the failed attempt number before a retry
        degrade: Called once before the final attempt
        label: Name used in log lines

    Returns:
        The first successful result

    Raises:
        RetryExhaustedError: When all attempts failed
    """
    last_error: Optional[str] = None

    for attempt in range(1, max_attempts + 1):
        try:
            logger.info(f"🔄 [RETRY] Attempt {attempt}/{max_attempts} for {label}")
            result = await operation()

            if _is_success(result):
                logger.info(f"✅ [RETRY] {label} succeeded on attempt {attempt}")
                return result

            last_error = _result_error(result) or last_error
            logger.error(
                f"❌ [RETRY] Failed attempt {attempt}/{max_attempts} for {label}: {last_error}"
            )
        except Exception as e:
            last_error = str(e) or e.__class__.__name__
            logger.error(
                f"❌ [RETRY] Error on attempt {attempt}/{max_attempts} for {label}: {e}"
            )

        if attempt >= max_attempts:
            break

        await asyncio.sleep(delay_seconds)

        if on_failure is not None:
            on_failure(attempt)

        if degrade is not None and attempt + 1 == max_attempts:
            logger.info(f"🪶 [RETRY] Simplifying request for final attempt of {label}")
            degrade()

    message = last_error or DEFAULT_EXHAUSTED_MESSAGE
    logger.error(
        f"❌ [RETRY] {label} failed after {max_attempts} attempts: {message}"
    )
    raise RetryExhaustedError(message, max_attempts)

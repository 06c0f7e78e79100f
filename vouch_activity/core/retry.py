"""
Bounded exponential-backoff retry for a single upstream operation.

Delay before attempt n+1 is base_delay * 2**(n-1); no jitter. Errors whose
retryable flag is False (validation failures, 4xx rejections) are re-raised
immediately. Each upstream call is wrapped on its own, so a failing batch
never retries its siblings.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from vouch_activity.core.exceptions import ActivityError
from vouch_activity.vouch_logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_SEC = 0.5


def is_retryable(exc: BaseException) -> bool:
    """ActivityError decides via its flag; anything else is treated as transient."""
    if isinstance(exc, ActivityError):
        return exc.retryable
    return isinstance(exc, Exception)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY_SEC,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    op_name: str = "upstream_call",
) -> T:
    """
    Run operation up to max_attempts times.

    Args:
        operation: Zero-arg coroutine factory; called once per attempt.
        max_attempts: Total attempts including the first (>= 1).
        base_delay: Delay in seconds before the second attempt.
        sleep: Awaitable sleep; injectable for tests.
        op_name: Name used in log events.

    Returns:
        The operation's result.

    Raises:
        The non-retryable error immediately, or the last error once attempts
        are exhausted.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except Exception as e:
            if not is_retryable(e):
                logger.debug("retry_not_retryable", op=op_name, attempt=attempt, error=str(e))
                raise
            if attempt >= max_attempts:
                logger.warning("retry_exhausted", op=op_name, attempts=attempt, error=str(e))
                raise
            delay = base_delay * (2 ** (attempt - 1))
            logger.info("retry_backoff", op=op_name, attempt=attempt, delay_sec=delay, error=str(e))
            await sleep(delay)

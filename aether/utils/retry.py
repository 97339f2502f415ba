"""
RETRY UTILITY
=============

Awaits a coroutine-producing function and, if it raises a transient error,
retries a few times with exponential backoff. Every prompt call in every flow
goes through here so temporary overloads, rate limits or network blips don't
immediately fail the request.

Whether an error is transient is decided by case-sensitive substring matching
on the error message; the upstream failures carry no structured codes. The
markers live in one predicate so they can be swapped out in a single place.

Example:
  result = await with_retry(lambda: invoker.invoke("summaryPrompt", data), label="summaryPrompt")
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Tuple, TypeVar


logger = logging.getLogger("AETHER")

T = TypeVar("T")

# Service overload and rate limiting.
TRANSIENT_ERROR_MARKERS: Tuple[str, ...] = ("503", "overloaded", "429", "rate limit")
# The above plus dropped connections and timeouts.
NETWORK_ERROR_MARKERS: Tuple[str, ...] = TRANSIENT_ERROR_MARKERS + ("ECONNRESET", "timeout")


def matches_markers(exc: BaseException, markers: Tuple[str, ...]) -> bool:
    """True if the error message contains any marker (case-sensitive)."""
    message = str(exc)
    return any(marker in message for marker in markers)


def is_transient_error(exc: BaseException) -> bool:
    """Overload (503) or rate limit (429) errors."""
    return matches_markers(exc, TRANSIENT_ERROR_MARKERS)


def is_transient_network_error(exc: BaseException) -> bool:
    """Overload, rate limit, connection reset or timeout errors."""
    return matches_markers(exc, NETWORK_ERROR_MARKERS)


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Delay before 0-indexed attempt `attempt` (>= 1): base_delay, 2x, 4x, ..."""
    return base_delay * (2 ** (attempt - 1))


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    is_retryable: Callable[[BaseException], bool] = is_transient_error,
    label: str = "call",
) -> T:
    """
    Await fn(). If it raises a retryable error, sleep and try again; the delay doubles each retry.
    Non-retryable errors are re-raised at once. After max_attempts attempts (including the
    first) the last error is re-raised. Each retry logs one warning naming `label`.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")
    if base_delay < 0:
        raise ValueError("base_delay must be >= 0")

    for attempt in range(max_attempts):
        try:
            return await fn()
        except Exception as e:
            if not is_retryable(e) or attempt == max_attempts - 1:
                raise
            delay = backoff_delay(attempt + 1, base_delay)
            logger.warning(
                "%s failed (%s), retrying attempt %s/%s in %.1fs",
                label,
                e,
                attempt + 2,
                max_attempts,
                delay,
            )
            await asyncio.sleep(delay)

    # Unreachable: the loop either returns or raises.
    raise RuntimeError("with_retry exhausted without a result")


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget, first delay and transient-error predicate carried by one flow."""

    max_attempts: int = 3
    base_delay: float = 1.0
    is_retryable: Callable[[BaseException], bool] = is_transient_error

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("RetryPolicy.max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("RetryPolicy.base_delay must be >= 0")

    async def run(self, fn: Callable[[], Awaitable[T]], label: str = "call") -> T:
        return await with_retry(
            fn,
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            is_retryable=self.is_retryable,
            label=label,
        )

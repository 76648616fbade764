"""Retry utility for provider and AI backend calls with exponential backoff."""
from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, TypeVar

import httpx

from ..exceptions import DataNotAvailableError


logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass(frozen=True)
class RetryPolicy:
    """Retry settings passed around as data.

    ``delay_for(attempt)`` is the pause before the given 1-based attempt;
    the first attempt never waits.
    """
    max_attempts: int = 3
    initial_delay: float = 0.5
    backoff_factor: float = 1.0
    jitter: float = 0.0

    def delay_for(self, attempt: int) -> float:
        if attempt <= 1:
            return 0.0
        delay = self.initial_delay * (self.backoff_factor ** (attempt - 2))
        if self.jitter > 0:
            delay += random.uniform(0, self.jitter)
        return delay

    def total_delay(self) -> float:
        """Longest total pause across all attempts, jitter included."""
        return sum(
            self.initial_delay * (self.backoff_factor ** (attempt - 2)) + self.jitter
            for attempt in range(2, self.max_attempts + 1)
        )


NO_RETRY = RetryPolicy(max_attempts=1, initial_delay=0.0)


async def retry_async(
    func: Callable[..., T],
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    jitter: float = 0.0,
    exceptions: tuple = (httpx.HTTPError, asyncio.TimeoutError),
) -> T:
    """
    Retry an async function with exponential backoff and optional jitter.

    Args:
        func: The async function to retry
        max_attempts: Maximum number of attempts (default: 3)
        initial_delay: Initial delay in seconds (default: 1.0)
        backoff_factor: Multiplier for delay between retries (default: 2.0)
        jitter: Random jitter range [0, jitter] added to delay (default: 0.0)
        exceptions: Tuple of exceptions to catch and retry

    Returns:
        The result of the function call

    Raises:
        DataNotAvailableError: For 4xx responses that will not succeed on retry
        The last exception if all retries fail
    """
    delay = initial_delay
    last_exception: Optional[BaseException] = None

    for attempt in range(1, max_attempts + 1):
        try:
            return await func()
        except exceptions as exc:
            last_exception = exc

            if isinstance(exc, httpx.HTTPStatusError):
                status = exc.response.status_code
                if status in (400, 401, 403, 404, 422):
                    raise DataNotAvailableError(
                        f"API returned {status}: {exc.response.text[:200]}"
                    ) from exc
                if status == 429:
                    retry_after = exc.response.headers.get('Retry-After')
                    if retry_after and retry_after.isdigit():
                        delay = max(float(retry_after), delay)
                    logger.warning(
                        f"Rate limit hit (429). Attempt {attempt}/{max_attempts}."
                    )

            if attempt < max_attempts:
                actual_delay = delay + random.uniform(0, jitter) if jitter > 0 else delay
                logger.warning(
                    f"Attempt {attempt}/{max_attempts} failed: {exc}. "
                    f"Retrying in {actual_delay:.1f}s..."
                )
                await asyncio.sleep(actual_delay)
                delay *= backoff_factor
            else:
                logger.error(
                    f"All {max_attempts} attempts failed. Last error: {exc}"
                )

    raise last_exception  # type: ignore


async def retry_with_policy(
    func: Callable[[], T],
    policy: RetryPolicy,
    exceptions: Tuple[type, ...] = (httpx.HTTPError, asyncio.TimeoutError),
) -> T:
    """Run ``retry_async`` with the settings carried by a ``RetryPolicy``."""
    return await retry_async(
        func,
        max_attempts=policy.max_attempts,
        initial_delay=policy.initial_delay,
        backoff_factor=policy.backoff_factor,
        jitter=policy.jitter,
        exceptions=exceptions,
    )


# retry.py
import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Await ``fn()`` up to ``max_retries + 1`` times, sleeping
    ``base_delay * 2**attempt`` seconds between failures.
    The last error is re-raised unchanged once attempts run out.
    """
    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as e:
            if attempt >= max_retries:
                raise
            delay = base_delay * (2 ** attempt)
            logger.warning(
                "Retry attempt %d/%d after %.2fs delay. Error: %s",
                attempt + 1, max_retries, delay, e,
            )
            await sleep(delay)
            attempt += 1

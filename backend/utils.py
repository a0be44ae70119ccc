# utils.py
import asyncio
import math
import re
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

T = TypeVar("T")

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.I)


def strip_code_fence(content: str) -> str:
    """Some models wrap JSON in ``` blocks; strip if present."""
    return _FENCE_RE.sub("", content.strip()).strip()


def content_length(paragraphs: Sequence[str]) -> int:
    return len(" ".join(paragraphs))


def estimate_tokens(chars: int) -> int:
    # ~4 characters per token for English text
    return math.ceil(chars / 4)


def clean_text(text: str) -> str:
    """Drop short lines, collapse blank runs and horizontal whitespace."""
    lines = [line for line in text.split("\n") if len(line) >= 30]

    cleaned: List[str] = []
    previous_blank = False
    for line in lines:
        blank = not line.strip()
        if blank and previous_blank:
            continue
        cleaned.append("" if blank else line)
        previous_blank = blank

    return re.sub(r"[ \t]+", " ", "\n".join(cleaned)).strip()


async def gather_bounded(
    factories: Sequence[Callable[[], Awaitable[T]]],
    limit: Optional[int] = None,
) -> List[T]:
    """Run every factory concurrently, at most ``limit`` at a time.

    Waits for all of them; results come back in input order. Exceptions
    propagate, so callers that need degraded results catch inside the factory.
    """
    if not factories:
        return []
    sem = asyncio.Semaphore(limit or len(factories))

    async def run(factory: Callable[[], Awaitable[T]]) -> T:
        async with sem:
            return await factory()

    return list(await asyncio.gather(*(run(f) for f in factories)))

# enrichment.py
import logging
import time
from typing import Annotated, List, Optional, Sequence

from pydantic import BaseModel, BeforeValidator, Field, ValidationError

from llm import CompletionClient, LLMOutputError, format_validation_error, parse_json_response
from log import log_event
from prompts import build_topic_enrichment_messages
from retry import retry_with_backoff
from schemas import NonEmptyStr, integral_float
from utils import content_length, estimate_tokens

logger = logging.getLogger(__name__)

MAX_TITLE_WORDS = 6
DEFAULT_IMPORTANCE = 3


class EnrichedTopic(BaseModel):
    title: NonEmptyStr
    summary: List[NonEmptyStr] = Field(min_length=2, max_length=3)
    importance: Annotated[int, Field(strict=True, ge=1, le=5), BeforeValidator(integral_float)]


def fallback_enrichment(title: str, summary: Optional[str]) -> EnrichedTopic:
    """Used when every enrichment attempt failed; bypasses validation."""
    return EnrichedTopic.model_construct(
        title=title,
        summary=[summary] if summary else ["No summary available"],
        importance=DEFAULT_IMPORTANCE,
    )


def parse_enrichment(raw: str) -> EnrichedTopic:
    data = parse_json_response(raw)
    try:
        enriched = EnrichedTopic.model_validate(data)
    except ValidationError as e:
        raise LLMOutputError(format_validation_error("Topic enrichment validation failed", e)) from e

    words = enriched.title.split()
    if len(words) > MAX_TITLE_WORDS:
        raise LLMOutputError(f"Title has {len(words)} words, must be <= {MAX_TITLE_WORDS} words")
    return enriched


async def enrich_topic(
    client: CompletionClient,
    title: str,
    content: Sequence[str],
    *,
    quiz_id: Optional[str] = None,
    max_retries: int = 3,
    base_delay: float = 1.0,
) -> EnrichedTopic:
    """Rewrite a topic's title, summarize it and score its importance.

    Raises the last error once retries are exhausted; the caller decides
    the fallback.
    """
    start = time.monotonic()
    messages = build_topic_enrichment_messages(title, content)

    async def attempt() -> EnrichedTopic:
        return parse_enrichment(await client.complete(messages))

    enriched = await retry_with_backoff(attempt, max_retries, base_delay)
    log_event(
        logger,
        "topic_enrichment_complete",
        quizId=quiz_id,
        elapsedTimeMs=int((time.monotonic() - start) * 1000),
        tokenEstimate=estimate_tokens(len(title) + content_length(content)),
    )
    return enriched

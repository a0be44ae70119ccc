# topic_quiz.py
import logging
import time
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field, ValidationError

from llm import CompletionClient, LLMOutputError, format_validation_error, parse_json_response
from log import log_event
from prompts import build_topic_quiz_messages
from retry import retry_with_backoff
from schemas import MCQ, Difficulty
from utils import content_length, estimate_tokens

logger = logging.getLogger(__name__)

SHORT_TOPIC_CHARS = 500
LONG_TOPIC_CHARS = 2000


class TopicQuizPayload(BaseModel):
    # 2-4 regardless of the count requested in the prompt
    questions: List[MCQ] = Field(min_length=2, max_length=4)


def question_count_for(content: Sequence[str]) -> int:
    length = content_length(content)
    if length < SHORT_TOPIC_CHARS:
        return 2
    if length > LONG_TOPIC_CHARS:
        return 4
    return 3


def parse_topic_quiz(raw: str) -> List[MCQ]:
    data = parse_json_response(raw)
    try:
        return TopicQuizPayload.model_validate(data).questions
    except ValidationError as e:
        raise LLMOutputError(format_validation_error("Topic quiz validation failed", e)) from e


async def generate_quiz_for_topic(
    client: CompletionClient,
    title: str,
    content: Sequence[str],
    difficulty: Difficulty = "medium",
    *,
    quiz_id: Optional[str] = None,
    topic_id: Optional[str] = None,
    max_retries: int = 3,
    base_delay: float = 1.0,
) -> List[MCQ]:
    start = time.monotonic()
    count = question_count_for(content)
    messages = build_topic_quiz_messages(content, title, difficulty, count)

    async def attempt() -> List[MCQ]:
        return parse_topic_quiz(await client.complete(messages))

    questions = await retry_with_backoff(attempt, max_retries, base_delay)
    log_event(
        logger,
        "topic_quiz_generation_complete",
        quizId=quiz_id,
        topicId=topic_id,
        questionCount=len(questions),
        difficulty=difficulty,
        elapsedTimeMs=int((time.monotonic() - start) * 1000),
        tokenEstimate=estimate_tokens(len(title) + content_length(content)),
    )
    return questions

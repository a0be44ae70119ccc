# quiz_generator.py
import json
import logging
import math
import re
from typing import Any, List

from pydantic import BaseModel, Field, ValidationError

from llm import CompletionClient, LLMOutputError, format_validation_error, parse_json_response
from prompts import build_quiz_generator_messages
from retry import retry_with_backoff
from schemas import MCQ, NonEmptyStr

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^[+-]?\d+")


class GeneratedQuiz(BaseModel):
    title: NonEmptyStr
    questions: List[MCQ] = Field(min_length=5, max_length=10)


def _coerce_answer_index(value: Any, position: int) -> Any:
    if value is None:
        logger.warning("Question %d: answerIndex is null/undefined, defaulting to 0", position)
        return 0
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return math.floor(value) if math.isfinite(value) else value
    if isinstance(value, str):
        match = _LEADING_INT.match(value.strip())
        if match:
            return int(match.group())
        logger.warning("Question %d: answerIndex string %r could not be parsed as number", position, value)
    return value


def normalize_payload(raw: Any) -> Any:
    """Coerce loosely-typed answerIndex values before strict validation."""
    if not isinstance(raw, dict) or not isinstance(raw.get("questions"), list):
        return raw
    questions = []
    for i, q in enumerate(raw["questions"], start=1):
        if isinstance(q, dict):
            q = {**q, "answerIndex": _coerce_answer_index(q.get("answerIndex"), i)}
        questions.append(q)
    return {**raw, "questions": questions}


def parse_generated_quiz(raw: str) -> GeneratedQuiz:
    data = normalize_payload(parse_json_response(raw))
    try:
        return GeneratedQuiz.model_validate(data)
    except ValidationError as e:
        raise LLMOutputError(format_validation_error("Quiz validation failed", e)) from e


async def generate_quiz(
    client: CompletionClient,
    key_points: List[str],
    question_count: int = 5,
    *,
    max_retries: int = 3,
    base_delay: float = 1.0,
) -> GeneratedQuiz:
    """Generate a titled 5-10 question quiz from condensed key points."""
    messages = build_quiz_generator_messages(json.dumps(key_points), question_count)

    async def attempt() -> GeneratedQuiz:
        return parse_generated_quiz(await client.complete(messages))

    return await retry_with_backoff(attempt, max_retries, base_delay)

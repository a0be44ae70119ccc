# condenser.py
from typing import List

from llm import CompletionClient, LLMOutputError, parse_json_response
from prompts import build_condenser_messages
from retry import retry_with_backoff


def parse_key_points(raw: str) -> List[str]:
    data = parse_json_response(raw)
    if not isinstance(data, list):
        raise LLMOutputError("Failed to process key points: Response is not an array")
    if not all(isinstance(point, str) for point in data):
        raise LLMOutputError("Failed to process key points: Response contains non-string elements")
    return data


async def condense_content(
    client: CompletionClient,
    text: str,
    *,
    max_retries: int = 3,
    base_delay: float = 1.0,
) -> List[str]:
    """Condense page text into a list of factual key points."""
    messages = build_condenser_messages(text)

    async def attempt() -> List[str]:
        return parse_key_points(await client.complete(messages))

    return await retry_with_backoff(attempt, max_retries, base_delay)

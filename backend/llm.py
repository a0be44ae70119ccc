# llm.py: Gemini completions with fallback across candidate models
import json
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

import google.generativeai as genai

from utils import strip_code_fence

logger = logging.getLogger(__name__)

ChatMessage = Dict[str, str]  # {"role": "system" | "user", "content": "..."}

# Known-good text models, tried in this order after the pinned GEMINI_MODEL
CANDIDATE_MODELS = [
    "gemini-1.5-flash",
    "gemini-1.5-flash-002",
    "gemini-1.5-pro",
]


class LLMError(Exception):
    pass


class LLMOutputError(LLMError):
    """The model answered, but not with the JSON we asked for."""


class CompletionClient(Protocol):
    async def complete(self, messages: Sequence[ChatMessage]) -> str:
        ...


def split_messages(messages: Sequence[ChatMessage]):
    """Return (system_instruction, user_text) from role-tagged messages."""
    system = [m["content"] for m in messages if m.get("role") == "system"]
    user = [m["content"] for m in messages if m.get("role") != "system"]
    return ("\n\n".join(system) or None), "\n\n".join(user)


class GeminiCompletion:
    """Text completion through Gemini, falling back across candidate models."""

    def __init__(self, api_key: str, model: str = "", candidates: Optional[List[str]] = None):
        if not api_key:
            raise RuntimeError("GOOGLE_API_KEY is missing in .env")
        genai.configure(api_key=api_key)
        names = [model] if model else []
        names += [m for m in (candidates or CANDIDATE_MODELS) if m != model]
        self.models_to_try = names

    async def _try_model_once(self, model_name: str, system: Optional[str], prompt: str) -> str:
        model = genai.GenerativeModel(model_name, system_instruction=system)
        resp = await model.generate_content_async(prompt)
        # Handle blocked/empty responses
        try:
            text = resp.text
        except ValueError as e:
            raise LLMError(f"Model {model_name} returned no usable content: {e}") from e
        if not text or not text.strip():
            raise LLMError(f"Model {model_name} returned empty response.")
        return text

    async def complete(self, messages: Sequence[ChatMessage]) -> str:
        system, prompt = split_messages(messages)
        errors = []
        for name in self.models_to_try:
            try:
                logger.debug("Trying model: %s", name)
                return await self._try_model_once(name, system, prompt)
            except Exception as e:
                errors.append(f"{name}: {e}")
                continue
        raise LLMError("All candidate models failed:\n" + "\n".join(errors))


def parse_json_response(raw: str) -> Any:
    content = strip_code_fence(raw)
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise LLMOutputError(
            f"Failed to parse JSON response from model: {e}\nRaw: {content[:400]}"
        ) from e


def format_validation_error(prefix: str, error) -> str:
    """Flatten a pydantic ValidationError into ``path: message; ...``."""
    parts = []
    for err in error.errors():
        path = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{path}: {err['msg']}" if path else err["msg"])
    return f"{prefix}: {'; '.join(parts)}"


# --- Simple smoke check
async def ping(client: CompletionClient) -> dict:
    """
    Returns {"ok": True, "content": "..."} on success,
            or {"ok": False, "error": "..."} on failure.
    """
    try:
        text = await client.complete([{"role": "user", "content": "Reply with OK"}])
    except Exception as e:
        return {"ok": False, "error": str(e)}
    return {"ok": True, "content": text.strip()[:200]}

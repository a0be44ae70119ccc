from __future__ import annotations

import asyncio
import json
import logging

import pytest

import config
from log import JsonLogFormatter, log_event
from utils import clean_text, content_length, estimate_tokens, gather_bounded, strip_code_fence


def test_strip_code_fence():
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('```\n[1]\n```') == "[1]"
    assert strip_code_fence('  {"a": 1}  ') == '{"a": 1}'


def test_content_length_and_tokens():
    assert content_length(["ab", "cd"]) == 5
    assert content_length([]) == 0
    assert estimate_tokens(9) == 3
    assert estimate_tokens(8) == 2


def test_clean_text_drops_short_lines_and_collapses_space():
    text = "short\nThis line is long enough to be kept around.\n\n\nAnother    line\tthat is also long enough."
    assert clean_text(text) == (
        "This line is long enough to be kept around.\nAnother line that is also long enough."
    )


def test_gather_bounded_keeps_order_and_limit():
    active = 0
    peak = 0

    def factory(i: int):
        async def run() -> int:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.005 * (5 - i))
            active -= 1
            return i
        return run

    results = asyncio.run(gather_bounded([factory(i) for i in range(5)], limit=2))
    assert results == [0, 1, 2, 3, 4]
    assert peak == 2
    assert asyncio.run(gather_bounded([], limit=3)) == []


def test_json_log_formatter_includes_event_fields(caplog):
    logger = logging.getLogger("test.pipeline")
    with caplog.at_level(logging.INFO, logger="test.pipeline"):
        log_event(logger, "topic_segmentation_complete", quizId="q1", topicCount=3)

    record = caplog.records[-1]
    payload = json.loads(JsonLogFormatter().format(record))
    assert payload["message"] == "topic_segmentation_complete"
    assert payload["extra"]["quizId"] == "q1"
    assert payload["extra"]["topicCount"] == 3


def test_validate_env_reports_missing(monkeypatch):
    monkeypatch.setattr(config, "load_dotenv", lambda: None)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    with pytest.raises(RuntimeError, match="DATABASE_URL, GOOGLE_API_KEY"):
        config.validate_env()

    monkeypatch.setenv("DATABASE_URL", "not-a-url")
    monkeypatch.setenv("GOOGLE_API_KEY", "key")
    with pytest.raises(RuntimeError, match="valid URL"):
        config.validate_env()

    monkeypatch.setenv("DATABASE_URL", "postgresql://user@localhost/db")
    config.validate_env()


def test_load_settings_reads_environment(monkeypatch):
    monkeypatch.setattr(config, "load_dotenv", lambda: None)
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("LLM_CONCURRENCY", "0")
    monkeypatch.setenv("AUTO_GENERATE", "no")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    settings = config.load_settings()

    assert settings.database_url == "sqlite://"
    assert settings.llm_concurrency == 1
    assert settings.auto_generate is False
    assert settings.log_level == "DEBUG"
    assert settings.llm_max_retries == 3

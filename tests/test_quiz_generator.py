from __future__ import annotations

import asyncio
import json

import pytest

from condenser import condense_content, parse_key_points
from llm import LLMOutputError
from quiz_generator import generate_quiz, normalize_payload, parse_generated_quiz

from fixtures import FakeCompletion, mcq


def quiz_json(count: int = 5, **overrides) -> str:
    payload = {"title": "Solar System", "questions": [mcq(f"q{i}", i % 4) for i in range(count)]}
    payload.update(overrides)
    return json.dumps(payload)


def test_normalize_payload_coerces_answer_indices():
    raw = {
        "title": "t",
        "questions": [
            {**mcq("a"), "answerIndex": "2"},
            {**mcq("b"), "answerIndex": None},
            {k: v for k, v in mcq("c").items() if k != "answerIndex"},
            {**mcq("d"), "answerIndex": 3.0},
            {**mcq("e"), "answerIndex": "three"},
        ],
    }
    coerced = [q["answerIndex"] for q in normalize_payload(raw)["questions"]]
    assert coerced == [2, 0, 0, 3, "three"]


def test_parse_generated_quiz_after_coercion():
    payload = json.loads(quiz_json(5))
    payload["questions"][0]["answerIndex"] = " 1 "
    payload["questions"][1]["answerIndex"] = None
    quiz = parse_generated_quiz(json.dumps(payload))

    assert quiz.title == "Solar System"
    assert [q.answer_index for q in quiz.questions][:2] == [1, 0]


@pytest.mark.parametrize(
    "raw",
    [
        quiz_json(4),
        quiz_json(11),
        quiz_json(5, title=""),
        quiz_json(5, questions="nope"),
    ],
)
def test_parse_generated_quiz_rejects_invalid(raw):
    with pytest.raises(LLMOutputError):
        parse_generated_quiz(raw)


def test_parse_generated_quiz_rejects_unparseable_index():
    payload = json.loads(quiz_json(5))
    payload["questions"][2]["answerIndex"] = "B"
    with pytest.raises(LLMOutputError):
        parse_generated_quiz(json.dumps(payload))


def test_generate_quiz_retries_until_valid():
    client = FakeCompletion([quiz_json(3), "```json\n" + quiz_json(7) + "\n```"])
    quiz = asyncio.run(generate_quiz(client, ["Mars is red.", "Venus is hot."], base_delay=0))

    assert len(quiz.questions) == 7
    assert len(client.calls) == 2
    assert '"Mars is red."' in client.calls[0][1]["content"]
    for q in quiz.questions:
        data = json.loads(json.dumps(q.to_json()))
        assert len(data["options"]) == 4 and 0 <= data["answerIndex"] <= 3


def test_parse_key_points():
    assert parse_key_points('["a", "b"]') == ["a", "b"]
    with pytest.raises(LLMOutputError):
        parse_key_points('{"points": []}')
    with pytest.raises(LLMOutputError):
        parse_key_points('["a", 2]')


def test_condense_content_retries():
    client = FakeCompletion(["nope", '["Fact one", "Fact two"]'])
    points = asyncio.run(condense_content(client, "Long text", base_delay=0))
    assert points == ["Fact one", "Fact two"]
    assert len(client.calls) == 2

from __future__ import annotations

import asyncio
import json

import pytest

from llm import LLMOutputError
from topic_quiz import generate_quiz_for_topic, parse_topic_quiz, question_count_for

from fixtures import FakeCompletion, mcq, topic_quiz_json


@pytest.mark.parametrize(
    "length, expected",
    [(10, 2), (499, 2), (500, 3), (2000, 3), (2001, 4)],
)
def test_question_count_follows_content_size(length, expected):
    assert question_count_for(["x" * length]) == expected


def test_parse_accepts_two_to_four_questions():
    for count in (2, 3, 4):
        questions = parse_topic_quiz(topic_quiz_json("T", count))
        assert len(questions) == count
        assert all(len(q.options) == 4 for q in questions)


@pytest.mark.parametrize("count", [0, 1, 5])
def test_parse_rejects_question_counts_outside_bounds(count):
    with pytest.raises(LLMOutputError):
        parse_topic_quiz(topic_quiz_json("T", count))


@pytest.mark.parametrize(
    "bad",
    [
        {**mcq("q"), "answerIndex": 4},
        {**mcq("q"), "answerIndex": -1},
        {**mcq("q"), "answerIndex": "1"},
        {**mcq("q"), "answerIndex": 1.5},
        {**mcq("q"), "options": ["a", "b", "c"]},
        {**mcq("q"), "options": ["a", "b", "c", ""]},
        {**mcq("q"), "question": "  "},
    ],
)
def test_parse_rejects_malformed_questions(bad):
    raw = json.dumps({"questions": [mcq("fine"), bad]})
    with pytest.raises(LLMOutputError, match="Topic quiz validation failed"):
        parse_topic_quiz(raw)


def test_generate_quiz_for_topic_prompts_with_difficulty_and_count():
    client = FakeCompletion([topic_quiz_json("Cells", 4)])
    content = ["c" * 2500]
    questions = asyncio.run(
        generate_quiz_for_topic(client, "Cells", content, "hard", base_delay=0)
    )

    assert len(questions) == 4
    system, user = client.calls[0][0]["content"], client.calls[0][1]["content"]
    assert "(4)" in system
    assert "Difficulty: hard" in user
    assert "Topic: Cells" in user


def test_generate_quiz_for_topic_retries_invalid_output():
    client = FakeCompletion(["{}", topic_quiz_json("Cells", 2)])
    questions = asyncio.run(generate_quiz_for_topic(client, "Cells", ["short"], base_delay=0))
    assert len(questions) == 2
    assert len(client.calls) == 2


def test_generated_questions_survive_serialization():
    client = FakeCompletion([topic_quiz_json("Cells", 3)])
    questions = asyncio.run(generate_quiz_for_topic(client, "Cells", ["x" * 800], base_delay=0))
    for q in questions:
        data = json.loads(json.dumps(q.to_json()))
        assert len(data["options"]) == 4
        assert 0 <= data["answerIndex"] <= 3


def test_parse_accepts_integral_float_answer_index():
    raw = json.dumps({"questions": [mcq("a"), {**mcq("b"), "answerIndex": 2.0}]})
    questions = parse_topic_quiz(raw)

    assert questions[1].answer_index == 2
    assert isinstance(questions[1].answer_index, int)
    assert questions[1].to_json()["answerIndex"] == 2


def test_parse_rejects_boolean_answer_index():
    raw = json.dumps({"questions": [mcq("a"), {**mcq("b"), "answerIndex": True}]})
    with pytest.raises(LLMOutputError):
        parse_topic_quiz(raw)

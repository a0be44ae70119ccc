from __future__ import annotations

from datetime import datetime

import pytest

from models import QuizStatus
from repository import QuizRecord
from scoring import SubmissionError, score_submission

from fixtures import mcq


def ready_quiz(answer_indices, status=QuizStatus.ready) -> QuizRecord:
    return QuizRecord(
        id="quiz-1",
        source_url="https://example.com",
        title="T",
        questions=[mcq(f"q{i}", a) for i, a in enumerate(answer_indices)],
        status=status,
        created_at=datetime(2024, 1, 1),
    )


def test_score_submission_breakdown():
    result = score_submission(ready_quiz([0, 2, 1, 3, 0]), [0, 2, 1, 3, 1])

    assert result.correct_count == 4
    assert result.score == 80
    assert result.percentage == 80
    assert result.total_questions == 5
    wrong = [r for r in result.results if not r.correct]
    assert len(wrong) == 1
    assert wrong[0].question_index == 4
    assert wrong[0].correct_answer_index == 0
    assert wrong[0].user_answer_index == 1


def test_score_rounds_half_up():
    result = score_submission(ready_quiz([0] * 8), [0] * 5 + [1] * 3)
    assert result.score == 63  # 62.5


def test_score_requires_ready_quiz():
    with pytest.raises(SubmissionError, match="not ready"):
        score_submission(ready_quiz([0], status=QuizStatus.processing_topics), [0])


@pytest.mark.parametrize("answers", [[0, 1], [0, 1, 2, 3], [0, 1, 4], [0, -1, 1], [0, True, 1]])
def test_score_rejects_bad_answers(answers):
    with pytest.raises(SubmissionError):
        score_submission(ready_quiz([0, 1, 2]), answers)

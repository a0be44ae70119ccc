# scoring.py
import math
from typing import Sequence

from models import QuizStatus
from repository import QuizRecord
from schemas import QuestionResult, ScoreOut


class SubmissionError(ValueError):
    pass


def score_submission(quiz: QuizRecord, answers: Sequence[int]) -> ScoreOut:
    """Score ``answers`` against the stored answerIndex of each question."""
    if quiz.status != QuizStatus.ready:
        raise SubmissionError(f"Quiz is not ready. Current status: {quiz.status.value}")

    questions = quiz.questions or []
    if not questions:
        raise SubmissionError("Quiz has no questions")
    if len(answers) != len(questions):
        raise SubmissionError(
            f"Number of answers ({len(answers)}) does not match number of questions ({len(questions)})"
        )
    for i, answer in enumerate(answers):
        if isinstance(answer, bool) or not isinstance(answer, int) or not 0 <= answer <= 3:
            raise SubmissionError(f"Invalid answer at index {i}. Must be a number between 0 and 3")

    results = [
        QuestionResult(
            question_index=i,
            correct=answers[i] == q["answerIndex"],
            correct_answer_index=q["answerIndex"],
            user_answer_index=answers[i],
        )
        for i, q in enumerate(questions)
    ]
    correct = sum(1 for r in results if r.correct)
    # round half up
    score = math.floor(correct * 100 / len(questions) + 0.5)

    return ScoreOut(
        quiz_id=quiz.id,
        score=score,
        correct_count=correct,
        total_questions=len(questions),
        percentage=score,
        results=results,
    )

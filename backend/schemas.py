# schemas.py
from datetime import datetime
from typing import Annotated, Any, List, Optional, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, HttpUrl, StringConstraints

Difficulty = Literal["easy", "medium", "hard"]


def integral_float(value: Any) -> Any:
    # JSON has one number type; 2.0 is the integer 2, 2.5 is not
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
AnswerIndex = Annotated[int, Field(strict=True, ge=0, le=3), BeforeValidator(integral_float)]


class MCQ(BaseModel):
    """One multiple-choice question as stored; answerIndex never leaves the service."""
    model_config = ConfigDict(populate_by_name=True)

    question: NonEmptyStr
    options: List[NonEmptyStr] = Field(min_length=4, max_length=4)
    answer_index: AnswerIndex = Field(alias="answerIndex")

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


# --- read boundary: nothing below carries answerIndex

class QuestionOut(BaseModel):
    question: str
    options: List[str]


class QuizOut(BaseModel):
    id: str
    source_url: str
    title: Optional[str]
    questions: Optional[List[QuestionOut]]
    status: str
    created_at: datetime


class TopicOut(BaseModel):
    id: str
    title: str
    summary: Optional[str]
    level: int
    token_estimate: int
    selected: bool = True


class TopicsOut(BaseModel):
    quiz_id: str
    topics: List[TopicOut]


class HistoryRow(BaseModel):
    id: str
    source_url: str
    title: Optional[str]
    status: str
    created_at: str


class HistoryOut(BaseModel):
    items: list[HistoryRow]


class CreateIn(BaseModel):
    source_url: HttpUrl


class GenerateIn(BaseModel):
    topic_ids: List[str] = Field(min_length=1)
    difficulty: Difficulty = "medium"


class GenerateOut(BaseModel):
    quiz_id: str
    status: str
    question_count: int
    message: str


class SubmitIn(BaseModel):
    answers: List[AnswerIndex] = Field(min_length=1)


class QuestionResult(BaseModel):
    question_index: int
    correct: bool
    correct_answer_index: int
    user_answer_index: int


class ScoreOut(BaseModel):
    quiz_id: str
    score: int
    correct_count: int
    total_questions: int
    percentage: int
    results: List[QuestionResult]

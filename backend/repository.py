# repository.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from db import get_session
import models
from models import QuizStatus, TopicStatus


@dataclass
class QuizRecord:
    id: str
    source_url: str
    title: Optional[str]
    questions: Optional[list]
    status: QuizStatus
    created_at: datetime

    @property
    def has_questions(self) -> bool:
        return isinstance(self.questions, list) and len(self.questions) > 0


@dataclass
class TopicRecord:
    id: str
    quiz_id: str
    title: str
    summary: Optional[str]
    level: int
    parent_id: Optional[str]
    content: List[str] = field(default_factory=list)
    token_estimate: int = 0
    position: int = 0
    status: TopicStatus = TopicStatus.pending
    created_at: Optional[datetime] = None


def _quiz_record(row: models.Quiz) -> QuizRecord:
    return QuizRecord(
        id=row.id,
        source_url=row.source_url,
        title=row.title,
        questions=list(row.questions) if row.questions is not None else None,
        status=QuizStatus(row.status),
        created_at=row.created_at,
    )


def _topic_record(row: models.Topic) -> TopicRecord:
    content = row.content
    # content is stored as JSON; tolerate a bare string from older rows
    if isinstance(content, str):
        content = [content]
    return TopicRecord(
        id=row.id,
        quiz_id=row.quiz_id,
        title=row.title,
        summary=row.summary,
        level=row.level,
        parent_id=row.parent_id,
        content=list(content or []),
        token_estimate=row.token_estimate,
        position=row.position,
        status=TopicStatus(row.status),
        created_at=row.created_at,
    )


def create_quiz(source_url: str, status: QuizStatus = QuizStatus.processing) -> QuizRecord:
    with get_session() as db:
        row = models.Quiz(source_url=source_url, status=status, questions=[])
        db.add(row)
        db.commit()
        db.refresh(row)
        return _quiz_record(row)


def get_quiz(quiz_id: str) -> Optional[QuizRecord]:
    with get_session() as db:
        row = db.query(models.Quiz).filter(models.Quiz.id == quiz_id).first()
        return _quiz_record(row) if row else None


def list_quizzes() -> List[QuizRecord]:
    with get_session() as db:
        rows = db.query(models.Quiz).order_by(models.Quiz.created_at.desc()).all()
        return [_quiz_record(r) for r in rows]


_QUIZ_FIELDS = {"title", "questions", "status"}


def update_quiz(quiz_id: str, **fields) -> QuizRecord:
    """Apply ``fields`` to one quiz row in a single commit."""
    unknown = set(fields) - _QUIZ_FIELDS
    if unknown:
        raise ValueError(f"Cannot update quiz fields: {sorted(unknown)}")

    with get_session() as db:
        row = db.query(models.Quiz).filter(models.Quiz.id == quiz_id).first()
        if row is None:
            raise LookupError(f"Quiz {quiz_id} not found")
        for name, value in fields.items():
            setattr(row, name, value)
        db.commit()
        db.refresh(row)
        return _quiz_record(row)


def create_topic(
    quiz_id: str,
    *,
    title: str,
    summary: Optional[str],
    level: int,
    parent_id: Optional[str],
    content: List[str],
    token_estimate: int,
    position: int,
    status: TopicStatus = TopicStatus.pending,
) -> TopicRecord:
    with get_session() as db:
        row = models.Topic(
            quiz_id=quiz_id,
            title=title,
            summary=summary,
            level=level,
            parent_id=parent_id,
            content=list(content),
            token_estimate=token_estimate,
            position=position,
            status=status,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return _topic_record(row)


def list_topics(quiz_id: str) -> List[TopicRecord]:
    with get_session() as db:
        rows = (
            db.query(models.Topic)
            .filter(models.Topic.quiz_id == quiz_id)
            .order_by(models.Topic.position, models.Topic.created_at)
            .all()
        )
        return [_topic_record(r) for r in rows]


def find_topics(quiz_id: str, topic_ids: Iterable[str]) -> List[TopicRecord]:
    ids = list(dict.fromkeys(topic_ids))
    if not ids:
        return []
    with get_session() as db:
        rows = (
            db.query(models.Topic)
            .filter(models.Topic.quiz_id == quiz_id, models.Topic.id.in_(ids))
            .order_by(models.Topic.position, models.Topic.created_at)
            .all()
        )
        return [_topic_record(r) for r in rows]


def commit_questions(
    quiz_id: str,
    questions: List[dict],
    fallback_title: Optional[str] = None,
) -> Tuple[QuizRecord, bool]:
    """Store ``questions`` and mark the quiz ready, unless it already is.

    The re-check and the write share one session, so a concurrent run that
    finished first is never overwritten. Returns ``(quiz, committed)``.
    """
    with get_session() as db:
        row = (
            db.query(models.Quiz)
            .filter(models.Quiz.id == quiz_id)
            .with_for_update()
            .first()
        )
        if row is None:
            raise LookupError(f"Quiz {quiz_id} not found")
        if QuizStatus(row.status) == QuizStatus.ready and row.questions:
            return _quiz_record(row), False

        row.questions = list(questions)
        row.status = QuizStatus.ready
        row.title = row.title or fallback_title
        db.commit()
        db.refresh(row)
        return _quiz_record(row), True

# models.py
import enum
import uuid
from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Enum
from sqlalchemy.orm import relationship
from db import Base


class QuizStatus(str, enum.Enum):
    processing = "processing"
    processing_topics = "processing_topics"
    ready = "ready"
    failed = "failed"


class TopicStatus(str, enum.Enum):
    pending = "pending"
    processing = "processing"
    ready = "ready"
    failed = "failed"


def _uuid() -> str:
    return str(uuid.uuid4())


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(String(36), primary_key=True, default=_uuid)
    source_url = Column(String(2048), nullable=False)
    title = Column(String(512))
    questions = Column(JSON)           # [{"question", "options": [4], "answerIndex"}]
    status = Column(Enum(QuizStatus, name="quiz_status"), nullable=False, default=QuizStatus.processing)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    topics = relationship("Topic", back_populates="quiz", cascade="all, delete-orphan")


class Topic(Base):
    __tablename__ = "topics"

    id = Column(String(36), primary_key=True, default=_uuid)
    quiz_id = Column(String(36), ForeignKey("quizzes.id", ondelete="CASCADE"), index=True, nullable=False)
    title = Column(String(512), nullable=False)
    summary = Column(Text)
    level = Column(Integer, nullable=False)
    parent_id = Column(String(36), ForeignKey("topics.id", ondelete="SET NULL"))
    content = Column(JSON, nullable=False)  # ordered paragraphs
    token_estimate = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False, default=0)  # index within the normalization batch
    status = Column(Enum(TopicStatus, name="topic_status"), nullable=False, default=TopicStatus.pending)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    quiz = relationship("Quiz", back_populates="topics")

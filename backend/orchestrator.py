# orchestrator.py
"""
Quiz pipeline.

Topic phase:     render -> segment -> normalize -> enrich (fan-out)
                 -> persist topics in order -> ``processing_topics``
Question phase:  per-topic questions (fan-out) -> flatten -> shuffle
                 -> cap at 10 -> re-check quiz -> persist -> ``ready``

Any topic-phase error marks the quiz ``failed``. Per-topic failures are
degraded locally and never fail a batch. Store calls run in worker
threads so the event loop keeps serving other fan-outs.
"""
import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, List, Optional, Sequence

import repository
import scraper
from condenser import condense_content
from enrichment import EnrichedTopic, enrich_topic, fallback_enrichment
from llm import CompletionClient
from log import log_event
from models import QuizStatus, TopicStatus
from quiz_generator import generate_quiz
from repository import TopicRecord
from schemas import MCQ, Difficulty
from segmentation import NormalizedTopic, normalize_topics, segment_by_headings
from topic_quiz import generate_quiz_for_topic
from utils import clean_text, gather_bounded

logger = logging.getLogger(__name__)

MAX_QUIZ_QUESTIONS = 10

# statuses from which no question phase may start
NOT_GENERATABLE = (QuizStatus.processing, QuizStatus.failed)

Fetcher = Callable[[str], Awaitable[str]]


class PipelineError(Exception):
    pass


class QuizNotFoundError(LookupError):
    pass


class QuizStateError(ValueError):
    """The quiz is not in a status that allows the requested operation."""


class TopicSelectionError(ValueError):
    def __init__(self, message: str, missing_topic_ids: Sequence[str] = ()):
        super().__init__(message)
        self.missing_topic_ids = list(missing_topic_ids)


def shuffle_questions(questions: Sequence[MCQ], rng: random.Random) -> List[MCQ]:
    """Fisher-Yates over a copy of ``questions``."""
    shuffled = list(questions)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randrange(i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


async def _store(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    return await asyncio.to_thread(fn, *args, **kwargs)


class QuizOrchestrator:
    def __init__(
        self,
        client: CompletionClient,
        *,
        fetch_html: Optional[Fetcher] = None,
        fetch_text: Optional[Fetcher] = None,
        max_retries: int = 3,
        base_delay: float = 1.0,
        concurrency: Optional[int] = 5,
        scrape_timeout: float = scraper.DEFAULT_TIMEOUT,
        rng: Optional[random.Random] = None,
    ):
        self.client = client
        self.fetch_html = fetch_html or (lambda url: scraper.render_page_html(url, scrape_timeout))
        self.fetch_text = fetch_text or (lambda url: scraper.render_page_text(url, scrape_timeout))
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.concurrency = concurrency
        self.rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Topic phase
    # ------------------------------------------------------------------
    async def process_topics(self, quiz_id: str, source_url: str) -> None:
        try:
            html = await self.fetch_html(source_url)
            raw = segment_by_headings(html, quiz_id=quiz_id)
            if not raw:
                raise PipelineError("No topics found in the scraped content")

            topics = normalize_topics(raw)
            if not topics:
                raise PipelineError("Topic normalization produced no topics")

            enriched = await self._enrich_all(quiz_id, topics)
            await self._persist_topics(quiz_id, topics, enriched)
            await _store(repository.update_quiz, quiz_id, status=QuizStatus.processing_topics)
        except Exception as e:
            await self._mark_failed(quiz_id)
            if isinstance(e, PipelineError):
                raise
            raise PipelineError(f"Topic processing failed for {source_url}: {e}") from e

    async def _enrich_all(self, quiz_id: str, topics: List[NormalizedTopic]) -> List[EnrichedTopic]:
        def factory(topic: NormalizedTopic):
            async def run() -> EnrichedTopic:
                try:
                    return await enrich_topic(
                        self.client,
                        topic.title,
                        topic.content,
                        quiz_id=quiz_id,
                        max_retries=self.max_retries,
                        base_delay=self.base_delay,
                    )
                except Exception:
                    logger.warning("Failed to enrich topic %r", topic.title, exc_info=True)
                    return fallback_enrichment(topic.title, topic.summary)
            return run

        return await gather_bounded([factory(t) for t in topics], self.concurrency)

    async def _persist_topics(
        self,
        quiz_id: str,
        topics: List[NormalizedTopic],
        enriched: List[EnrichedTopic],
    ) -> List[TopicRecord]:
        # children need their parent's id, so rows go in one at a time
        created: List[TopicRecord] = []
        for i, (topic, extra) in enumerate(zip(topics, enriched)):
            parent_id = None
            if topic.parent_index is not None and topic.parent_index < i:
                parent_id = created[topic.parent_index].id
            created.append(
                await _store(
                    repository.create_topic,
                    quiz_id,
                    title=extra.title,
                    summary="\n".join(extra.summary),
                    level=topic.level,
                    parent_id=parent_id,
                    content=topic.content,
                    token_estimate=topic.token_estimate,
                    position=i,
                    status=TopicStatus.ready,
                )
            )
        return created

    async def _mark_failed(self, quiz_id: str) -> None:
        try:
            await _store(repository.update_quiz, quiz_id, status=QuizStatus.failed)
        except Exception:
            logger.exception("Failed to update quiz %s status to failed", quiz_id)

    # ------------------------------------------------------------------
    # Question phase
    # ------------------------------------------------------------------
    async def generate_from_topics(
        self,
        quiz_id: str,
        topic_ids: Sequence[str],
        difficulty: Difficulty = "medium",
    ) -> int:
        """Generate questions from the selected topics; returns the stored count."""
        quiz = await _store(repository.get_quiz, quiz_id)
        if quiz is None:
            raise QuizNotFoundError(f"Quiz {quiz_id} not found")

        wanted = list(dict.fromkeys(topic_ids))
        topics = await _store(repository.find_topics, quiz_id, wanted)
        found = {t.id for t in topics}
        missing = [tid for tid in wanted if tid not in found]
        if missing or not topics:
            raise TopicSelectionError("Some topic IDs do not belong to this quiz", missing)

        if quiz.status == QuizStatus.ready and quiz.has_questions:
            log_event(logger, "quiz_generation_skipped", quizId=quiz_id, reason="already_ready")
            return len(quiz.questions)
        if quiz.status in NOT_GENERATABLE:
            raise QuizStateError(
                f"Quiz {quiz_id} cannot generate questions. Current status: {quiz.status.value}"
            )

        questions = await self._questions_for(quiz_id, topics, difficulty)
        if not questions:
            raise PipelineError(f"Failed to generate any questions for quiz {quiz_id}")

        stored = await self._commit_questions(quiz_id, questions, topics)
        return len(stored)

    async def generate_automatically(self, quiz_id: str, difficulty: Difficulty = "medium") -> None:
        """Best-effort generation over every topic; never raises."""
        try:
            quiz = await _store(repository.get_quiz, quiz_id)
            if quiz is None:
                raise QuizNotFoundError(f"Quiz {quiz_id} not found")
            if quiz.status == QuizStatus.ready or quiz.has_questions:
                log_event(logger, "quiz_generation_skipped", quizId=quiz_id, reason="already_ready")
                return
            if quiz.status != QuizStatus.processing_topics:
                log_event(logger, "quiz_generation_skipped", quizId=quiz_id, reason=quiz.status.value)
                return

            topics = await _store(repository.list_topics, quiz_id)
            if not topics:
                log_event(logger, "quiz_generation_skipped", quizId=quiz_id, reason="no_topics")
                return

            questions = await self._questions_for(quiz_id, topics, difficulty)
            if not questions:
                logger.error("Failed to generate any questions for quiz %s", quiz_id)
                return

            await self._commit_questions(quiz_id, questions, topics)
        except Exception:
            logger.exception("Error in automatic quiz generation for %s", quiz_id)

    async def _questions_for(
        self,
        quiz_id: str,
        topics: List[TopicRecord],
        difficulty: Difficulty,
    ) -> List[MCQ]:
        def factory(topic: TopicRecord):
            async def run() -> List[MCQ]:
                try:
                    return await generate_quiz_for_topic(
                        self.client,
                        topic.title,
                        topic.content,
                        difficulty,
                        quiz_id=quiz_id,
                        topic_id=topic.id,
                        max_retries=self.max_retries,
                        base_delay=self.base_delay,
                    )
                except Exception:
                    logger.warning("Failed to generate quiz for topic %s", topic.id, exc_info=True)
                    return []
            return run

        per_topic = await gather_bounded([factory(t) for t in topics], self.concurrency)
        merged = [q for questions in per_topic for q in questions]
        return shuffle_questions(merged, self.rng)[:MAX_QUIZ_QUESTIONS]

    async def _commit_questions(
        self,
        quiz_id: str,
        questions: List[MCQ],
        topics: List[TopicRecord],
    ) -> list:
        """Store ``questions`` unless another run already finished the quiz."""
        payload = [q.to_json() for q in questions]
        try:
            quiz, committed = await _store(
                repository.commit_questions, quiz_id, payload, topics[0].title
            )
        except LookupError as e:
            raise QuizNotFoundError(str(e)) from e

        if not committed:
            log_event(logger, "quiz_generation_skipped", quizId=quiz_id, reason="race_lost")
            return quiz.questions
        log_event(logger, "quiz_questions_committed", quizId=quiz_id, questionCount=len(payload))
        return payload

    # ------------------------------------------------------------------
    # Flat path
    # ------------------------------------------------------------------
    async def build_flat_quiz(self, quiz_id: str, source_url: str) -> None:
        """Condense the whole page and build a single 5-10 question quiz."""
        try:
            text = clean_text(await self.fetch_text(source_url))
            if not text:
                raise PipelineError("No readable content found on the page")

            key_points = await condense_content(
                self.client, text, max_retries=self.max_retries, base_delay=self.base_delay
            )
            if not key_points:
                raise PipelineError("Content condensation produced no key points")

            quiz = await generate_quiz(
                self.client, key_points, max_retries=self.max_retries, base_delay=self.base_delay
            )
            await _store(
                repository.update_quiz,
                quiz_id,
                title=quiz.title,
                questions=[q.to_json() for q in quiz.questions],
                status=QuizStatus.ready,
            )
        except Exception as e:
            await self._mark_failed(quiz_id)
            if isinstance(e, PipelineError):
                raise
            raise PipelineError(f"Quiz generation failed for {source_url}: {e}") from e

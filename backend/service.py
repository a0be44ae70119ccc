# service.py
import asyncio
import logging
from typing import Optional, Set

import repository
from config import Settings, load_settings, validate_env
from db import init_db
from llm import CompletionClient, GeminiCompletion
from log import configure_logging
from models import QuizStatus
from orchestrator import QuizNotFoundError, QuizOrchestrator
from schemas import (
    CreateIn,
    GenerateIn,
    GenerateOut,
    HistoryOut,
    QuizOut,
    ScoreOut,
    SubmitIn,
    TopicOut,
    TopicsOut,
)
from scoring import score_submission

logger = logging.getLogger(__name__)


class QuizService:
    """Entry points for callers; long-running work runs as background tasks."""

    def __init__(
        self,
        settings: Settings,
        client: Optional[CompletionClient] = None,
        orchestrator: Optional[QuizOrchestrator] = None,
    ):
        self.settings = settings
        if orchestrator is None:
            client = client or GeminiCompletion(settings.google_api_key, settings.gemini_model)
            orchestrator = QuizOrchestrator(
                client,
                max_retries=settings.llm_max_retries,
                base_delay=settings.llm_retry_base_delay,
                concurrency=settings.llm_concurrency,
                scrape_timeout=settings.scrape_timeout,
            )
        self.orchestrator = orchestrator
        self._tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # background work
    # ------------------------------------------------------------------
    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_for_background(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run_topic_phase(self, quiz_id: str, source_url: str) -> None:
        try:
            await self.orchestrator.process_topics(quiz_id, source_url)
        except Exception:
            logger.exception("Error processing topics for quiz %s", quiz_id)
            return

        if self.settings.auto_generate:
            await asyncio.sleep(self.settings.auto_generate_delay)
            await self.orchestrator.generate_automatically(quiz_id)

    async def _run_flat(self, quiz_id: str, source_url: str) -> None:
        try:
            await self.orchestrator.build_flat_quiz(quiz_id, source_url)
        except Exception:
            logger.exception("Error generating quiz %s", quiz_id)

    # ------------------------------------------------------------------
    # operations
    # ------------------------------------------------------------------
    async def create_quiz(self, payload: CreateIn) -> QuizOut:
        """Persist a ``processing`` quiz and start the topic phase."""
        quiz = await asyncio.to_thread(repository.create_quiz, str(payload.source_url))
        self._spawn(self._run_topic_phase(quiz.id, quiz.source_url))
        return self._quiz_out(quiz)

    async def create_flat_quiz(self, payload: CreateIn) -> QuizOut:
        quiz = await asyncio.to_thread(repository.create_quiz, str(payload.source_url))
        self._spawn(self._run_flat(quiz.id, quiz.source_url))
        return self._quiz_out(quiz)

    def get_quiz(self, quiz_id: str) -> QuizOut:
        quiz = repository.get_quiz(quiz_id)
        if quiz is None:
            raise QuizNotFoundError(f"Quiz {quiz_id} not found")
        return self._quiz_out(quiz)

    def list_quizzes(self) -> HistoryOut:
        return HistoryOut(items=[
            {
                "id": q.id,
                "source_url": q.source_url,
                "title": q.title,
                "status": q.status.value,
                "created_at": q.created_at.isoformat(),
            }
            for q in repository.list_quizzes()
        ])

    def list_topics(self, quiz_id: str) -> TopicsOut:
        if repository.get_quiz(quiz_id) is None:
            raise QuizNotFoundError(f"Quiz {quiz_id} not found")
        topics = [
            TopicOut(
                id=t.id,
                title=t.title,
                summary=t.summary,
                level=t.level,
                token_estimate=t.token_estimate,
            )
            for t in repository.list_topics(quiz_id)
        ]
        return TopicsOut(quiz_id=quiz_id, topics=topics)

    async def generate(self, quiz_id: str, payload: GenerateIn) -> GenerateOut:
        count = await self.orchestrator.generate_from_topics(
            quiz_id, payload.topic_ids, payload.difficulty
        )
        return GenerateOut(
            quiz_id=quiz_id,
            status=QuizStatus.ready.value,
            question_count=count,
            message=f"Successfully generated {count} questions from {len(payload.topic_ids)} topic(s)",
        )

    def submit(self, quiz_id: str, payload: SubmitIn) -> ScoreOut:
        quiz = repository.get_quiz(quiz_id)
        if quiz is None:
            raise QuizNotFoundError(f"Quiz {quiz_id} not found")
        return score_submission(quiz, payload.answers)

    @staticmethod
    def _quiz_out(quiz: repository.QuizRecord) -> QuizOut:
        # answerIndex is stripped here and nowhere else
        questions = None
        if quiz.status == QuizStatus.ready and quiz.has_questions:
            questions = [
                {"question": q["question"], "options": q["options"]} for q in quiz.questions
            ]
        return QuizOut(
            id=quiz.id,
            source_url=quiz.source_url,
            title=quiz.title,
            questions=questions,
            status=quiz.status.value,
            created_at=quiz.created_at,
        )


def create_service(settings: Optional[Settings] = None, client: Optional[CompletionClient] = None) -> QuizService:
    """Configure logging and the database, then build the service."""
    if settings is None:
        validate_env()
        settings = load_settings()
    configure_logging(settings.log_level, settings.log_json)
    init_db(settings.database_url)
    return QuizService(settings, client=client)

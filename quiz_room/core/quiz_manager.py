"""Business logic shared between the API server and the CLI."""

from __future__ import annotations

import logging
import random
from threading import Lock
import time
from typing import Callable

from quiz_room.constants.quiz_constants import (
    COURSE_TARGET_PREFIX,
    FINISHED_SESSION_RETENTION_SECONDS,
    GENERAL_TARGET,
)
from quiz_room.core.errors import QuizRoomError
from quiz_room.core.models import AnswerValue, GradingResult, QuizDocument, QuizSummary
from quiz_room.core.services.countdown import ThreadTickScheduler, TickScheduler
from quiz_room.core.services.course_aggregator import aggregate_course, aggregate_general
from quiz_room.core.services.quiz_repository import QuizRepository
from quiz_room.core.services.quiz_session import QuizSession

logger = logging.getLogger(__name__)


class UnknownSessionError(QuizRoomError):
    """Raised when a session id does not refer to a live session."""


class QuizManager:
    """Facade over the quiz repository and the live quiz sessions.

    Finished sessions stay readable for ``finished_retention_seconds`` and are
    evicted the next time a session is started. Retaking within that window
    keeps the session alive.
    """

    def __init__(
        self,
        repository: QuizRepository,
        scheduler: TickScheduler | None = None,
        rng_factory: Callable[[], random.Random] = random.Random,
        clock: Callable[[], float] = time.monotonic,
        finished_retention_seconds: float = FINISHED_SESSION_RETENTION_SECONDS,
    ) -> None:
        self._lock = Lock()
        self._repository = repository
        self._scheduler = scheduler if scheduler is not None else ThreadTickScheduler()
        self._rng_factory = rng_factory
        self._clock = clock
        self._finished_retention_seconds = finished_retention_seconds
        self._sessions: dict[str, QuizSession] = {}
        self._finished_at: dict[str, float] = {}

    @property
    def repository(self) -> QuizRepository:
        return self._repository

    # --- Quiz documents ---

    def list_quizzes(self) -> list[QuizSummary]:
        return self._repository.list_summaries()

    def resolve_quiz(self, target: str) -> QuizDocument:
        """Load a stored quiz, or build one for ``general`` / ``course:<CODE>``."""
        if target == GENERAL_TARGET:
            return aggregate_general(self._repository.list_quiz_documents())
        if target.startswith(COURSE_TARGET_PREFIX):
            course_code = target[len(COURSE_TARGET_PREFIX):]
            return aggregate_course(self._repository.list_quiz_documents(), course_code)
        return self._repository.load_quiz_document(target)

    def save_quiz(self, document: QuizDocument) -> str:
        return self._repository.save_quiz_document(document)

    def delete_quiz(self, file_name: str) -> None:
        self._repository.delete_quiz_document(file_name)

    # --- Sessions ---

    def start_session(self, target: str) -> QuizSession:
        self.evict_finished_sessions()
        document = self.resolve_quiz(target)
        session = QuizSession.start(
            document,
            rng=self._rng_factory(),
            scheduler=self._scheduler,
            on_finish=self._on_session_finished,
        )
        with self._lock:
            self._sessions[session.session_id] = session
        logger.info("Session %s opened for '%s'", session.session_id, target)
        return session

    def get_session(self, session_id: str) -> QuizSession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise UnknownSessionError(f"Session '{session_id}' not found.")
        return session

    def record_answer(self, session_id: str, question_id: str, value: AnswerValue) -> QuizSession:
        session = self.get_session(session_id)
        session.record_answer(question_id, value)
        return session

    def go_to(self, session_id: str, index: int) -> QuizSession:
        session = self.get_session(session_id)
        session.go_to(index)
        return session

    def advance(self, session_id: str) -> QuizSession:
        session = self.get_session(session_id)
        session.advance()
        return session

    def submit(self, session_id: str) -> QuizSession:
        session = self.get_session(session_id)
        session.finish()
        return session

    def retake(self, session_id: str) -> QuizSession:
        session = self.get_session(session_id)
        session.retake()
        with self._lock:
            self._finished_at.pop(session_id, None)
        return session

    def end_session(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(session_id, None)
            self._finished_at.pop(session_id, None)
        if session is None:
            raise UnknownSessionError(f"Session '{session_id}' not found.")
        session.teardown()
        logger.info("Session %s closed", session_id)

    def evict_finished_sessions(self) -> int:
        """Drop sessions that finished more than the retention period ago."""
        cutoff = self._clock() - self._finished_retention_seconds
        with self._lock:
            expired = [sid for sid, finished_at in self._finished_at.items() if finished_at <= cutoff]
            evicted = [self._sessions.pop(sid) for sid in expired if sid in self._sessions]
            for sid in expired:
                del self._finished_at[sid]
        for session in evicted:
            session.teardown()
            logger.info("Session %s evicted", session.session_id)
        return len(evicted)

    def shutdown(self) -> None:
        """Cancel every live session's countdown."""
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            self._finished_at.clear()
        for session in sessions:
            session.teardown()

    def get_session_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _on_session_finished(self, session: QuizSession, result: GradingResult) -> None:
        with self._lock:
            self._finished_at[session.session_id] = self._clock()
        logger.info(
            "Result for %s (%s): %s/%s",
            session.document.topic,
            session.session_id,
            result.total_score,
            result.max_score,
        )

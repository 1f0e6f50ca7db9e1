"""State machine driving one timed attempt at a quiz."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import random
from threading import RLock
from typing import Callable
from uuid import uuid4

from quiz_room.constants.quiz_constants import (
    MAX_SESSION_QUESTIONS,
    TABLE_BONUS_SECONDS,
    TICK_INTERVAL_SECONDS,
)
from quiz_room.core.errors import EmptyQuestionSet, InvalidQuestion, SessionStateError
from quiz_room.core.grader import grade_session
from quiz_room.core.models import (
    AnswerValue,
    GradingResult,
    McqQuestion,
    Question,
    QuizDocument,
    SessionPhase,
)
from quiz_room.core.services.countdown import TickHandle, TickScheduler

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionState:
    """Everything the presentation layer needs to render an attempt."""

    document: QuizDocument
    ordered_question_ids: list[str]
    answers: dict[str, AnswerValue] = field(default_factory=dict)
    current_index: int = 0
    remaining_seconds: int = 0
    phase: SessionPhase = SessionPhase.IN_PROGRESS


def select_questions(questions: list[Question], rng: random.Random) -> list[Question]:
    """Shuffle a copy of the questions and keep at most the session maximum."""
    selected = list(questions)
    rng.shuffle(selected)
    return selected[:MAX_SESSION_QUESTIONS]


def initial_seconds(document: QuizDocument, selected: list[Question]) -> int:
    """Countdown length: the quiz limit plus a bonus per table question.

    Untimed quizzes (no positive limit) return 0 and get no table bonus,
    since there is no countdown for the bonus to extend.
    """
    if document.time_limit_minutes <= 0:
        return 0
    table_questions = sum(1 for q in selected if _uses_table(q))
    return round(document.time_limit_minutes * 60) + table_questions * TABLE_BONUS_SECONDS


def _uses_table(question: Question) -> bool:
    if question.include_table:
        return True
    return not isinstance(question, McqQuestion) and question.is_table_answer


class QuizSession:
    """Manages the state of a single-user quiz attempt.

    A quiz with no time limit is untimed: no ticker is registered and only
    ``advance`` on the last question or an explicit ``finish`` end it.
    """

    def __init__(
        self,
        document: QuizDocument,
        *,
        rng: random.Random | None = None,
        scheduler: TickScheduler | None = None,
        on_tick: Callable[["QuizSession"], None] | None = None,
        on_finish: Callable[["QuizSession", GradingResult], None] | None = None,
        session_id: str | None = None,
    ) -> None:
        if not document.questions:
            raise EmptyQuestionSet(f"Quiz '{document.topic}' has no questions.")

        self.session_id = session_id or uuid4().hex
        self._document = document
        self._rng = rng or random.Random()
        self._scheduler = scheduler
        self._on_tick = on_tick
        self._on_finish = on_finish
        self._lock = RLock()

        self._questions_by_id: dict[str, Question] = {}
        self._state: SessionState | None = None
        self._result: GradingResult | None = None
        self._tick_handle: TickHandle | None = None
        self._generation: int = 0
        self._torn_down: bool = False
        self._untimed: bool = False

    @classmethod
    def start(cls, document: QuizDocument, **kwargs) -> "QuizSession":
        """Create a session and enter ``in_progress`` on a fresh selection."""
        session = cls(document, **kwargs)
        with session._lock:
            session._begin_attempt()
        return session

    # --- Queries ---

    @property
    def state(self) -> SessionState:
        if self._state is None:
            raise SessionStateError("Session has not been started.")
        return self._state

    @property
    def document(self) -> QuizDocument:
        return self._document

    def get_phase(self) -> SessionPhase:
        return self.state.phase

    def is_finished(self) -> bool:
        return self.state.phase is SessionPhase.FINISHED

    def get_result(self) -> GradingResult | None:
        return self._result

    def get_questions(self) -> list[Question]:
        """Return the selected questions in presentation order."""
        return [self._questions_by_id[qid] for qid in self.state.ordered_question_ids]

    def get_current_question(self) -> Question:
        state = self.state
        return self._questions_by_id[state.ordered_question_ids[state.current_index]]

    def get_answer(self, question_id: str) -> AnswerValue:
        return self.state.answers.get(question_id)

    # --- Transitions ---

    def record_answer(self, question_id: str, value: AnswerValue) -> None:
        with self._lock:
            self._require_in_progress("record an answer")
            if question_id not in self._questions_by_id:
                raise InvalidQuestion(f"Question '{question_id}' is not part of this session.")
            self.state.answers[question_id] = value

    def go_to(self, index: int) -> None:
        """Jump to a question. Out-of-range indices are clamped."""
        with self._lock:
            self._require_in_progress("navigate")
            last_index = len(self.state.ordered_question_ids) - 1
            self.state.current_index = max(0, min(index, last_index))

    def advance(self) -> None:
        with self._lock:
            self._require_in_progress("advance")
            state = self.state
            if state.current_index < len(state.ordered_question_ids) - 1:
                state.current_index += 1
            else:
                self.finish()

    def tick(self) -> None:
        """Count down one second; finishes the attempt when time runs out.

        Untimed attempts ignore ticks.
        """
        with self._lock:
            if self._untimed or self._torn_down or self.state.phase is not SessionPhase.IN_PROGRESS:
                return
            state = self.state
            state.remaining_seconds = max(0, state.remaining_seconds - 1)
            if self._on_tick is not None:
                self._on_tick(self)
            if state.remaining_seconds == 0:
                logger.info("Session %s ran out of time.", self.session_id)
                self.finish()

    def finish(self) -> GradingResult:
        """Grade the attempt and enter ``finished``. Repeated calls are no-ops."""
        with self._lock:
            state = self.state
            if state.phase is SessionPhase.FINISHED and self._result is not None:
                return self._result

            self._cancel_ticker()
            self._result = grade_session(self.get_questions(), state.answers)
            state.phase = SessionPhase.FINISHED
            logger.info(
                "Session %s finished: %s/%s",
                self.session_id,
                self._result.total_score,
                self._result.max_score,
            )
            if self._on_finish is not None:
                self._on_finish(self, self._result)
            return self._result

    def retake(self) -> None:
        """Start a brand-new attempt on the same document."""
        with self._lock:
            if self.state.phase is not SessionPhase.FINISHED:
                raise SessionStateError("Only a finished session can be retaken.")
            logger.info("Session %s retaken.", self.session_id)
            self._begin_attempt()

    def teardown(self) -> None:
        """Cancel any outstanding tick registration. Safe to call repeatedly."""
        with self._lock:
            self._torn_down = True
            self._cancel_ticker()

    # --- Internals ---

    def _begin_attempt(self) -> None:
        self._cancel_ticker()
        self._torn_down = False
        self._result = None
        selected = select_questions(self._document.questions, self._rng)
        self._questions_by_id = {q.id: q for q in selected}
        self._state = SessionState(
            document=self._document,
            ordered_question_ids=[q.id for q in selected],
            remaining_seconds=initial_seconds(self._document, selected),
        )
        self._untimed = self._state.remaining_seconds == 0
        self._generation += 1
        if not self._untimed and self._scheduler is not None:
            generation = self._generation
            self._tick_handle = self._scheduler.schedule_repeating(
                TICK_INTERVAL_SECONDS,
                lambda: self._tick_from_scheduler(generation),
            )
        logger.info(
            "Session %s started with %d question(s), %d second(s) on the clock.",
            self.session_id,
            len(selected),
            self._state.remaining_seconds,
        )

    def _tick_from_scheduler(self, generation: int) -> None:
        # A ticker from an earlier attempt must never touch the current state.
        with self._lock:
            if generation != self._generation:
                return
            self.tick()

    def _cancel_ticker(self) -> None:
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None

    def _require_in_progress(self, action: str) -> None:
        if self.state.phase is not SessionPhase.IN_PROGRESS:
            raise SessionStateError(f"Cannot {action} once the session has finished.")

"""Builds synthetic quizzes spanning several stored documents."""

from __future__ import annotations

from dataclasses import replace
import logging
import time
from typing import Callable, Iterable

from quiz_room.constants.quiz_constants import (
    COURSE_MAX_TIME_LIMIT_MINUTES,
    COURSE_MINUTES_PER_QUESTION,
    GENERAL_COURSE_CODE,
    GENERAL_TIME_LIMIT_MINUTES,
)
from quiz_room.core.errors import AggregationNotFound
from quiz_room.core.models import Question, QuizDocument

logger = logging.getLogger(__name__)

MIXED_QUIZ_TYPE = "mixed"

# Input pairs are (file name, document), already in discovery order.
StoredDocuments = Iterable[tuple[str, QuizDocument]]


def aggregate_course(
    documents: StoredDocuments,
    course_code: str,
    clock: Callable[[], float] = time.time,
) -> QuizDocument:
    """Merge every quiz of one course into a cumulative exam."""
    target = course_code.strip()
    wanted = target.upper()
    questions = [
        question
        for _, doc in documents
        if doc.course_code.strip().upper() == wanted
        for question in doc.questions
    ]
    if not questions:
        raise AggregationNotFound(f"No questions found for course {target}")

    renamed = _reassign_ids(questions, prefix=f"course_{target}", clock=clock)
    logger.info("Built cumulative %s quiz with %d question(s)", target, len(renamed))
    return QuizDocument(
        course_code=target,
        topic=f"Cumulative {target} Exam",
        questions=renamed,
        marks=len(renamed),
        time_limit_minutes=min(len(renamed) * COURSE_MINUTES_PER_QUESTION, COURSE_MAX_TIME_LIMIT_MINUTES),
        quiz_type=MIXED_QUIZ_TYPE,
    )


def aggregate_general(
    documents: StoredDocuments,
    clock: Callable[[], float] = time.time,
) -> QuizDocument:
    """Merge every stored quiz into one general knowledge test."""
    questions = [question for _, doc in documents for question in doc.questions]
    if not questions:
        raise AggregationNotFound("No questions found in any stored quiz")

    renamed = _reassign_ids(questions, prefix="gen", clock=clock)
    logger.info("Built general quiz with %d question(s)", len(renamed))
    return QuizDocument(
        course_code=GENERAL_COURSE_CODE,
        topic="General Knowledge Test",
        questions=renamed,
        marks=len(renamed),
        time_limit_minutes=GENERAL_TIME_LIMIT_MINUTES,
        quiz_type=MIXED_QUIZ_TYPE,
    )


def _reassign_ids(questions: list[Question], prefix: str, clock: Callable[[], float]) -> list[Question]:
    # Source ids are not reused: stored ids are timestamps and collide across files.
    stamp = int(clock() * 1000)
    return [replace(question, id=f"{prefix}_{index}_{stamp}") for index, question in enumerate(questions)]

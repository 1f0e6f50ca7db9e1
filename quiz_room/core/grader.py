"""Grading policy for each question type.

Multiple-choice and written questions are worth one point. Table-answer
questions are scored on a 0-100 scale so partially filled tables earn
partial credit. Totals simply add both scales together.
"""

from __future__ import annotations

import math
from typing import Mapping, Sequence, assert_never

from quiz_room.constants.quiz_constants import (
    FUZZY_MATCH_THRESHOLD,
    KEYWORD_MATCH_THRESHOLD,
    KEYWORD_MIN_ANSWER_LENGTH,
    MCQ_POINTS,
    TABLE_ANSWER_POINTS,
    WRITTEN_POINTS,
)
from quiz_room.core.models import (
    AnswerValue,
    FillBlanksQuestion,
    GradingResult,
    McqQuestion,
    Question,
    QuestionVerdict,
    TableData,
    TheoryQuestion,
    Verdict,
)
from quiz_room.core.similarity import keyword_overlap, normalize, similarity_ratio


def grade_question(question: Question, answer: AnswerValue) -> QuestionVerdict:
    """Score one answer. Malformed or missing answers earn zero, never raise."""
    if isinstance(question, McqQuestion):
        return _grade_mcq(question, answer)
    if isinstance(question, (TheoryQuestion, FillBlanksQuestion)):
        if question.is_table_answer:
            return _grade_table(answer)
        return _grade_text(question, answer)
    assert_never(question)


def grade_session(
    questions: Sequence[Question],
    answers: Mapping[str, AnswerValue],
) -> GradingResult:
    per_question: dict[str, QuestionVerdict] = {}
    for question in questions:
        per_question[question.id] = grade_question(question, answers.get(question.id))

    return GradingResult(
        total_score=sum(v.earned for v in per_question.values()),
        max_score=sum(v.max for v in per_question.values()),
        per_question=per_question,
    )


def _grade_mcq(question: McqQuestion, answer: AnswerValue) -> QuestionVerdict:
    if answer is None:
        return QuestionVerdict(0, MCQ_POINTS, Verdict.UNANSWERED)
    # bool is an int subclass but never a valid selection
    if isinstance(answer, int) and not isinstance(answer, bool) and answer == question.correct_option_index:
        return QuestionVerdict(MCQ_POINTS, MCQ_POINTS, Verdict.CORRECT)
    return QuestionVerdict(0, MCQ_POINTS, Verdict.INCORRECT)


def _grade_text(question: TheoryQuestion | FillBlanksQuestion, answer: AnswerValue) -> QuestionVerdict:
    submitted = normalize(answer)
    expected = normalize(question.answer)
    if not submitted:
        return QuestionVerdict(0, WRITTEN_POINTS, Verdict.UNANSWERED)

    if _text_matches(answer, submitted, question.answer, expected):
        return QuestionVerdict(WRITTEN_POINTS, WRITTEN_POINTS, Verdict.CORRECT)
    return QuestionVerdict(0, WRITTEN_POINTS, Verdict.INCORRECT)


def _text_matches(raw_submitted: AnswerValue, submitted: str, raw_expected: str, expected: str) -> bool:
    if submitted == expected:
        return True
    if similarity_ratio(submitted, expected) >= FUZZY_MATCH_THRESHOLD:
        return True
    if len(expected) > KEYWORD_MIN_ANSWER_LENGTH:
        return keyword_overlap(raw_submitted, raw_expected) >= KEYWORD_MATCH_THRESHOLD
    return False


def _grade_table(answer: AnswerValue) -> QuestionVerdict:
    if not isinstance(answer, TableData):
        return QuestionVerdict(0, TABLE_ANSWER_POINTS, Verdict.UNANSWERED)

    total_rows = len(answer.rows)
    if total_rows == 0:
        return QuestionVerdict(0, TABLE_ANSWER_POINTS, Verdict.UNANSWERED)

    filled_rows = sum(1 for row in answer.rows if any(_cell_filled(cell) for cell in row))
    earned = math.floor(TABLE_ANSWER_POINTS * filled_rows / total_rows)
    if earned == TABLE_ANSWER_POINTS:
        verdict = Verdict.CORRECT
    elif earned > 0:
        verdict = Verdict.PARTIAL
    else:
        verdict = Verdict.UNANSWERED
    return QuestionVerdict(earned, TABLE_ANSWER_POINTS, verdict)


def _cell_filled(cell: object) -> bool:
    return isinstance(cell, str) and bool(cell.strip())

"""Shared fixtures and fakes for the QuizRoom test suite."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

import pytest

from quiz_room.core.models import (
    FillBlanksQuestion,
    McqQuestion,
    QuizDocument,
    TableData,
    TheoryQuestion,
)


class FakeTicker:
    def __init__(self, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            if not self.cancelled:
                self.callback()


class FakeScheduler:
    """Records registrations instead of starting threads."""

    def __init__(self) -> None:
        self.tickers: list[FakeTicker] = []

    def schedule_repeating(self, interval_seconds: float, callback: Callable[[], None]) -> FakeTicker:
        ticker = FakeTicker(callback)
        self.tickers.append(ticker)
        return ticker

    @property
    def latest(self) -> FakeTicker:
        return self.tickers[-1]


def make_mcq(qid: str, correct: int = 0, **kwargs) -> McqQuestion:
    return McqQuestion(id=qid, text=f"Question {qid}", options=["A", "B", "C", "D"], correct_option_index=correct, **kwargs)


def make_document(questions, time_limit_minutes: float = 10, course_code: str = "ACC101") -> QuizDocument:
    return QuizDocument(
        course_code=course_code,
        topic="Cash Flow",
        questions=list(questions),
        marks=len(questions),
        time_limit_minutes=time_limit_minutes,
    )


@pytest.fixture
def fake_scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def mixed_document() -> QuizDocument:
    return make_document(
        [
            make_mcq("m1", correct=1),
            TheoryQuestion(id="t1", text="Define cash flow", answer="Cash Flow"),
            FillBlanksQuestion(id="f1", text="Assets = ___ + Equity", answer="Liabilities"),
            TheoryQuestion(
                id="tab1",
                text="Complete the ledger",
                is_table_answer=True,
                answer_table_template=TableData(headers=["Dr", "Cr"], rows=[["", ""]]),
            ),
        ]
    )


def write_quiz(directory: Path, file_name: str, data: dict) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / file_name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def stored_quiz(course_code: str, topic: str, question_ids: list[str]) -> dict:
    return {
        "courseCode": course_code,
        "topic": topic,
        "marks": len(question_ids),
        "timeLimit": "10",
        "quizType": "mcq",
        "questions": [
            {"id": qid, "text": f"Question {qid}", "type": "mcq", "options": ["yes", "no"], "correctOption": 0}
            for qid in question_ids
        ],
    }


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "quizzes"
    write_quiz(directory, "ACC101_Intro.json", stored_quiz("ACC101", "Intro", ["1", "2"]))
    write_quiz(directory, "ACC101_Ledgers.json", stored_quiz(" acc101 ", "Ledgers", ["1", "3"]))
    write_quiz(directory, "ECO201_Markets.json", stored_quiz("ECO201", "Markets", ["1"]))
    return directory

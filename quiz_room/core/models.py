"""Domain models for the quiz application."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union


@dataclass(slots=True)
class TableData:
    """A simple grid of strings used for reference tables and table answers."""

    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)

    def has_content(self) -> bool:
        cells = list(self.headers) + [cell for row in self.rows for cell in row]
        return any(cell.strip() for cell in cells)


@dataclass(slots=True)
class McqQuestion:
    """Multiple-choice question graded by option index."""

    kind: ClassVar[str] = "mcq"

    id: str
    text: str
    options: list[str]
    correct_option_index: int = 0
    explanation: str = ""
    include_table: bool = False
    reference_table: TableData | None = None


@dataclass(slots=True)
class WrittenQuestion:
    """Shared shape of questions answered with text or a filled-in table."""

    kind: ClassVar[str] = "theory"

    id: str
    text: str
    answer: str = ""
    explanation: str = ""
    include_table: bool = False
    reference_table: TableData | None = None
    is_table_answer: bool = False
    answer_table_template: TableData | None = None


@dataclass(slots=True)
class TheoryQuestion(WrittenQuestion):
    kind: ClassVar[str] = "theory"


@dataclass(slots=True)
class FillBlanksQuestion(WrittenQuestion):
    kind: ClassVar[str] = "fill_blanks"


Question = Union[McqQuestion, TheoryQuestion, FillBlanksQuestion]

# Selected option index, free text, a filled-in table, or None when unanswered.
AnswerValue = Union[int, str, TableData, None]


@dataclass(slots=True)
class QuizDocument:
    """A stored quiz: metadata plus its questions. Read-only once loaded."""

    course_code: str
    topic: str
    questions: list[Question]
    marks: int = 0
    time_limit_minutes: float = 0
    quiz_type: str = "mcq"
    reference_table: TableData | None = None
    created_at: str | None = None


@dataclass(slots=True)
class QuizSummary:
    """Listing entry used by dashboards."""

    file_name: str
    course_code: str
    topic: str
    marks: int
    time_limit_minutes: float
    quiz_type: str
    question_count: int


class Verdict(str, Enum):
    CORRECT = "correct"
    PARTIAL = "partial"
    INCORRECT = "incorrect"
    UNANSWERED = "unanswered"


@dataclass(frozen=True, slots=True)
class QuestionVerdict:
    earned: int
    max: int
    verdict: Verdict


@dataclass(frozen=True, slots=True)
class GradingResult:
    """Outcome of a finished session. Computed once per finish."""

    total_score: int
    max_score: int
    per_question: dict[str, QuestionVerdict]


class SessionPhase(str, Enum):
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"

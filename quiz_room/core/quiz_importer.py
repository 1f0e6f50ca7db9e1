"""Utilities for turning stored or extracted quiz data into domain models.

Two sources are supported:

* JSON documents written by the authoring tool (``parse_quiz_document``).
  Keys follow the stored format (``courseCode``, ``timeLimit``,
  ``correctOption``...). Numbers written as strings are coerced.
* Plain text pulled out of exam PDFs (``parse_exam_text``), laid out as::

      1. Which statement describes accrual accounting?
      A. Cash is recorded when received
      B. Revenue is recorded when earned
      Answer: B

  Options may be written ``A.`` or ``a)`` and the ``Answer:`` marker may
  appear on its own line or trail an option or question line.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
import re
from typing import Any

import fitz  # PyMuPDF

from quiz_room.core.errors import MalformedDocument
from quiz_room.core.models import (
    FillBlanksQuestion,
    McqQuestion,
    Question,
    QuizDocument,
    TableData,
    TheoryQuestion,
)

logger = logging.getLogger(__name__)

_QUESTION_LINE = re.compile(r"^(\d+)[.)]\s*(.*)")
_OPTION_LINE = re.compile(r"^([a-eA-E])[.)]\s*(.*)")
_ANSWER_MARKER = re.compile(r"Answer:\s*([a-eA-E])", re.IGNORECASE)

_WRITTEN_TYPES: dict[str, type[TheoryQuestion] | type[FillBlanksQuestion]] = {
    TheoryQuestion.kind: TheoryQuestion,
    FillBlanksQuestion.kind: FillBlanksQuestion,
}


# --- JSON documents ---


def load_quiz_from_file(file_path: Path) -> QuizDocument:
    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as exc:
        raise MalformedDocument(f"{file_path.name} is not valid UTF-8: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise MalformedDocument(f"{file_path.name} is not valid JSON: {exc}") from exc
    return parse_quiz_document(data)


def validate_document_shape(data: Any) -> None:
    """Minimal shape check shared by loading and the validate command."""
    if not isinstance(data, dict):
        raise MalformedDocument("Quiz document must be a JSON object.")
    if not data.get("courseCode"):
        raise MalformedDocument("Missing courseCode")
    if not data.get("topic"):
        raise MalformedDocument("Missing topic")
    if not isinstance(data.get("questions"), list):
        raise MalformedDocument("Missing questions array")


def parse_quiz_document(data: Any) -> QuizDocument:
    validate_document_shape(data)
    quiz_type = str(data.get("quizType") or McqQuestion.kind)

    questions: list[Question] = []
    seen_ids: set[str] = set()
    for position, raw in enumerate(data["questions"]):
        if not isinstance(raw, dict):
            raise MalformedDocument(f"Question {position + 1} must be an object.")
        question = parse_question(raw, default_type=quiz_type, fallback_id=f"q{position + 1}")
        # Ids written by the authoring tool are timestamps and can collide.
        if question.id in seen_ids:
            question.id = f"{question.id}_{position}"
        seen_ids.add(question.id)
        questions.append(question)

    return QuizDocument(
        course_code=str(data["courseCode"]).strip(),
        topic=str(data["topic"]).strip(),
        questions=questions,
        marks=_coerce_int(data.get("marks"), default=len(questions)),
        time_limit_minutes=_coerce_float(data.get("timeLimit"), default=0),
        quiz_type=quiz_type,
        reference_table=parse_table(data.get("tableData")),
        created_at=data.get("createdAt"),
    )


def parse_question(raw: dict[str, Any], default_type: str, fallback_id: str) -> Question:
    question_type = str(raw.get("type") or default_type)
    question_id = str(raw.get("id")) if raw.get("id") not in (None, "") else fallback_id
    text = str(raw.get("text") or "")
    explanation = str(raw.get("explanation") or "")
    include_table = bool(raw.get("includeTable"))
    reference_table = parse_table(raw.get("tableData")) if include_table else None

    written_type = _WRITTEN_TYPES.get(question_type)
    if written_type is not None:
        is_table_answer = bool(raw.get("isTableAnswer"))
        return written_type(
            id=question_id,
            text=text,
            answer=str(raw.get("answer") or ""),
            explanation=explanation,
            include_table=include_table,
            reference_table=reference_table,
            is_table_answer=is_table_answer,
            answer_table_template=parse_table(raw.get("answerTable")) if is_table_answer else None,
        )

    if question_type != McqQuestion.kind:
        # "mixed" documents carry the real type per question; anything else is unknown.
        logger.warning("Unknown question type '%s' for question %s; treating as mcq.", question_type, question_id)

    options = raw.get("options")
    if not isinstance(options, list) or not options:
        raise MalformedDocument(f"Multiple-choice question {question_id} needs at least one option.")
    correct = _coerce_int(raw.get("correctOption"), default=0)
    if not 0 <= correct < len(options):
        raise MalformedDocument(f"Question {question_id} has an invalid correct option {correct}.")
    return McqQuestion(
        id=question_id,
        text=text,
        options=[str(option) for option in options],
        correct_option_index=correct,
        explanation=explanation,
        include_table=include_table,
        reference_table=reference_table,
    )


def parse_table(raw: Any) -> TableData | None:
    if not isinstance(raw, dict):
        return None
    headers = raw.get("headers") if isinstance(raw.get("headers"), list) else []
    rows = raw.get("rows") if isinstance(raw.get("rows"), list) else []
    return TableData(
        headers=[str(h) for h in headers],
        rows=[[str(cell) for cell in row] for row in rows if isinstance(row, list)],
    )


def _coerce_int(value: Any, default: int) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _coerce_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


# --- PDF exams ---


def extract_pdf_text(pdf_path: Path) -> str:
    with fitz.open(pdf_path) as doc:
        return "\n".join(page.get_text("text") for page in doc)


def parse_exam_text(text: str, id_prefix: str = "pdf") -> list[McqQuestion]:
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    questions: list[McqQuestion] = []
    current: McqQuestion | None = None
    answer_letter: str | None = None

    def finalize() -> None:
        if current is None:
            return
        current.text = _ANSWER_MARKER.sub("", current.text).strip()
        if answer_letter is not None:
            index = ord(answer_letter) - ord("A")
            if 0 <= index < len(current.options):
                current.correct_option_index = index
        questions.append(current)

    for line in lines:
        question_match = _QUESTION_LINE.match(line)
        option_match = _OPTION_LINE.match(line)
        answer_match = _ANSWER_MARKER.search(line)

        if question_match:
            finalize()
            current = McqQuestion(
                id=f"{id_prefix}_{len(questions) + 1}",
                text=question_match.group(2),
                options=[],
            )
            answer_letter = None
        elif current is None:
            continue
        elif option_match:
            option_text = option_match.group(2)
            trailing = _ANSWER_MARKER.search(option_text)
            if trailing:
                answer_letter = trailing.group(1).upper()
                option_text = _ANSWER_MARKER.sub("", option_text).strip()
            current.options.append(option_text)
        elif answer_match:
            answer_letter = answer_match.group(1).upper()
            remainder = _ANSWER_MARKER.sub("", line).strip()
            if remainder:
                current.text += " " + remainder
        else:
            current.text += " " + line

    finalize()
    return [q for q in questions if q.options]


def import_pdf(pdf_path: Path, course_code: str, topic: str, marks: int, time_limit_minutes: float) -> QuizDocument:
    questions = parse_exam_text(extract_pdf_text(pdf_path), id_prefix=pdf_path.stem)
    logger.info("Extracted %d question(s) from %s", len(questions), pdf_path)
    return QuizDocument(
        course_code=course_code,
        topic=topic,
        questions=list(questions),
        marks=marks,
        time_limit_minutes=time_limit_minutes,
        quiz_type=McqQuestion.kind,
    )

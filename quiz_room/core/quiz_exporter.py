"""Utilities for serializing quizzes to the stored JSON format."""

from __future__ import annotations

from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Any

from quiz_room.core.models import McqQuestion, Question, QuizDocument, TableData


def save_quiz_to_file(file_path: Path, document: QuizDocument) -> None:
    """Persist the document as pretty-printed JSON."""

    if not document.course_code or not document.topic:
        raise ValueError("Course code and topic are required.")

    file_path = file_path.resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    payload = document_to_dict(document)
    payload.setdefault("createdAt", datetime.now(timezone.utc).isoformat())
    file_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def document_to_dict(document: QuizDocument) -> dict[str, Any]:
    data: dict[str, Any] = {
        "courseCode": document.course_code,
        "topic": document.topic,
        "marks": document.marks,
        "timeLimit": document.time_limit_minutes,
        "quizType": document.quiz_type,
        "questions": [question_to_dict(q) for q in document.questions],
    }
    if document.reference_table is not None:
        data["tableData"] = table_to_dict(document.reference_table)
    if document.created_at:
        data["createdAt"] = document.created_at
    return data


def question_to_dict(question: Question) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": question.id,
        "text": question.text,
        "type": question.kind,
        "explanation": question.explanation,
        "includeTable": question.include_table,
    }
    if question.reference_table is not None:
        data["tableData"] = table_to_dict(question.reference_table)

    if isinstance(question, McqQuestion):
        data["options"] = list(question.options)
        data["correctOption"] = question.correct_option_index
        return data

    data["answer"] = question.answer
    data["isTableAnswer"] = question.is_table_answer
    if question.answer_table_template is not None:
        data["answerTable"] = table_to_dict(question.answer_table_template)
    return data


def table_to_dict(table: TableData) -> dict[str, Any]:
    return {"headers": list(table.headers), "rows": [list(row) for row in table.rows]}

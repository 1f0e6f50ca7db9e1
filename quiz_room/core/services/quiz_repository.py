"""File-backed storage for quiz documents.

Every quiz lives in its own ``*.json`` file inside a single data directory.
File names double as quiz identifiers, so they are validated against path
traversal before any disk access.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import json
import logging
from pathlib import Path
import re

from quiz_room.constants.storage_constants import QUIZ_FILE_SUFFIX, READ_WORKER_COUNT
from quiz_room.core.errors import MalformedDocument, QuizNotFoundError
from quiz_room.core.models import QuizDocument, QuizSummary
from quiz_room.core.quiz_exporter import save_quiz_to_file
from quiz_room.core.quiz_importer import load_quiz_from_file, validate_document_shape

logger = logging.getLogger(__name__)

_UNSAFE_COURSE_CHARS = re.compile(r"[^a-zA-Z0-9\-_]")


@dataclass(slots=True)
class ValidationOutcome:
    file_name: str
    passed: bool
    question_count: int = 0
    message: str = ""


class QuizRepository:
    """Reads and writes quiz documents in a directory of JSON files."""

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def list_quiz_documents(self) -> list[tuple[str, QuizDocument]]:
        """Load every readable quiz, ordered by file name.

        Files are read in parallel; unreadable or malformed files are skipped.
        """
        file_names = self._list_file_names()
        if not file_names:
            return []
        with ThreadPoolExecutor(max_workers=READ_WORKER_COUNT) as pool:
            loaded = list(pool.map(self._try_load, file_names))
        return [(name, doc) for name, doc in zip(file_names, loaded) if doc is not None]

    def list_summaries(self) -> list[QuizSummary]:
        return [
            QuizSummary(
                file_name=name,
                course_code=doc.course_code,
                topic=doc.topic,
                marks=doc.marks,
                time_limit_minutes=doc.time_limit_minutes,
                quiz_type=doc.quiz_type,
                question_count=len(doc.questions),
            )
            for name, doc in self.list_quiz_documents()
        ]

    def load_quiz_document(self, file_name: str) -> QuizDocument:
        path = self._resolve(file_name)
        if not path.is_file():
            raise QuizNotFoundError(f"Quiz '{file_name}' not found.")
        logger.info("Reading quiz %s", file_name)
        try:
            return load_quiz_from_file(path)
        except OSError as exc:
            raise QuizNotFoundError(f"Quiz '{file_name}' could not be read.") from exc

    def save_quiz_document(self, document: QuizDocument) -> str:
        """Write the document and return the file name it was stored under."""
        file_name = build_file_name(document.course_code, document.topic)
        save_quiz_to_file(self._resolve(file_name), document)
        logger.info("Quiz saved: %s", file_name)
        return file_name

    def delete_quiz_document(self, file_name: str) -> None:
        path = self._resolve(file_name)
        if not path.is_file():
            raise QuizNotFoundError(f"Quiz '{file_name}' not found.")
        path.unlink()
        logger.info("Quiz deleted: %s", file_name)

    def validate_all(self) -> list[ValidationOutcome]:
        outcomes: list[ValidationOutcome] = []
        for file_name in self._list_file_names():
            try:
                data = json.loads((self._data_dir / file_name).read_text(encoding="utf-8"))
                validate_document_shape(data)
            except (OSError, ValueError, MalformedDocument) as exc:
                outcomes.append(ValidationOutcome(file_name, passed=False, message=str(exc)))
                continue
            outcomes.append(ValidationOutcome(file_name, passed=True, question_count=len(data["questions"])))
        return outcomes

    def _list_file_names(self) -> list[str]:
        if not self._data_dir.is_dir():
            return []
        return sorted(p.name for p in self._data_dir.iterdir() if p.suffix == QUIZ_FILE_SUFFIX and p.is_file())

    def _try_load(self, file_name: str) -> QuizDocument | None:
        try:
            return load_quiz_from_file(self._data_dir / file_name)
        except (OSError, ValueError, MalformedDocument) as exc:
            logger.warning("Skipping %s: %s", file_name, exc)
            return None

    def _resolve(self, file_name: str) -> Path:
        validate_file_name(file_name)
        return self._data_dir / file_name


def validate_file_name(file_name: str) -> None:
    if not file_name or ".." in file_name or "/" in file_name or "\\" in file_name:
        raise ValueError(f"Invalid quiz file name: {file_name!r}")


def build_file_name(course_code: str, topic: str) -> str:
    """``ACC101`` + ``Cash Flow`` -> ``ACC101_Cash_Flow.json``."""
    safe_course = _UNSAFE_COURSE_CHARS.sub("", course_code).upper()
    safe_topic = _UNSAFE_COURSE_CHARS.sub("_", topic)
    return f"{safe_course}_{safe_topic}{QUIZ_FILE_SUFFIX}"

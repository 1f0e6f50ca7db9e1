"""FastAPI server exposing quiz storage and quiz-taking sessions."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import Any, Union

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel, Field, StrictInt, StrictStr
import uvicorn

from quiz_room.constants.about import APP_NAME, APP_VERSION
from quiz_room.core.errors import (
    AggregationNotFound,
    EmptyQuestionSet,
    InvalidQuestion,
    MalformedDocument,
    QuizNotFoundError,
    QuizRoomError,
    SessionStateError,
)
from quiz_room.core.markdown_math_renderer import renderer
from quiz_room.core.models import (
    AnswerValue,
    McqQuestion,
    Question,
    QuizSummary,
    SessionPhase,
    TableData,
)
from quiz_room.core.quiz_exporter import document_to_dict, table_to_dict
from quiz_room.core.quiz_importer import parse_quiz_document
from quiz_room.core.quiz_manager import QuizManager, UnknownSessionError
from quiz_room.core.services.quiz_session import QuizSession

logger = logging.getLogger(__name__)


class TablePayload(BaseModel):
    headers: list[str] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)


class AnswerPayload(BaseModel):
    """Selected option index, free text, a filled-in table, or null to clear."""

    value: Union[StrictInt, StrictStr, TablePayload, None] = None


class StartSessionPayload(BaseModel):
    target: str


class GoToPayload(BaseModel):
    index: int


class AuthoringPayload(BaseModel):
    """Quiz document submitted by the authoring UI."""

    securityCode: str = ""
    courseCode: str = ""
    topic: str = ""
    marks: Any = None
    timeLimit: Any = None
    quizType: str = "mcq"
    questions: list[dict[str, Any]] = Field(default_factory=list)
    tableData: dict[str, Any] | None = None


_STATUS_BY_ERROR: list[tuple[type[QuizRoomError], int]] = [
    (UnknownSessionError, 404),
    (QuizNotFoundError, 404),
    (AggregationNotFound, 404),
    (EmptyQuestionSet, 404),
    (InvalidQuestion, 422),
    (MalformedDocument, 422),
    (SessionStateError, 409),
]


def _to_http_error(exc: QuizRoomError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _to_answer_value(payload: AnswerPayload) -> AnswerValue:
    if isinstance(payload.value, TablePayload):
        return TableData(headers=list(payload.value.headers), rows=[list(r) for r in payload.value.rows])
    return payload.value


def _answer_to_json(value: AnswerValue) -> object:
    if isinstance(value, TableData):
        return table_to_dict(value)
    return value


def _summary_to_json(summary: QuizSummary) -> dict[str, object]:
    return {
        "fileName": summary.file_name,
        "courseCode": summary.course_code,
        "topic": summary.topic,
        "marks": summary.marks,
        "timeLimit": summary.time_limit_minutes,
        "quizType": summary.quiz_type,
        "questionCount": summary.question_count,
    }


def _question_view(question: Question, reveal: bool) -> dict[str, object]:
    view: dict[str, object] = {
        "id": question.id,
        "type": question.kind,
        "question_html": renderer.render_fragment(question.text),
        "reference_table_html": renderer.render_table(question.reference_table),
    }
    if isinstance(question, McqQuestion):
        view["options"] = list(question.options)
        if reveal:
            view["correct_option_index"] = question.correct_option_index
    else:
        view["is_table_answer"] = question.is_table_answer
        if question.answer_table_template is not None:
            view["answer_table_template"] = table_to_dict(question.answer_table_template)
        if reveal:
            view["answer"] = question.answer
    if reveal:
        view["explanation"] = question.explanation
    return view


def session_to_json(session: QuizSession) -> dict[str, object]:
    state = session.state
    finished = state.phase is SessionPhase.FINISHED
    document = session.document
    payload: dict[str, object] = {
        "session_id": session.session_id,
        "phase": state.phase.value,
        "course_code": document.course_code,
        "topic": document.topic,
        "current_index": state.current_index,
        "question_count": len(state.ordered_question_ids),
        "remaining_seconds": state.remaining_seconds,
        "reference_table_html": renderer.render_table(document.reference_table),
        "questions": [_question_view(q, reveal=finished) for q in session.get_questions()],
        "answers": {qid: _answer_to_json(value) for qid, value in state.answers.items()},
        "result": None,
    }
    result = session.get_result()
    if finished and result is not None:
        payload["result"] = {
            "total_score": result.total_score,
            "max_score": result.max_score,
            "per_question": {
                qid: {"earned": v.earned, "max": v.max, "verdict": v.verdict.value}
                for qid, v in result.per_question.items()
            },
        }
    return payload


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def create_api_app(quiz_manager: QuizManager, admin_code: str) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        quiz_manager.shutdown()

    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, lifespan=lifespan)
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    @app.get("/quizzes")
    def list_quizzes(manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        return {"quizzes": [_summary_to_json(s) for s in manager.list_quizzes()]}

    @app.get("/quiz")
    def get_quiz(
        filename: str = Query(default=""),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        if not filename:
            raise HTTPException(status_code=400, detail="Filename is required")
        try:
            document = manager.resolve_quiz(filename)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except QuizRoomError as exc:
            raise _to_http_error(exc) from exc
        return document_to_dict(document)

    @app.delete("/quiz")
    def delete_quiz(
        filename: str = Query(default=""),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        if not filename:
            raise HTTPException(status_code=400, detail="Filename required")
        try:
            manager.delete_quiz(filename)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except QuizRoomError as exc:
            raise _to_http_error(exc) from exc
        return {"success": True, "message": "Quiz deleted"}

    @app.post("/quiznator")
    def author_quiz(
        payload: AuthoringPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        if payload.securityCode != admin_code:
            raise HTTPException(status_code=401, detail="Invalid Security Code")
        if not payload.courseCode.strip() or not payload.topic.strip():
            raise HTTPException(status_code=400, detail="Course Code and Topic are required")
        try:
            document = parse_quiz_document(payload.model_dump())
        except QuizRoomError as exc:
            raise _to_http_error(exc) from exc
        file_name = manager.save_quiz(document)
        return {"success": True, "filename": file_name}

    @app.post("/sessions", status_code=201)
    def start_session(
        payload: StartSessionPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            session = manager.start_session(payload.target)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except QuizRoomError as exc:
            raise _to_http_error(exc) from exc
        return session_to_json(session)

    @app.get("/sessions/{session_id}")
    def get_session(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        try:
            return session_to_json(manager.get_session(session_id))
        except QuizRoomError as exc:
            raise _to_http_error(exc) from exc

    @app.put("/sessions/{session_id}/answers/{question_id}")
    def record_answer(
        session_id: str,
        question_id: str,
        payload: AnswerPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            session = manager.record_answer(session_id, question_id, _to_answer_value(payload))
        except QuizRoomError as exc:
            raise _to_http_error(exc) from exc
        return session_to_json(session)

    @app.post("/sessions/{session_id}/goto")
    def go_to(
        session_id: str,
        payload: GoToPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            return session_to_json(manager.go_to(session_id, payload.index))
        except QuizRoomError as exc:
            raise _to_http_error(exc) from exc

    @app.post("/sessions/{session_id}/advance")
    def advance(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        try:
            return session_to_json(manager.advance(session_id))
        except QuizRoomError as exc:
            raise _to_http_error(exc) from exc

    @app.post("/sessions/{session_id}/submit")
    def submit(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        try:
            return session_to_json(manager.submit(session_id))
        except QuizRoomError as exc:
            raise _to_http_error(exc) from exc

    @app.post("/sessions/{session_id}/retake")
    def retake(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        try:
            return session_to_json(manager.retake(session_id))
        except QuizRoomError as exc:
            raise _to_http_error(exc) from exc

    @app.delete("/sessions/{session_id}")
    def end_session(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        try:
            manager.end_session(session_id)
        except QuizRoomError as exc:
            raise _to_http_error(exc) from exc
        return {"success": True}

    return app


def run_api_server(quiz_manager: QuizManager, admin_code: str, host: str, port: int) -> None:
    """Serve the API in the foreground until interrupted."""
    app = create_api_app(quiz_manager, admin_code=admin_code)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    logger.info("Serving %s on http://%s:%s/", APP_NAME, host, port)
    server.run()

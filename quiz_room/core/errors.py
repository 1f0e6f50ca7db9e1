"""Exceptions raised by the quiz engine and its storage layer."""

from __future__ import annotations


class QuizRoomError(Exception):
    """Base class for recoverable quiz errors surfaced to the user."""


class EmptyQuestionSet(QuizRoomError):
    """Raised when a session is started on a quiz without questions."""


class InvalidQuestion(QuizRoomError):
    """Raised when an answer targets a question outside the active session."""


class AggregationNotFound(QuizRoomError):
    """Raised when a course or general aggregation yields no questions."""


class MalformedDocument(QuizRoomError):
    """Raised when a stored quiz document fails shape validation."""


class QuizNotFoundError(QuizRoomError):
    """Raised when a stored quiz document does not exist."""


class SessionStateError(QuizRoomError):
    """Raised when an operation is not allowed in the session's current phase."""

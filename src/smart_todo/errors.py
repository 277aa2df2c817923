from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class AIErrorKind(str, Enum):
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    API_ERROR = "API_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class ModelError(Exception):
    """Failure of a model-backed call, tagged with its kind."""

    def __init__(
        self,
        message: str,
        kind: AIErrorKind = AIErrorKind.UNKNOWN_ERROR,
        status: Optional[int] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.status = status
        self.details = details

    def __repr__(self) -> str:
        return f"ModelError({str(self)!r}, kind={self.kind.value}, status={self.status})"


def classify_status(status: int, message: Optional[str] = None, details: Any = None) -> ModelError:
    if status == 429:
        return ModelError(
            message or "Rate limit exceeded - please try again later",
            AIErrorKind.RATE_LIMIT_ERROR,
            status,
            details,
        )
    if 400 <= status < 500:
        return ModelError(
            message or "Invalid request or client error",
            AIErrorKind.VALIDATION_ERROR,
            status,
            details,
        )
    if status >= 500:
        return ModelError(
            message or "Server error - please try again",
            AIErrorKind.API_ERROR,
            status,
            details,
        )
    return ModelError(message or f"HTTP {status}", AIErrorKind.UNKNOWN_ERROR, status, details)


_USER_MESSAGES = {
    AIErrorKind.NETWORK_ERROR: "Couldn't reach the assistant. Check your connection and try again.",
    AIErrorKind.TIMEOUT_ERROR: "The assistant took too long to answer. Your task can still be added as typed.",
    AIErrorKind.RATE_LIMIT_ERROR: "The assistant is busy right now, please wait a moment and try again.",
    AIErrorKind.VALIDATION_ERROR: "The assistant couldn't understand that request.",
    AIErrorKind.API_ERROR: "The assistant ran into a problem. Please try again.",
    AIErrorKind.UNKNOWN_ERROR: "Something went wrong with the assistant.",
}


def user_message(error: BaseException) -> str:
    kind = getattr(error, "kind", AIErrorKind.UNKNOWN_ERROR)
    return _USER_MESSAGES.get(kind, _USER_MESSAGES[AIErrorKind.UNKNOWN_ERROR])

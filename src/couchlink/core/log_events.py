"""Registry of structured logging event identifiers."""

from __future__ import annotations

from enum import Enum

__all__ = ["LogEvents"]


class LogEvents(str, Enum):
    """Strongly typed registry of couchlink log events."""

    HTTP_REQUEST_TRACE = "http.request.trace"
    HTTP_REQUEST_COMPLETED = "http.request.completed"
    HTTP_REQUEST_FAILED = "http.request.failed"
    HTTP_REQUEST_EXCEPTION = "http.request.exception"
    CLIENT_CREATED = "client.created"
    CLIENT_CLOSED = "client.closed"

    def __str__(self) -> str:
        return self.value

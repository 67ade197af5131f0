"""Typed decoding of response bodies.

Parsing is never automatic: operations return the raw
:class:`~couchlink.core.api_client.CouchResponse` and callers decode it
with the record type they expect::

    response = client.mango_query({"selector": {"title": "Live And Let Die"}})
    result = parse(Book, response)
    for book in result.docs:
        ...
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from couchlink.core.api_client import CouchResponse
from couchlink.core.exceptions import DecodeError

__all__ = [
    "ParsedDocumentResponse",
    "parse",
    "parse_names",
    "parse_uuids",
]

T = TypeVar("T")

Payload = bytes | str | CouchResponse


class ParsedDocumentResponse(BaseModel, Generic[T]):
    """Matched records plus the continuation bookmark.

    Missing ``docs`` or ``bookmark`` keys decode to an empty list and an
    empty string; present values must have the right types.
    """

    model_config = ConfigDict(extra="ignore")

    docs: list[T] = Field(default_factory=list)
    bookmark: str = ""
    warning: str | None = None


class _UuidsPayload(BaseModel):
    uuids: list[str]


_NAMES_ADAPTER: TypeAdapter[list[str]] = TypeAdapter(list[str])


def _raw(payload: Payload) -> bytes | str:
    if isinstance(payload, CouchResponse):
        return payload.body
    return payload


def parse(record_type: type[T], payload: Payload) -> ParsedDocumentResponse[T]:
    """Decode a ``{"docs": [...], "bookmark": "..."}`` body into ``record_type`` records.

    Parameters
    ----------
    record_type:
        Type of each record: a pydantic model (for example a
        :class:`~couchlink.documents.Document` subclass), a dataclass, a
        ``TypedDict`` or plain ``dict``.
    payload:
        Raw body or the response envelope returned by an operation.

    Raises
    ------
    DecodeError:
        The body is not JSON or does not match the expected structure. The
        underlying :class:`pydantic.ValidationError` is chained as the cause.
    """

    try:
        return ParsedDocumentResponse[record_type].model_validate_json(_raw(payload))  # type: ignore[valid-type]
    except ValidationError as exc:
        raise DecodeError(f"could not decode document response: {exc}") from exc


def parse_uuids(payload: Payload) -> list[str]:
    """Decode a ``{"uuids": [...]}`` body."""

    try:
        return _UuidsPayload.model_validate_json(_raw(payload)).uuids
    except ValidationError as exc:
        raise DecodeError(f"could not decode uuid response: {exc}") from exc


def parse_names(payload: Payload) -> list[str]:
    """Decode a JSON array of strings, such as the database listing."""

    try:
        return _NAMES_ADAPTER.validate_json(_raw(payload))
    except ValidationError as exc:
        raise DecodeError(f"could not decode name list: {exc}") from exc

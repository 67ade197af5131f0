"""JSON encoding of request bodies and query parameters."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Final
from uuid import UUID

from pydantic import BaseModel

from couchlink.core.exceptions import SerializationError

__all__ = [
    "JSON_QUERY_KEYS",
    "dumps",
    "encode_document",
    "render_query_value",
    "sanitize_query",
    "to_jsonable",
]

JSON_QUERY_KEYS: Final[frozenset[str]] = frozenset({"key", "keys", "startkey", "endkey"})
"""View parameters the server expects as JSON values rather than plain text."""


def to_jsonable(data: Any) -> Any:
    """Convert a document into plain JSON-compatible containers.

    Pydantic models are dumped by alias (so ``Document.id`` becomes ``_id``)
    with ``None`` fields dropped; dataclass instances go through
    :func:`dataclasses.asdict`; mappings are copied into a ``dict``. Anything
    else is returned unchanged.
    """

    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True, exclude_none=True)
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        return dataclasses.asdict(data)
    if isinstance(data, Mapping):
        return dict(data)
    return data


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel) or (dataclasses.is_dataclass(value) and not isinstance(value, type)):
        return to_jsonable(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dumps(data: Any) -> str:
    """Serialize ``data`` with :func:`json.dumps` default formatting.

    Plain containers produce exactly what ``json.dumps(data)`` produces.
    """

    try:
        return json.dumps(to_jsonable(data), default=_json_default)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"could not serialize {type(data).__name__} to JSON: {exc}") from exc


def encode_document(data: Any) -> bytes:
    """Encode a request body. Raw ``bytes`` and ``str`` are sent as given."""

    if isinstance(data, bytes):
        return data
    if isinstance(data, str):
        return data.encode("utf-8")
    return dumps(data).encode("utf-8")


def render_query_value(value: Any) -> str:
    """Plain textual form of a query parameter value."""

    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def sanitize_query(query: Mapping[str, Any] | None) -> dict[str, str]:
    """Render view query parameters.

    ``key``, ``keys``, ``startkey`` and ``endkey`` are JSON-encoded, every
    other value is rendered as plain text.
    """

    sanitized: dict[str, str] = {}
    if not query:
        return sanitized
    for name, value in query.items():
        if name in JSON_QUERY_KEYS:
            try:
                sanitized[name] = json.dumps(to_jsonable(value), default=_json_default)
            except (TypeError, ValueError) as exc:
                raise SerializationError(f"could not serialize value with key {name}") from exc
        else:
            sanitized[name] = render_query_value(value)
    return sanitized

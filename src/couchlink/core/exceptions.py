"""Exception hierarchy exposed by couchlink.

Upper layers import every error from here, including the transport errors
raised by ``requests``. Those are re-exported unchanged: the dispatcher lets
them propagate as-is, so callers never need a direct ``requests`` import to
handle a refused connection or a timeout.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from requests.exceptions import ConnectionError as _RequestsConnectionError
from requests.exceptions import HTTPError as _RequestsHTTPError
from requests.exceptions import RequestException as _RequestsRequestException
from requests.exceptions import Timeout as _RequestsTimeout

if TYPE_CHECKING:
    from couchlink.core.api_client import CouchResponse

__all__ = [
    "CouchError",
    "ConfigurationError",
    "RemoteError",
    "NotAuditableError",
    "DecodeError",
    "SerializationError",
    "ArgumentError",
    "RequestException",
    "HTTPError",
    "Timeout",
    "ConnectionError",
]

RequestException = _RequestsRequestException
HTTPError = _RequestsHTTPError
Timeout = _RequestsTimeout
ConnectionError = _RequestsConnectionError


class CouchError(Exception):
    """Base class for every error raised by couchlink itself."""


class ConfigurationError(CouchError, ValueError):
    """Raised when the scheme, host or port cannot form a valid URI."""


class ArgumentError(CouchError, ValueError):
    """Raised when an operation argument is rejected before any request."""


class SerializationError(CouchError, ValueError):
    """Raised when a request body or query value cannot be encoded as JSON."""


class DecodeError(CouchError, ValueError):
    """Raised when a response body does not match the expected shape."""


class NotAuditableError(CouchError, TypeError):
    """Raised when an update is attempted on data without ``_id`` and ``_rev``."""


class RemoteError(CouchError):
    """The server answered with a status code of 400 or above.

    ``str(error)`` is the raw response body: the document store returns
    structured, human readable error bodies and they are surfaced verbatim.
    The ``error`` and ``reason`` attributes are decoded from that body when it
    is a JSON object and are ``None`` otherwise.
    """

    def __init__(self, message: str, *, status_code: int, response: CouchResponse) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response
        details = _decode_error_body(message)
        self.error: str | None = details.get("error")
        self.reason: str | None = details.get("reason")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(status_code={self.status_code}, message={self.message!r})"


def _decode_error_body(text: str) -> dict[str, Any]:
    try:
        payload = json.loads(text)
    except ValueError:
        return {}
    if not isinstance(payload, dict):
        return {}
    return {key: payload[key] for key in ("error", "reason") if isinstance(payload.get(key), str)}

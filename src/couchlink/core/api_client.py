"""Request dispatcher shared by every client operation.

The dispatcher composes the URI, attaches the immutable header set, performs
one synchronous request through ``requests`` and classifies the result. There
are no retries: a transport failure propagates as the original ``requests``
exception and any status of 400 or above becomes a :class:`RemoteError`
carrying the raw response body.
"""

from __future__ import annotations

import json
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Final
from urllib.parse import quote, urlencode, urlsplit
from uuid import uuid4

import requests
from requests.exceptions import RequestException

from couchlink.config.models import ConnectionConfig, Credentials
from couchlink.core.exceptions import ConfigurationError, DecodeError, RemoteError
from couchlink.core.log_events import LogEvents
from couchlink.core.logger import REDACTED, UnifiedLogger
from couchlink.version import __version__

__all__ = [
    "JSON_CONTENT_TYPE",
    "USER_AGENT",
    "CouchResponse",
    "HeaderSet",
    "RequestDispatcher",
]

JSON_CONTENT_TYPE: Final[str] = "application/json; charset=utf-8"
USER_AGENT: Final[str] = f"couchlink/{__version__}"

_SENSITIVE_HEADERS: Final[frozenset[str]] = frozenset({"authorization"})


@dataclass(frozen=True, slots=True)
class HeaderSet:
    """Outgoing headers, computed once per client and never modified."""

    values: Mapping[str, str]

    @classmethod
    def build(cls, credentials: Credentials | None = None, *, user_agent: str = USER_AGENT) -> HeaderSet:
        headers = {
            "User-Agent": user_agent,
            "Content-Type": JSON_CONTENT_TYPE,
        }
        if credentials is not None:
            headers["Authorization"] = credentials.authorization_header()
        return cls(MappingProxyType(headers))

    def __getitem__(self, name: str) -> str:
        return self.values[name]

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.values.get(name, default)

    def as_dict(self) -> dict[str, str]:
        return dict(self.values)

    def redacted(self) -> dict[str, str]:
        """Header copy safe for logging."""
        return {
            key: REDACTED if key.lower() in _SENSITIVE_HEADERS else value
            for key, value in self.values.items()
        }


@dataclass(frozen=True, slots=True)
class CouchResponse:
    """Result of one successful call: the raw body plus response metadata."""

    body: bytes
    headers: Mapping[str, str] = field(default_factory=dict)
    status_code: int = 200
    url: str = ""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON, raising :class:`DecodeError` on failure."""
        try:
            return json.loads(self.body)
        except ValueError as exc:
            raise DecodeError(f"response body is not valid JSON: {exc}") from exc


class RequestDispatcher:
    """Builds and sends requests for a single server.

    Parameters
    ----------
    config:
        Connection settings; the timeout is handed to ``requests`` unchanged.
    headers:
        Header set attached to every request.
    session:
        Optional ``requests.Session``. Without one each call goes through
        :func:`requests.request` and keeps no connection between calls.
    trace:
        Log method, URI, headers and body of every request.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        headers: HeaderSet,
        *,
        session: requests.Session | None = None,
        trace: bool = False,
        name: str = "couchlink",
    ) -> None:
        self.config = config
        self.headers = headers
        self.trace = trace
        self.name = name
        self._session = session
        self._logger = UnifiedLogger.get(__name__).bind(
            component="http_client",
            http_client=name,
        )

    def build_url(self, location: str = "", *, database: str | None = None) -> str:
        """Compose ``scheme://host:port[/database][/location]``."""

        url = self.config.base_url
        if database:
            url += "/" + quote(database, safe="")
        location = location.lstrip("/")
        if location:
            url += "/" + location
        try:
            parts = urlsplit(url)
            port = parts.port
        except ValueError as exc:
            raise ConfigurationError(f"could not generate URI from configuration: {exc}") from exc
        if not parts.hostname or port is None:
            raise ConfigurationError(f"could not generate URI from configuration: {url!r}")
        return url

    def fetch(
        self,
        method: str,
        location: str = "",
        *,
        database: str | None = None,
        body: bytes | None = None,
        query: Mapping[str, str] | None = None,
    ) -> CouchResponse:
        """Perform one request and return the response envelope.

        Raises
        ------
        ConfigurationError:
            The URI could not be composed; no request is sent.
        RemoteError:
            The server answered with a status code of 400 or above.
        requests.RequestException:
            Any transport failure, unchanged.
        """

        url = self.build_url(location, database=database)
        params = list(query.items()) if query else None
        request_id = str(uuid4())

        if self.trace:
            self._logger.info(
                LogEvents.HTTP_REQUEST_TRACE.value,
                method=method,
                uri=f"{url}?{urlencode(params)}" if params else url,
                headers=self.headers.redacted(),
                body=body.decode("utf-8", errors="replace") if body is not None else None,
                request_id=request_id,
            )

        sender = self._session.request if self._session is not None else requests.request
        start = time.perf_counter()
        try:
            response = sender(
                method,
                url,
                params=params,
                data=body,
                headers=self.headers.as_dict(),
                timeout=self.config.timeout,
            )
        except RequestException as exc:
            self._logger.warning(
                LogEvents.HTTP_REQUEST_EXCEPTION.value,
                method=method,
                endpoint=url,
                duration_ms=(time.perf_counter() - start) * 1000,
                request_id=request_id,
                error=str(exc),
            )
            raise

        try:
            content = response.content
        finally:
            response.close()
        duration_ms = (time.perf_counter() - start) * 1000

        envelope = CouchResponse(
            body=content,
            headers=response.headers,
            status_code=response.status_code,
            url=response.url or url,
        )

        if response.status_code >= 400:
            self._logger.warning(
                LogEvents.HTTP_REQUEST_FAILED.value,
                method=method,
                endpoint=url,
                status_code=response.status_code,
                duration_ms=duration_ms,
                request_id=request_id,
            )
            raise RemoteError(envelope.text, status_code=response.status_code, response=envelope)

        self._logger.debug(
            LogEvents.HTTP_REQUEST_COMPLETED.value,
            method=method,
            endpoint=url,
            status_code=response.status_code,
            duration_ms=duration_ms,
            request_id=request_id,
        )
        return envelope

    def close(self) -> None:
        if self._session is not None:
            self._session.close()

"""Client handle exposing the document store operations.

Every operation is a single request built by
:class:`~couchlink.core.api_client.RequestDispatcher`; the methods below only
choose the verb, path, body and query parameters.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any
from urllib.parse import quote

import requests

from couchlink.config.environment import load_environment_settings, load_trace_setting
from couchlink.config.models import DEFAULT_TIMEOUT, ConnectionConfig, Credentials
from couchlink.core.api_client import CouchResponse, HeaderSet, RequestDispatcher
from couchlink.core.exceptions import ArgumentError
from couchlink.core.log_events import LogEvents
from couchlink.core.logger import UnifiedLogger
from couchlink.documents import audit_marker
from couchlink.parsing import parse_names, parse_uuids
from couchlink.serialization import dumps, encode_document, sanitize_query, to_jsonable

__all__ = ["CouchClient"]


class CouchClient:
    """Handle bound to one server and, optionally, one database.

    Parameters
    ----------
    database:
        Database targeted by the document and database operations. Each of
        those operations also accepts ``db=`` to target another database.
    config:
        Connection settings; defaults to ``http://127.0.0.1:5984`` with a five
        second timeout.
    credentials:
        Basic authentication identity. Without it requests are anonymous.
    session:
        Optional ``requests.Session`` to send requests through.
    trace:
        Log every request in full. Defaults to the ``COUCHLINK_TRACE``
        environment toggle.

    Construction performs no network call.
    """

    def __init__(
        self,
        database: str | None = None,
        config: ConnectionConfig | None = None,
        credentials: Credentials | None = None,
        *,
        session: requests.Session | None = None,
        trace: bool | None = None,
    ) -> None:
        self.database = database or None
        self.config = config or ConnectionConfig()
        self.credentials = credentials
        self.headers = HeaderSet.build(credentials)
        if trace is None:
            trace = load_trace_setting()
        self._dispatcher = RequestDispatcher(self.config, self.headers, session=session, trace=trace)
        self._dispatcher.build_url(database=self.database)
        self._logger = UnifiedLogger.get(__name__).bind(component="client", database=self.database)
        self._logger.debug(
            LogEvents.CLIENT_CREATED.value,
            base_url=self.config.base_url,
            authenticated=credentials is not None,
            trace=trace,
        )

    @classmethod
    def from_environment(
        cls,
        *,
        env_file: Path | None = None,
        session: requests.Session | None = None,
    ) -> CouchClient:
        """Build a client from the ``COUCHLINK_*`` environment variables.

        Invalid values raise :class:`~couchlink.core.exceptions.ConfigurationError`.
        """

        settings = load_environment_settings(env_file=env_file)
        timeout = settings.timeout or DEFAULT_TIMEOUT
        if settings.url:
            config = ConnectionConfig.from_url(settings.url, timeout=timeout)
        else:
            config = ConnectionConfig(timeout=timeout)
        credentials = None
        if settings.user:
            credentials = Credentials(username=settings.user, password=settings.password or "")
        return cls(settings.database, config, credentials, session=session, trace=settings.trace)

    @property
    def dispatcher(self) -> RequestDispatcher:
        return self._dispatcher

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.config.base_url!r}, database={self.database!r})"

    def __enter__(self) -> CouchClient:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the injected session, if any."""
        self._dispatcher.close()
        self._logger.debug(LogEvents.CLIENT_CLOSED.value)

    def _db(self, db: str | None) -> str:
        resolved = db if db is not None else self.database
        if not resolved:
            raise ArgumentError("no database bound to this client; pass db=")
        return resolved

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def save(self, data: Any, *, db: str | None = None) -> CouchResponse:
        """Insert a document.

        The server generates the identifier unless ``data`` carries an
        ``_id``; if a document with that ``_id`` exists it is updated
        (the ``_rev`` must then match).
        """
        return self._dispatcher.fetch("POST", database=self._db(db), body=encode_document(data))

    def save_many(self, docs: Iterable[Any], *, db: str | None = None) -> CouchResponse:
        """Insert or update several documents in one ``_bulk_docs`` call."""
        body = dumps({"docs": [to_jsonable(doc) for doc in docs]}).encode("utf-8")
        return self._dispatcher.fetch("POST", "_bulk_docs", database=self._db(db), body=body)

    def update(self, data: Any, *, db: str | None = None) -> CouchResponse:
        """Replace a document that carries both an identifier and a revision.

        Raises
        ------
        NotAuditableError:
            ``data`` has no ``_id``/``_rev`` (or ``id``/``rev``); nothing is
            sent.
        """
        doc_id, rev = audit_marker(data)
        payload = to_jsonable(data)
        if isinstance(payload, dict):
            if not isinstance(data, Mapping):
                # attribute markers are stored under the store's own keys only
                if payload.get("id") == doc_id:
                    del payload["id"]
                if payload.get("rev") == rev:
                    del payload["rev"]
            payload.setdefault("_id", doc_id)
            payload.setdefault("_rev", rev)
        body = encode_document(payload)
        return self._dispatcher.fetch("PUT", quote(doc_id, safe=""), database=self._db(db), body=body)

    def delete(self, doc_id: str, rev: str, *, db: str | None = None) -> CouchResponse:
        """Delete a document revision; ``id`` and ``rev`` travel as query parameters."""
        return self._dispatcher.fetch(
            "DELETE",
            database=self._db(db),
            query={"id": doc_id, "rev": rev},
        )

    def delete_many(
        self,
        ids_and_revisions: Mapping[str, Sequence[str]],
        *,
        db: str | None = None,
    ) -> CouchResponse:
        """Purge revisions of several documents in a single call."""
        payload = {doc_id: list(revs) for doc_id, revs in ids_and_revisions.items()}
        return self._dispatcher.fetch(
            "POST",
            "_purge",
            database=self._db(db),
            body=dumps(payload).encode("utf-8"),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find(
        self,
        view: str = "",
        query: Mapping[str, Any] | None = None,
        *,
        db: str | None = None,
    ) -> CouchResponse:
        """Query a view (or the database root when ``view`` is empty).

        ``key``, ``keys``, ``startkey`` and ``endkey`` are sent JSON-encoded,
        all other parameters as plain text.
        """
        return self._dispatcher.fetch("GET", view, database=self._db(db), query=sanitize_query(query))

    def mango(self, query: str, *, db: str | None = None) -> CouchResponse:
        """Run a Mango query given as JSON text."""
        return self._dispatcher.fetch("POST", "_find", database=self._db(db), body=query.encode("utf-8"))

    def mango_query(self, query: Any, *, db: str | None = None) -> CouchResponse:
        """Run a Mango query given as a mapping, dataclass or pydantic model."""
        return self.mango(dumps(query), db=db)

    # ------------------------------------------------------------------
    # Databases and server
    # ------------------------------------------------------------------

    def create_database(self, *, db: str | None = None) -> CouchResponse:
        return self._dispatcher.fetch("PUT", database=self._db(db))

    def drop_database(self, *, db: str | None = None) -> CouchResponse:
        return self._dispatcher.fetch("DELETE", database=self._db(db))

    def list_databases(self) -> list[str]:
        """Names of all databases on the server."""
        return parse_names(self._dispatcher.fetch("GET", "_all_dbs"))

    def new_uuids(self, count: int = 1) -> list[str]:
        """Allocate ``count`` server generated UUIDs."""
        if count < 1:
            raise ArgumentError("can't allocate 0 uuids, count must be greater than 0")
        response = self._dispatcher.fetch("GET", "_uuids", query={"count": str(count)})
        return parse_uuids(response)

    def info(self) -> Any:
        """Server welcome document (version, vendor, features)."""
        return self._dispatcher.fetch("GET").json()

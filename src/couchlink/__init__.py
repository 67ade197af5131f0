"""Synchronous client for CouchDB-style document stores."""

from __future__ import annotations

from couchlink.client import CouchClient
from couchlink.config import ConnectionConfig, Credentials, EnvironmentSettings, Scheme
from couchlink.core.api_client import CouchResponse, HeaderSet, RequestDispatcher
from couchlink.core.exceptions import (
    ArgumentError,
    ConfigurationError,
    CouchError,
    DecodeError,
    NotAuditableError,
    RemoteError,
    SerializationError,
)
from couchlink.core.logger import LogConfig, LogFormat, configure_logging
from couchlink.documents import Auditable, Document, audit_marker
from couchlink.parsing import ParsedDocumentResponse, parse, parse_names, parse_uuids
from couchlink.version import __version__

__all__ = [
    "__version__",
    "ArgumentError",
    "Auditable",
    "ConfigurationError",
    "ConnectionConfig",
    "CouchClient",
    "CouchError",
    "CouchResponse",
    "Credentials",
    "DecodeError",
    "Document",
    "EnvironmentSettings",
    "HeaderSet",
    "LogConfig",
    "LogFormat",
    "NotAuditableError",
    "ParsedDocumentResponse",
    "RemoteError",
    "RequestDispatcher",
    "Scheme",
    "SerializationError",
    "audit_marker",
    "configure_logging",
    "parse",
    "parse_names",
    "parse_uuids",
]

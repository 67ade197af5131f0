"""Core primitives: errors, logging, and the request dispatcher.

The dispatcher lives in :mod:`couchlink.core.api_client`; it is not imported
here because it depends on :mod:`couchlink.config`.
"""

from couchlink.core.exceptions import (
    ArgumentError,
    ConfigurationError,
    CouchError,
    DecodeError,
    NotAuditableError,
    RemoteError,
    SerializationError,
)
from couchlink.core.log_events import LogEvents
from couchlink.core.logger import LogConfig, LogFormat, UnifiedLogger, configure_logging, get_logger

__all__ = [
    "ArgumentError",
    "ConfigurationError",
    "CouchError",
    "DecodeError",
    "LogConfig",
    "LogEvents",
    "LogFormat",
    "NotAuditableError",
    "RemoteError",
    "SerializationError",
    "UnifiedLogger",
    "configure_logging",
    "get_logger",
]

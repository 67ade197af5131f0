"""Configuration models and environment settings."""

from __future__ import annotations

from couchlink.config.environment import (
    EnvironmentSettings,
    TraceSettings,
    load_environment_settings,
    load_trace_setting,
)
from couchlink.config.models import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    ConnectionConfig,
    Credentials,
    Scheme,
)

__all__ = [
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "DEFAULT_TIMEOUT",
    "ConnectionConfig",
    "Credentials",
    "EnvironmentSettings",
    "Scheme",
    "TraceSettings",
    "load_environment_settings",
    "load_trace_setting",
]

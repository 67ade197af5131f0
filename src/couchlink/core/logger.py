"""Utilities for configuring the couchlink structured logger.

couchlink never configures logging on import: a library must not take over
the host application's handlers. Applications (and the test-suite) call
:func:`configure_logging` once; until then structlog's defaults apply and the
bound loggers returned by :func:`get_logger` still work.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, MutableMapping, Sequence
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, Final, cast

import structlog
from structlog.contextvars import (
    bind_contextvars,
    clear_contextvars,
    get_contextvars,
    unbind_contextvars,
)
from structlog.exceptions import DropEvent
from structlog.stdlib import BoundLogger

__all__ = [
    "LogFormat",
    "LogConfig",
    "DEFAULT_LOG_LEVEL",
    "REDACTED",
    "configure_logging",
    "get_logger",
    "UnifiedLogger",
]


class LogFormat(str, Enum):
    """Supported output formats for the renderer."""

    JSON = "json"
    KEY_VALUE = "key_value"


DEFAULT_LOG_LEVEL = logging.INFO

REDACTED: Final[str] = "***REDACTED***"

_DEFAULT_LOGGER_NAME: Final[str] = "couchlink"
_LOG_METHOD_TO_LEVEL: Mapping[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "exception": logging.ERROR,
    "fatal": logging.CRITICAL,
}

_KEY_ORDER: Sequence[str] = (
    "timestamp",
    "level",
    "component",
    "database",
    "request_id",
    "message",
)


@dataclass(frozen=True, slots=True)
class LogConfig:
    """User configurable logging parameters."""

    level: int | str = DEFAULT_LOG_LEVEL
    format: LogFormat = LogFormat.JSON
    redact_fields: Sequence[str] = ("password", "authorization")


def _coerce_log_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    mapped_level = logging.getLevelName(level.upper())
    if isinstance(mapped_level, int):
        return mapped_level
    raise ValueError(f"Unsupported log level: {level}")


def _redact_sensitive_values(
    _: Any,
    __: str,
    event_dict: MutableMapping[str, Any],
    *,
    redact_fields: Iterable[str],
) -> MutableMapping[str, Any]:
    for field in redact_fields:
        if field in event_dict:
            event_dict[field] = REDACTED
    return event_dict


def _shared_processors(config: LogConfig) -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.EventRenamer("message"),
        partial(
            _redact_sensitive_values,
            redact_fields=config.redact_fields,
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer_for(format: LogFormat) -> Any:
    if format is LogFormat.KEY_VALUE:
        return structlog.processors.KeyValueRenderer(
            key_order=_KEY_ORDER,
            sort_keys=False,
            drop_missing=True,
        )
    return structlog.processors.JSONRenderer(sort_keys=True, ensure_ascii=False)


def _safe_filter_by_level(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Drop events that do not satisfy the active logging level."""

    effective_logger = logger or logging.getLogger(_DEFAULT_LOGGER_NAME)
    level = _LOG_METHOD_TO_LEVEL.get(method_name.lower(), logging.INFO)
    if effective_logger.isEnabledFor(level):
        return event_dict
    raise DropEvent


def configure_logging(
    config: LogConfig | None = None,
    *,
    additional_processors: Sequence[Any] | None = None,
) -> None:
    """Initialise logging based on the supplied configuration.

    When ``config`` is omitted the level and format are read from the
    ``COUCHLINK_LOG_LEVEL`` and ``COUCHLINK_LOG_FORMAT`` environment variables.
    """

    cfg = config or _config_from_environment()
    shared_processors = _shared_processors(cfg)
    if additional_processors:
        shared_processors = [*shared_processors, *additional_processors]
    renderer = _renderer_for(cfg.format)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[*shared_processors, _safe_filter_by_level],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    logging.basicConfig(handlers=[handler], level=_coerce_log_level(cfg.level), force=True)

    structlog.configure(
        processors=[
            *shared_processors,
            _safe_filter_by_level,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _config_from_environment() -> LogConfig:
    from couchlink.config.environment import load_environment_settings

    settings = load_environment_settings()
    return LogConfig(level=settings.log_level, format=LogFormat(settings.log_format))


def get_logger(name: str = _DEFAULT_LOGGER_NAME) -> BoundLogger:
    """Return a bound logger."""

    logger = structlog.get_logger(name)
    if hasattr(logger, "bind") and callable(getattr(logger, "bind", None)):
        return cast(BoundLogger, logger)
    raise TypeError("structlog.get_logger returned unexpected logger type")


def _restore_previous_context(previous: dict[str, Any]) -> None:
    if not previous:
        return
    bind_contextvars(**previous)


class UnifiedLogger:
    """Facade that exposes a minimal, documented logging API."""

    _default_logger_name = _DEFAULT_LOGGER_NAME

    @staticmethod
    def configure(
        config: LogConfig | None = None,
        *,
        additional_processors: Sequence[Any] | None = None,
    ) -> None:
        """Configure the underlying structured logger."""

        configure_logging(config, additional_processors=additional_processors)

    @staticmethod
    def get(name: str | None = None) -> BoundLogger:
        """Return a bound logger."""

        return get_logger(name or UnifiedLogger._default_logger_name)

    @staticmethod
    def bind(**context: Any) -> None:
        """Bind context that should be included with all subsequent log events."""

        bind_contextvars(**context)

    @staticmethod
    def reset() -> None:
        """Reset all bound context variables."""

        clear_contextvars()

    @staticmethod
    def scoped(**context: Any) -> AbstractContextManager[None]:
        """Return a context manager that temporarily overrides bound context."""

        @contextmanager
        def _scope() -> Iterator[None]:
            existing = get_contextvars()
            previous = {key: existing[key] for key in context if key in existing}
            bind_contextvars(**context)
            try:
                yield None
            finally:
                unbind_contextvars(*context.keys())
                _restore_previous_context(previous)

        return _scope()

"""Environment-driven settings.

Only construction-time concerns are read from the environment: the request
trace toggle, logging defaults, and the optional connection settings used by
:meth:`couchlink.client.CouchClient.from_environment`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, TypeVar

from pydantic import Field, PositiveFloat, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from couchlink.core.exceptions import ConfigurationError

__all__ = [
    "EnvironmentSettings",
    "TraceSettings",
    "load_environment_settings",
    "load_trace_setting",
]

_FALSE_VALUES = frozenset({"", "0", "false", "no", "off"})
_LOG_FORMATS = frozenset({"json", "key_value"})

_SettingsT = TypeVar("_SettingsT", bound=BaseSettings)


class TraceSettings(BaseSettings):
    """The request trace toggle, read on its own at client construction."""

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    trace: bool = Field(default=False, alias="COUCHLINK_TRACE")

    @field_validator("trace", mode="before")
    @classmethod
    def _coerce_trace(cls, value: Any) -> bool:
        """Any value other than an explicit false-like string enables tracing."""
        if isinstance(value, bool):
            return value
        if value is None:
            return False
        return str(value).strip().lower() not in _FALSE_VALUES


class EnvironmentSettings(TraceSettings):
    """Typed view of the ``COUCHLINK_*`` environment variables."""

    url: str | None = Field(default=None, alias="COUCHLINK_URL")
    user: str | None = Field(default=None, alias="COUCHLINK_USER")
    password: SecretStr | None = Field(default=None, alias="COUCHLINK_PASSWORD")
    database: str | None = Field(default=None, alias="COUCHLINK_DATABASE")
    timeout: PositiveFloat | None = Field(default=None, alias="COUCHLINK_TIMEOUT")
    log_level: str = Field(default="INFO", alias="COUCHLINK_LOG_LEVEL")
    log_format: str = Field(default="json", alias="COUCHLINK_LOG_FORMAT")

    @field_validator("url", "user", "database", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"

    @field_validator("log_format")
    @classmethod
    def _validate_format(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in _LOG_FORMATS:
            allowed = ", ".join(sorted(_LOG_FORMATS))
            msg = f"COUCHLINK_LOG_FORMAT must be one of: {allowed}"
            raise ValueError(msg)
        return normalized


def _load(settings_cls: type[_SettingsT], env_file: Path | None) -> _SettingsT:
    init_kwargs: dict[str, Any] = {}
    if env_file is not None:
        init_kwargs["_env_file"] = env_file
    try:
        return settings_cls(**init_kwargs)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid COUCHLINK_* environment: {exc}") from exc


def load_environment_settings(*, env_file: Path | None = None) -> EnvironmentSettings:
    """Load and validate couchlink environment settings.

    Parameters
    ----------
    env_file:
        Optional path to a ``.env`` file. When omitted, the default search order
        from :class:`EnvironmentSettings` is used.

    Raises
    ------
    ConfigurationError:
        A ``COUCHLINK_*`` value is invalid.
    """

    return _load(EnvironmentSettings, env_file)


def load_trace_setting(*, env_file: Path | None = None) -> bool:
    """Return the ``COUCHLINK_TRACE`` toggle without reading any other variable."""

    return _load(TraceSettings, env_file).trace

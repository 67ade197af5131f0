"""Connection and credential models."""

from __future__ import annotations

from base64 import b64encode
from enum import Enum
from typing import Annotated, Any, TypeVar
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, SecretStr, ValidationError, field_validator

from couchlink.core.exceptions import ConfigurationError

__all__ = [
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "DEFAULT_TIMEOUT",
    "Scheme",
    "ConnectionConfig",
    "Credentials",
]

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5984
DEFAULT_TIMEOUT = 5.0

Port = Annotated[int, Field(ge=1, le=65535)]

_FORBIDDEN_HOST_CHARS = frozenset(" /\\?#@\t\r\n")

_ModelT = TypeVar("_ModelT", bound="_FrozenModel")


class Scheme(str, Enum):
    """Transport scheme used to reach the server."""

    HTTP = "http"
    HTTPS = "https"


class _FrozenModel(BaseModel):
    """Immutable model that reports invalid input as :class:`ConfigurationError`."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid {self.__class__.__name__}: {exc}") from exc

    @classmethod
    def model_validate(cls: type[_ModelT], obj: Any, **kwargs: Any) -> _ModelT:
        try:
            return super().model_validate(obj, **kwargs)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid {cls.__name__}: {exc}") from exc

    @classmethod
    def model_validate_json(cls: type[_ModelT], json_data: str | bytes | bytearray, **kwargs: Any) -> _ModelT:
        try:
            return super().model_validate_json(json_data, **kwargs)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid {cls.__name__}: {exc}") from exc


class ConnectionConfig(_FrozenModel):
    """How to reach the document store server.

    Every field has a default, so ``ConnectionConfig()`` targets a local
    server on ``http://127.0.0.1:5984`` with a five second timeout.
    """

    scheme: Scheme = Field(default=Scheme.HTTP, description="Plain or TLS transport.")
    host: str = Field(default=DEFAULT_HOST, description="Server host name or address.")
    port: Port = Field(default=DEFAULT_PORT, description="Server TCP port.")
    timeout: PositiveFloat = Field(
        default=DEFAULT_TIMEOUT,
        description="Per request timeout in seconds, enforced by the HTTP transport.",
    )

    @field_validator("host")
    @classmethod
    def _validate_host(cls, value: str) -> str:
        """Reject hosts that would not survive URI composition."""
        host = value.strip()
        if not host:
            msg = "host must not be empty"
            raise ValueError(msg)
        if "://" in host or _FORBIDDEN_HOST_CHARS.intersection(host):
            msg = f"host {value!r} is not a bare host name; pass the scheme and port separately"
            raise ValueError(msg)
        return host

    @property
    def netloc(self) -> str:
        host = self.host
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        return f"{host}:{self.port}"

    @property
    def base_url(self) -> str:
        """Server root URL, without a trailing slash."""
        return f"{self.scheme.value}://{self.netloc}"

    @classmethod
    def from_url(cls, url: str, *, timeout: float = DEFAULT_TIMEOUT) -> ConnectionConfig:
        """Build a configuration from a server URL such as ``https://db.local:6984``.

        The port defaults to 5984 when the URL does not carry one. Paths,
        queries and embedded credentials are rejected.
        """
        try:
            parts = urlsplit(url.strip())
            port = parts.port
        except ValueError as exc:
            raise ConfigurationError(f"could not parse server URL {url!r}: {exc}") from exc
        if parts.scheme not in {scheme.value for scheme in Scheme}:
            raise ConfigurationError(f"unsupported scheme in server URL {url!r}")
        if not parts.hostname:
            raise ConfigurationError(f"server URL {url!r} has no host")
        if parts.username or parts.password:
            raise ConfigurationError("credentials must be passed as Credentials, not in the URL")
        if parts.path not in ("", "/") or parts.query or parts.fragment:
            raise ConfigurationError(f"server URL {url!r} must not carry a path or query")
        return cls(
            scheme=Scheme(parts.scheme),
            host=parts.hostname,
            port=port if port is not None else DEFAULT_PORT,
            timeout=timeout,
        )


class Credentials(_FrozenModel):
    """Basic authentication identity."""

    username: str = Field(min_length=1)
    password: SecretStr

    @field_validator("username")
    @classmethod
    def _validate_username(cls, value: str) -> str:
        if ":" in value:
            msg = "username must not contain ':'"
            raise ValueError(msg)
        return value

    def authorization_header(self) -> str:
        """Return the ``Authorization`` header value for these credentials."""
        raw = f"{self.username}:{self.password.get_secret_value()}".encode("utf-8")
        return f"Basic {b64encode(raw).decode('ascii')}"

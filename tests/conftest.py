"""Shared pytest fixtures for couchlink tests."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

from couchlink import ConnectionConfig, CouchClient, Credentials

BASE_URL = "http://couch.test:5984"


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Hide ``COUCHLINK_*`` variables and any ``.env`` file from every test."""

    for name in list(os.environ):
        if name.startswith("COUCHLINK_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _reset_logging_state() -> Iterator[None]:
    """Ensure logging and structlog are clean between tests."""

    yield
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.WARNING)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def connection_config() -> ConnectionConfig:
    return ConnectionConfig(host="couch.test", port=5984, timeout=1.0)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(username="foo", password="bar")


@pytest.fixture
def client(connection_config: ConnectionConfig, credentials: Credentials) -> CouchClient:
    """Client bound to the ``posts`` database on the mocked server."""

    return CouchClient("posts", connection_config, credentials, trace=False)

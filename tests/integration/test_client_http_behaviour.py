"""End-to-end behaviour of CouchClient against a live HTTP stub."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any
from urllib.parse import parse_qs, urlsplit

import pytest
import requests

from couchlink import (
    ConnectionConfig,
    CouchClient,
    Document,
    NotAuditableError,
    RemoteError,
    parse,
)
from couchlink.core.api_client import JSON_CONTENT_TYPE, USER_AGENT

pytestmark = pytest.mark.integration

NOT_FOUND = '{"error":"not_found","reason":"missing"}'


class Post(Document):
    name: str


def test_mango_query_result_parses_into_records(stub_server: Any, live_client: CouchClient) -> None:
    stub_server.respond_with(200, '{"docs":[{"_id":"p1","_rev":"1-a","name":"foo"}],"bookmark":"abc"}')

    response = live_client.mango_query({"selector": {"name": "foo"}})
    result = parse(Post, response)

    assert result.bookmark == "abc"
    assert [post.name for post in result.docs] == ["foo"]
    assert result.docs[0].id == "p1"

    (request,) = stub_server.recorded
    assert request.method == "POST"
    assert request.path == "/posts/_find"
    assert json.loads(request.body) == {"selector": {"name": "foo"}}


def test_dict_records_parse(stub_server: Any, live_client: CouchClient) -> None:
    stub_server.respond_with(200, '{"docs":[{"name":"foo"}],"bookmark":"abc"}')

    result = parse(dict, live_client.mango('{"selector":{}}'))

    assert result.docs == [{"name": "foo"}]
    assert result.bookmark == "abc"


def test_every_request_carries_the_header_set(stub_server: Any, live_client: CouchClient) -> None:
    stub_server.respond_with(200, '{"uuids":["a"]}')

    live_client.new_uuids()
    live_client.new_uuids()

    assert len(stub_server.recorded) == 2
    for request in stub_server.recorded:
        assert request.headers["Authorization"] == "Basic Zm9vOmJhcg=="
        assert request.headers["Content-Type"] == JSON_CONTENT_TYPE
        assert request.headers["User-Agent"] == USER_AGENT


def test_create_then_drop_database(stub_server: Any, live_client: CouchClient) -> None:
    stub_server.respond_with(201, '{"ok":true}')

    live_client.create_database()
    live_client.drop_database()

    assert [(request.method, request.path, request.body) for request in stub_server.recorded] == [
        ("PUT", "/posts", b""),
        ("DELETE", "/posts", b""),
    ]


def test_delete_sends_query_parameters(stub_server: Any, live_client: CouchClient) -> None:
    live_client.delete("p 1", "1-a")

    (request,) = stub_server.recorded
    parts = urlsplit(request.path)
    assert parts.path == "/posts"
    assert parse_qs(parts.query) == {"id": ["p 1"], "rev": ["1-a"]}


OPERATIONS: dict[str, Callable[[CouchClient], object]] = {
    "save": lambda client: client.save({"name": "foo"}),
    "save_many": lambda client: client.save_many([{"name": "foo"}]),
    "update": lambda client: client.update({"_id": "p1", "_rev": "1-a", "name": "foo"}),
    "delete": lambda client: client.delete("p1", "1-a"),
    "delete_many": lambda client: client.delete_many({"p1": ["1-a"]}),
    "find": lambda client: client.find("_design/app/_view/by_name", {"key": "foo"}),
    "mango": lambda client: client.mango('{"selector":{}}'),
    "mango_query": lambda client: client.mango_query({"selector": {}}),
    "create_database": lambda client: client.create_database(),
    "drop_database": lambda client: client.drop_database(),
    "list_databases": lambda client: client.list_databases(),
    "new_uuids": lambda client: client.new_uuids(3),
    "info": lambda client: client.info(),
}


@pytest.mark.parametrize("operation", sorted(OPERATIONS))
def test_not_found_surfaces_server_body(stub_server: Any, live_client: CouchClient, operation: str) -> None:
    stub_server.respond_with(404, NOT_FOUND)

    with pytest.raises(RemoteError) as exc_info:
        OPERATIONS[operation](live_client)

    assert NOT_FOUND in str(exc_info.value)
    assert exc_info.value.status_code == 404
    assert exc_info.value.error == "not_found"
    assert exc_info.value.reason == "missing"
    assert len(stub_server.recorded) == 1


def test_update_without_marker_sends_nothing(stub_server: Any, live_client: CouchClient) -> None:
    with pytest.raises(NotAuditableError):
        live_client.update({"name": "foo"})

    assert stub_server.recorded == []


def test_unreachable_server_raises_transport_error(stub_server: Any) -> None:
    host, port = stub_server.server_address[:2]
    stub_server.shutdown()
    stub_server.server_close()

    client = CouchClient("posts", ConnectionConfig(host=str(host), port=int(port), timeout=1.0), trace=False)

    with pytest.raises(requests.exceptions.ConnectionError):
        client.list_databases()

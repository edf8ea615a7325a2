import io
import json
import socket
from email.message import Message
from urllib.error import HTTPError, URLError

import pytest

from jsonapi_cli.cli_shared import TransportError
from jsonapi_cli.transport import http_request

_HEADERS = {"Content-Type": "application/vnd.api+json", "Accept": "application/vnd.api+json"}


class _FakeResponse:
    def __init__(self, status: int, body: bytes, headers: dict[str, str] | None = None):
        self.status = status
        self.headers = headers or {}
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def test_success_returns_status_headers_and_body(monkeypatch):
    seen: dict = {}

    def fake_urlopen(req, timeout):
        seen["req"] = req
        seen["timeout"] = timeout
        return _FakeResponse(200, b'{"data": null}', {"Content-Type": "application/vnd.api+json"})

    monkeypatch.setattr("jsonapi_cli.transport.urlopen", fake_urlopen)
    status, headers, body = http_request(method="get", url="http://api.test/todo", headers=_HEADERS, timeout_seconds=7)

    assert status == 200
    assert headers == {"content-type": "application/vnd.api+json"}
    assert body == b'{"data": null}'
    assert seen["timeout"] == 7
    assert seen["req"].get_method() == "GET"
    assert seen["req"].get_header("Accept") == "application/vnd.api+json"


def test_delete_carries_request_body(monkeypatch):
    seen: dict = {}

    def fake_urlopen(req, timeout):
        seen["req"] = req
        return _FakeResponse(204, b"")

    monkeypatch.setattr("jsonapi_cli.transport.urlopen", fake_urlopen)
    payload = json.dumps({"data": [{"type": "tag", "id": "t1"}]}).encode("utf-8")
    status, _headers, body = http_request(
        method="DELETE",
        url="http://api.test/todo/1/relationships/tags",
        headers=_HEADERS,
        body=payload,
    )

    assert status == 204
    assert body == b""
    assert seen["req"].get_method() == "DELETE"
    assert seen["req"].data == payload
    assert seen["req"].get_header("Content-type") == "application/vnd.api+json"


def test_http_error_is_returned_as_status_tuple(monkeypatch):
    hdrs = Message()
    hdrs["Content-Type"] = "application/vnd.api+json"
    errors = b'{"errors": [{"status": "404", "title": "Not Found"}]}'

    def fake_urlopen(req, timeout):
        raise HTTPError(req.full_url, 404, "Not Found", hdrs, io.BytesIO(errors))

    monkeypatch.setattr("jsonapi_cli.transport.urlopen", fake_urlopen)
    status, headers, body = http_request(method="GET", url="http://api.test/todo/9", headers=_HEADERS)

    assert status == 404
    assert headers["content-type"] == "application/vnd.api+json"
    assert json.loads(body)["errors"][0]["title"] == "Not Found"


@pytest.mark.parametrize(
    "exc",
    [URLError("dns"), socket.timeout("timed out"), ConnectionRefusedError("refused")],
)
def test_network_failures_raise_transport_error(monkeypatch, exc):
    calls = []

    def fake_urlopen(req, timeout):
        calls.append(req)
        raise exc

    monkeypatch.setattr("jsonapi_cli.transport.urlopen", fake_urlopen)
    with pytest.raises(TransportError) as err:
        http_request(method="GET", url="http://api.test/todo", headers=_HEADERS)

    assert "GET http://api.test/todo" in str(err.value)
    assert len(calls) == 1

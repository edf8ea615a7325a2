import json
import logging
from urllib.parse import parse_qsl, urlsplit

import pytest

from jsonapi_cli.cli_shared import (
    DecodeError,
    MissingID,
    NotFound,
    ServerError,
    TransportError,
    ValidationError,
)
from jsonapi_cli.client import JsonApiClient, linkage_from_value
from jsonapi_cli.models import Resource, ResourceIdentifier
from jsonapi_cli.permissions import SUBTRACT, UNION
from jsonapi_cli.query import ListOptions


class _FakeTransport:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: list[dict] = []

    def __call__(self, *, method, url, headers, body=None, timeout_seconds=30):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "headers": headers,
                "body": json.loads(body) if body else None,
                "timeout_seconds": timeout_seconds,
            }
        )
        status, payload = self.responses.pop(0)
        if payload is None:
            raw = b""
        elif isinstance(payload, bytes):
            raw = payload
        else:
            raw = json.dumps(payload).encode("utf-8")
        return status, {}, raw


def _client(transport, **kwargs) -> JsonApiClient:
    return JsonApiClient("http://api.test/", transport=transport, **kwargs)


def _todo(rid="1", **attrs):
    return {"data": {"type": "todo", "id": rid, "attributes": attrs}}


def test_client_rejects_missing_or_non_http_base_url():
    with pytest.raises(ValidationError):
        JsonApiClient("")
    with pytest.raises(ValidationError):
        JsonApiClient("ftp://api.test")


def test_headers_carry_media_type_and_bearer_token():
    fake = _FakeTransport((200, _todo(title="a")))
    _client(fake, api_key="secret-key", timeout_seconds=5).read("todo", "1")

    call = fake.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "http://api.test/todo/1"
    assert call["headers"]["Content-Type"] == "application/vnd.api+json"
    assert call["headers"]["Accept"] == "application/vnd.api+json"
    assert call["headers"]["Authorization"] == "Bearer secret-key"
    assert call["timeout_seconds"] == 5


def test_no_authorization_header_without_api_key():
    fake = _FakeTransport((200, _todo()))
    _client(fake).read("todo", "1")
    assert "Authorization" not in fake.calls[0]["headers"]


def test_create_posts_document_without_id():
    fake = _FakeTransport((201, _todo("42", title="new")))
    created = _client(fake).create(Resource(type="todo", attributes={"title": "new"}))

    assert created.id == "42"
    assert fake.calls[0]["method"] == "POST"
    assert fake.calls[0]["url"] == "http://api.test/todo"
    assert fake.calls[0]["body"] == {"data": {"type": "todo", "attributes": {"title": "new"}}}


def test_create_with_empty_body_is_decode_error():
    fake = _FakeTransport((201, None))
    with pytest.raises(DecodeError):
        _client(fake).create(Resource(type="todo", attributes={}))


def test_update_with_empty_id_sends_nothing():
    fake = _FakeTransport()
    with pytest.raises(MissingID):
        _client(fake).update(Resource(type="todo", id="", attributes={"title": "x"}))
    assert fake.calls == []


@pytest.mark.parametrize("op", ["read", "delete"])
def test_read_and_delete_with_empty_id_send_nothing(op):
    fake = _FakeTransport()
    with pytest.raises(MissingID):
        getattr(_client(fake), op)("todo", " ")
    assert fake.calls == []


def test_update_returns_none_on_no_content():
    fake = _FakeTransport((204, None))
    assert _client(fake).update(Resource(type="todo", id="1", attributes={"done": True})) is None
    assert fake.calls[0]["method"] == "PATCH"
    assert fake.calls[0]["body"]["data"]["id"] == "1"


def test_path_segments_are_escaped():
    fake = _FakeTransport((200, _todo("a/b")))
    _client(fake).read("todo", "a/b")
    assert fake.calls[0]["url"] == "http://api.test/todo/a%2Fb"


def test_not_found_lists_every_error():
    fake = _FakeTransport(
        (
            404,
            {
                "errors": [
                    {"status": "404", "title": "Not Found"},
                    {"status": "404", "title": "Also", "detail": "second error"},
                ]
            },
        )
    )
    with pytest.raises(NotFound) as exc:
        _client(fake).read("todo", "9")

    err = exc.value
    assert err.status == 404
    assert err.method == "GET"
    assert len(err.errors) == 2
    assert "Not Found" in str(err)
    assert "Also: second error" in str(err)


def test_server_error_without_json_body_includes_truncated_body():
    fake = _FakeTransport((500, b"<html>" + b"x" * 1000 + b"</html>"))
    with pytest.raises(ServerError) as exc:
        _client(fake).list("todo")
    assert exc.value.status == 500
    assert "status=500" in str(exc.value)
    assert len(str(exc.value)) < 400


def test_malformed_success_body_is_decode_error():
    fake = _FakeTransport((200, b"{not json"))
    with pytest.raises(DecodeError) as exc:
        _client(fake).read("todo", "1")
    assert exc.value.body == "{not json"


def test_transport_errors_propagate_without_retry():
    calls = []

    def failing(**kwargs):
        calls.append(kwargs)
        raise TransportError("http request failed: GET http://api.test/todo: timed out")

    with pytest.raises(TransportError):
        _client(failing).list("todo")
    assert len(calls) == 1


def test_list_sends_query_parameters():
    fake = _FakeTransport((200, {"data": [], "meta": {"total": 0}}))
    doc = _client(fake).list(
        "todo",
        ListOptions(page={"number": "2"}, filter={"status": "active"}, sort="-created_at"),
    )

    assert doc.resources() == []
    parts = urlsplit(fake.calls[0]["url"])
    assert parts.path == "/todo"
    assert parse_qsl(parts.query) == [
        ("page[number]", "2"),
        ("filter[status]", "active"),
        ("sort", "-created_at"),
    ]


def test_fetch_related_and_linkage_paths():
    fake = _FakeTransport(
        (200, {"data": [{"type": "tag", "id": "t1", "attributes": {"name": "x"}}]}),
        (200, {"data": [{"type": "tag", "id": "t1"}]}),
    )
    client = _client(fake)
    related = client.fetch_related("todo", "1", "tags")
    linkage = client.get_relationship("todo", "1", "tags")

    assert fake.calls[0]["url"] == "http://api.test/todo/1/tags"
    assert fake.calls[1]["url"] == "http://api.test/todo/1/relationships/tags"
    assert isinstance(related.resources()[0], Resource)
    assert isinstance(linkage.resources()[0], ResourceIdentifier)


def test_update_relationship_accepts_null_to_clear():
    fake = _FakeTransport((204, None))
    assert _client(fake).update_relationship("todo", "1", "owner", None) is None
    assert fake.calls[0]["method"] == "PATCH"
    assert fake.calls[0]["body"] == {"data": None}


def test_add_to_relationship_wraps_single_identifier():
    fake = _FakeTransport((204, None))
    _client(fake).add_to_relationship("todo", "1", "tags", {"type": "tag", "id": "t9"})
    assert fake.calls[0]["method"] == "POST"
    assert fake.calls[0]["body"] == {"data": [{"type": "tag", "id": "t9"}]}


def test_delete_from_relationship_sends_body():
    fake = _FakeTransport((204, None))
    _client(fake).delete_from_relationship("todo", "1", "tags", [{"type": "tag", "id": "t1"}])
    assert fake.calls[0]["method"] == "DELETE"
    assert fake.calls[0]["url"] == "http://api.test/todo/1/relationships/tags"
    assert fake.calls[0]["body"] == {"data": [{"type": "tag", "id": "t1"}]}


def test_linkage_rejects_full_resources():
    with pytest.raises(ValidationError):
        linkage_from_value({"type": "tag", "id": "t1", "attributes": {}})
    with pytest.raises(ValidationError):
        linkage_from_value({"type": "tag"})


def test_permission_union_issues_single_patch_with_decimal_string():
    fake = _FakeTransport(
        (200, {"data": {"type": "article", "id": "7", "attributes": {"permission": 4}}}),
        (200, {"data": {"type": "article", "id": "7", "attributes": {"permission": "2564"}}}),
    )
    before, after = _client(fake).change_permission("article", "7", 512 | 2048, UNION)

    assert (before, after) == (4, 2564)
    assert [c["method"] for c in fake.calls] == ["GET", "PATCH"]
    assert fake.calls[1]["body"] == {
        "data": {"type": "article", "id": "7", "attributes": {"permission": "2564"}}
    }


def test_permission_subtract_clears_bits():
    fake = _FakeTransport(
        (200, {"data": {"type": "article", "id": "7", "attributes": {"permission": "2564"}}}),
        (204, None),
    )
    before, after = _client(fake).change_permission("article", "7", 2048, SUBTRACT)
    assert (before, after) == (2564, 516)
    assert fake.calls[1]["body"]["data"]["attributes"]["permission"] == "516"


def test_permission_missing_attribute_is_decode_error():
    fake = _FakeTransport((200, _todo(title="no perm")))
    with pytest.raises(DecodeError):
        _client(fake).get_permission("todo", "1")


def test_describe_fetches_schema_once():
    schema = {
        "TableName": "todo",
        "Columns": [
            {"Name": "title", "ColumnType": "label", "DataType": "varchar(500)"},
            {"Name": "owner", "jsonApi": "hasOne", "type": "user_account"},
        ],
        "Actions": [{"Name": "archive", "Label": "Archive", "OnType": "todo"}],
        "DefaultPermission": 2564,
    }
    fake = _FakeTransport((200, schema))
    table = _client(fake).describe("todo")

    assert len(fake.calls) == 1
    assert fake.calls[0]["url"] == "http://api.test/jsmodel/todo.js"
    assert [c.name for c in table.columns] == ["title", "owner"]
    assert table.columns[1].is_relation
    assert table.columns[1].target == "user_account"
    assert table.action("archive").label == "Archive"
    assert table.default_permission == 2564


def test_execute_action_posts_attributes_with_instance_id():
    fake = _FakeTransport((200, [{"ResponseType": "client.notify", "Attributes": {"message": "ok"}}]))
    out = _client(fake).execute_action("todo", "archive", {"reason": "done"}, resource_id="1")

    assert out[0]["ResponseType"] == "client.notify"
    assert fake.calls[0]["url"] == "http://api.test/action/todo/archive"
    assert fake.calls[0]["body"] == {"attributes": {"reason": "done", "todo_id": "1"}}


def test_verbose_logger_records_requests(caplog):
    logger = logging.getLogger("dcli-test")
    logger.setLevel(logging.DEBUG)
    fake = _FakeTransport((200, _todo()))
    with caplog.at_level(logging.DEBUG, logger="dcli-test"):
        _client(fake, api_key="secret-key", logger=logger).read("todo", "1")

    messages = [r.getMessage() for r in caplog.records]
    assert any("GET http://api.test/todo/1" in m for m in messages)
    assert not any("secret-key" in m for m in messages)

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote, urlencode

from . import transport as _transport
from .cli_shared import (
    DEFAULT_TIMEOUT_SECONDS,
    JSONAPI_MEDIA_TYPE,
    DecodeError,
    HTTPStatusError,
    MissingID,
    NotFound,
    ServerError,
    ValidationError,
    _truncate,
)
from .models import (
    MISSING,
    Document,
    Error,
    Resource,
    ResourceIdentifier,
    decode_document,
    encode_document,
)
from .permissions import SUBTRACT, UNION, combine, format_value, parse_permission_value
from .query import ListOptions, build_list_query
from .schema import Action, TableInfo
from .transport import Transport

DEFAULT_SCHEMA_PATH = "jsmodel/{type}.js"
DEFAULT_ACTION_PATH = "action/{type}/{name}"
PERMISSION_ATTRIBUTE = "permission"


def _segment(value: str, *, name: str) -> str:
    v = str(value or "").strip()
    if not v:
        raise ValidationError(f"missing {name}")
    return quote(v, safe="")


def _require_id(resource_type: str, resource_id: str) -> str:
    rid = str(resource_id or "").strip()
    if not rid:
        raise MissingID(resource_type)
    return rid


def _identifier_from(value: Any) -> ResourceIdentifier:
    if isinstance(value, ResourceIdentifier):
        return value
    if isinstance(value, Resource):
        if value.attributes is not MISSING or value.relationships is not MISSING:
            raise ValidationError("relationship data must contain resource identifiers, not full resources")
        return value.identifier()
    if not isinstance(value, dict):
        raise ValidationError(f"invalid relationship data entry: expected object, got {type(value).__name__}")
    if "attributes" in value or "relationships" in value:
        raise ValidationError("relationship data must contain resource identifiers, not full resources")
    rtype = str(value.get("type") or "").strip()
    rid = str(value.get("id") or "").strip()
    if not rtype or not rid:
        raise ValidationError("relationship data entries require both 'type' and 'id'")
    return ResourceIdentifier(type=rtype, id=rid, meta=value.get("meta", MISSING))


def linkage_from_value(value: Any) -> Any:
    """Normalize relationship data into None, one identifier, or a list of them."""
    if value is None:
        return None
    if isinstance(value, list):
        return [_identifier_from(item) for item in value]
    return _identifier_from(value)


class JsonApiClient:
    """Synchronous JSON:API client; one instance per CLI invocation."""

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str = "",
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
        logger: logging.Logger | None = None,
        transport: Transport | None = None,
        schema_path: str = DEFAULT_SCHEMA_PATH,
        action_path: str = DEFAULT_ACTION_PATH,
    ) -> None:
        base = str(base_url or "").strip()
        if not base:
            raise ValidationError("missing base_url")
        if not base.startswith(("http://", "https://")):
            raise ValidationError(f"invalid base_url {base!r} (expected http:// or https:// URL)")
        self.base_url = base.rstrip("/")
        self.timeout_seconds = int(timeout_seconds)
        self.logger = logger or logging.getLogger("dcli")
        self.schema_path = schema_path
        self.action_path = action_path
        self._transport = transport
        self.headers: dict[str, str] = {
            "Content-Type": JSONAPI_MEDIA_TYPE,
            "Accept": JSONAPI_MEDIA_TYPE,
        }
        key = str(api_key or "").strip()
        if key:
            self.headers["Authorization"] = f"Bearer {key}"

    # -- transport ---------------------------------------------------------

    def url_for(self, path: str, query: list[tuple[str, str]] | None = None) -> str:
        url = f"{self.base_url}/{path.lstrip('/')}"
        if query:
            url += f"?{urlencode(query)}"
        return url

    def _send(
        self,
        method: str,
        path: str,
        *,
        query: list[tuple[str, str]] | None = None,
        body: bytes | None = None,
    ) -> tuple[int, bytes]:
        url = self.url_for(path, query)
        send = self._transport or _transport.http_request
        self.logger.debug("request %s %s", method, url)
        status, _hdrs, raw = send(
            method=method,
            url=url,
            headers=dict(self.headers),
            body=body,
            timeout_seconds=self.timeout_seconds,
        )
        self.logger.debug("response %s %s status=%s bytes=%d", method, url, status, len(raw or b""))
        if status < 200 or status >= 300:
            raise self._status_error(method=method, path=path, status=status, raw=raw or b"")
        return status, raw or b""

    def _status_error(self, *, method: str, path: str, status: int, raw: bytes) -> HTTPStatusError:
        text = raw.decode("utf-8", errors="replace")
        errors: list[Error] = []
        if text.strip():
            try:
                doc = decode_document(raw)
            except DecodeError:
                doc = None
            if doc is not None and doc.has_errors:
                errors = list(doc.errors)
        msg = f"{method} /{path.lstrip('/')} failed: status={status}"
        if errors:
            msg += "\n" + "\n".join(f"  - {e.summary()}" for e in errors)
        elif text.strip():
            msg += f" body={_truncate(text)}"
        cls = NotFound if status == 404 else ServerError
        return cls(msg, status=status, method=method, path=path, errors=errors)

    def request(
        self,
        method: str,
        path: str,
        *,
        query: list[tuple[str, str]] | None = None,
        document: Document | None = None,
        identifiers: bool = False,
    ) -> Document | None:
        body = encode_document(document) if document is not None else None
        _status, raw = self._send(method, path, query=query, body=body)
        if not raw.strip():
            return None
        return decode_document(raw, identifiers=identifiers)

    def request_json(self, method: str, path: str, *, payload: Any = None) -> Any:
        body = None
        if payload is not None:
            body = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        _status, raw = self._send(method, path, body=body)
        text = raw.decode("utf-8", errors="replace")
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except ValueError as e:
            raise DecodeError(f"invalid JSON in response: {e}", body=text) from e

    # -- resources ---------------------------------------------------------

    def create(self, resource: Resource) -> Resource:
        path = _segment(resource.type, name="resource type")
        doc = self.request("POST", path, document=Document(data=resource))
        if doc is None:
            raise DecodeError(f"empty response body from POST /{path}")
        return doc.resource()

    def read(self, resource_type: str, resource_id: str) -> Resource:
        path = self._resource_path(resource_type, resource_id)
        doc = self.request("GET", path)
        if doc is None:
            raise DecodeError(f"empty response body from GET /{path}")
        return doc.resource()

    def update(self, resource: Resource) -> Resource | None:
        rid = _require_id(resource.type, resource.id)
        path = self._resource_path(resource.type, rid)
        doc = self.request("PATCH", path, document=Document(data=resource))
        if doc is None or doc.data is MISSING or doc.data is None:
            return None
        return doc.resource()

    def delete(self, resource_type: str, resource_id: str) -> None:
        path = self._resource_path(resource_type, resource_id)
        self._send("DELETE", path)

    def list(self, resource_type: str, options: ListOptions | None = None) -> Document:
        path = _segment(resource_type, name="resource type")
        doc = self.request("GET", path, query=build_list_query(options))
        return doc if doc is not None else Document()

    def _resource_path(self, resource_type: str, resource_id: str) -> str:
        rid = _require_id(resource_type, resource_id)
        return f"{_segment(resource_type, name='resource type')}/{_segment(rid, name='resource id')}"

    # -- relationships -----------------------------------------------------

    def _relationship_path(self, resource_type: str, resource_id: str, relation: str) -> str:
        base = self._resource_path(resource_type, resource_id)
        return f"{base}/relationships/{_segment(relation, name='relation name')}"

    def fetch_related(self, resource_type: str, resource_id: str, relation: str) -> Document:
        path = f"{self._resource_path(resource_type, resource_id)}/{_segment(relation, name='relation name')}"
        doc = self.request("GET", path)
        return doc if doc is not None else Document()

    def get_relationship(self, resource_type: str, resource_id: str, relation: str) -> Document:
        path = self._relationship_path(resource_type, resource_id, relation)
        doc = self.request("GET", path, identifiers=True)
        return doc if doc is not None else Document()

    def update_relationship(
        self, resource_type: str, resource_id: str, relation: str, data: Any
    ) -> Document | None:
        path = self._relationship_path(resource_type, resource_id, relation)
        doc = Document(data=linkage_from_value(data))
        return self.request("PATCH", path, document=doc, identifiers=True)

    def add_to_relationship(
        self, resource_type: str, resource_id: str, relation: str, data: Any
    ) -> Document | None:
        path = self._relationship_path(resource_type, resource_id, relation)
        doc = Document(data=self._to_many_linkage(data))
        return self.request("POST", path, document=doc, identifiers=True)

    def delete_from_relationship(self, resource_type: str, resource_id: str, relation: str, data: Any) -> None:
        path = self._relationship_path(resource_type, resource_id, relation)
        doc = Document(data=self._to_many_linkage(data))
        self._send("DELETE", path, body=encode_document(doc))

    @staticmethod
    def _to_many_linkage(data: Any) -> list[ResourceIdentifier]:
        linkage = linkage_from_value(data)
        if linkage is None:
            raise ValidationError("relationship data is required (identifier or list of identifiers)")
        if isinstance(linkage, list):
            return linkage
        return [linkage]

    # -- permissions -------------------------------------------------------

    def get_permission(self, resource_type: str, resource_id: str) -> int:
        resource = self.read(resource_type, resource_id)
        if not isinstance(resource.attributes, dict) or PERMISSION_ATTRIBUTE not in resource.attributes:
            raise DecodeError(f"permission attribute not found on {resource_type}/{resource_id}")
        return parse_permission_value(resource.attributes[PERMISSION_ATTRIBUTE])

    def set_permission(self, resource_type: str, resource_id: str, perm: int) -> Resource | None:
        resource = Resource(
            type=resource_type,
            id=str(resource_id or "").strip(),
            attributes={PERMISSION_ATTRIBUTE: format_value(perm)},
        )
        return self.update(resource)

    def change_permission(self, resource_type: str, resource_id: str, delta: int, op: str) -> tuple[int, int]:
        """Read the current bitmask, apply ``op`` locally and write it back.

        Not atomic: the server has no bit-set primitive, so two concurrent
        writers can lose each other's update.
        """
        if op not in (UNION, SUBTRACT):
            raise ValueError(f"unsupported permission operation: {op!r}")
        _require_id(resource_type, resource_id)
        current = self.get_permission(resource_type, resource_id)
        updated = combine(current, delta, op)
        self.logger.debug("permission %s %s/%s: %d -> %d", op, resource_type, resource_id, current, updated)
        self.set_permission(resource_type, resource_id, updated)
        return current, updated

    # -- schema and actions ------------------------------------------------

    def describe(self, resource_type: str) -> TableInfo:
        path = self.schema_path.format(type=_segment(resource_type, name="resource type"))
        obj = self.request_json("GET", path)
        if obj is None:
            raise DecodeError(f"empty response body from GET /{path}")
        return TableInfo.from_dict(obj, table_name=resource_type)

    def list_actions(self, resource_type: str) -> list[Action]:
        return list(self.describe(resource_type).actions)

    def execute_action(
        self,
        resource_type: str,
        action_name: str,
        inputs: dict[str, Any] | None = None,
        *,
        resource_id: str | None = None,
    ) -> Any:
        path = self.action_path.format(
            type=_segment(resource_type, name="resource type"),
            name=_segment(action_name, name="action name"),
        )
        attributes = dict(inputs or {})
        rid = str(resource_id or "").strip()
        if rid:
            attributes[f"{resource_type}_id"] = rid
        out = self.request_json("POST", path, payload={"attributes": attributes})
        return [] if out is None else out

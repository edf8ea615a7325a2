"""JSON:API document model.

Optional members default to ``MISSING`` so that a member absent on the wire is
written back as absent. ``None`` always means an explicit JSON ``null``; the
difference matters for relationships, where an absent ``data`` means "not
modified" and ``null`` means "cleared".

Reference: https://jsonapi.org/format/
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable

from .cli_shared import DecodeError


class _Missing:
    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def _put(out: dict[str, Any], key: str, value: Any, encode: Callable[[Any], Any] | None = None) -> None:
    if value is MISSING:
        return
    if encode is not None and value is not None:
        value = encode(value)
    out[key] = value


def _expect_object(val: Any, label: str) -> dict[str, Any]:
    if not isinstance(val, dict):
        raise DecodeError(f"invalid {label}: expected JSON object, got {type(val).__name__}")
    return val


def _require_type(obj: dict[str, Any], label: str) -> str:
    t = obj.get("type")
    if not isinstance(t, str) or not t:
        raise DecodeError(f"invalid {label}: missing 'type'")
    return t


def _id_str(raw: Any) -> str:
    if raw is None:
        return ""
    return str(raw)


@dataclass
class ResourceIdentifier:
    type: str
    id: str
    meta: Any = MISSING

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type, "id": self.id}
        _put(out, "meta", self.meta)
        return out

    @classmethod
    def from_dict(cls, obj: Any) -> ResourceIdentifier:
        obj = _expect_object(obj, "resource identifier")
        return cls(
            type=_require_type(obj, "resource identifier"),
            id=_id_str(obj.get("id")),
            meta=obj.get("meta", MISSING),
        )


def _encode_linkage(data: Any) -> Any:
    if data is None:
        return None
    if isinstance(data, list):
        return [item.to_dict() for item in data]
    return data.to_dict()


def _decode_linkage(raw: Any) -> Any:
    if raw is None:
        return None
    if isinstance(raw, list):
        return [ResourceIdentifier.from_dict(item) for item in raw]
    return ResourceIdentifier.from_dict(raw)


@dataclass
class Relationship:
    """Relationship object; ``data`` is MISSING, None, one identifier or a list."""

    data: Any = MISSING
    links: Any = MISSING
    meta: Any = MISSING

    @property
    def is_to_many(self) -> bool:
        return isinstance(self.data, list)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        _put(out, "links", self.links)
        _put(out, "data", self.data, _encode_linkage)
        _put(out, "meta", self.meta)
        return out

    @classmethod
    def from_dict(cls, obj: Any) -> Relationship:
        obj = _expect_object(obj, "relationship")
        data = _decode_linkage(obj["data"]) if "data" in obj else MISSING
        return cls(data=data, links=obj.get("links", MISSING), meta=obj.get("meta", MISSING))


def _encode_relationships(rels: dict[str, Relationship]) -> dict[str, Any]:
    return {name: rel.to_dict() for name, rel in rels.items()}


def _decode_relationships(raw: Any) -> Any:
    if raw is None:
        return None
    raw = _expect_object(raw, "relationships")
    return {name: Relationship.from_dict(val) for name, val in raw.items()}


@dataclass
class Resource:
    type: str
    id: str = ""
    attributes: Any = MISSING
    relationships: Any = MISSING
    links: Any = MISSING
    meta: Any = MISSING
    # Set when decoded from a body that carried an "id" member, even an empty one.
    id_present: bool = field(default=False, repr=False, compare=False)

    def identifier(self) -> ResourceIdentifier:
        return ResourceIdentifier(type=self.type, id=self.id)

    def attribute(self, name: str, default: Any = None) -> Any:
        if not isinstance(self.attributes, dict):
            return default
        return self.attributes.get(name, default)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type}
        if self.id or self.id_present:
            out["id"] = self.id
        _put(out, "attributes", self.attributes)
        _put(out, "relationships", self.relationships, _encode_relationships)
        _put(out, "links", self.links)
        _put(out, "meta", self.meta)
        return out

    @classmethod
    def from_dict(cls, obj: Any) -> Resource:
        obj = _expect_object(obj, "resource object")
        rels = _decode_relationships(obj["relationships"]) if "relationships" in obj else MISSING
        return cls(
            type=_require_type(obj, "resource object"),
            id=_id_str(obj.get("id")),
            attributes=obj.get("attributes", MISSING),
            relationships=rels,
            links=obj.get("links", MISSING),
            meta=obj.get("meta", MISSING),
            id_present="id" in obj,
        )


@dataclass
class ErrorSource:
    pointer: Any = MISSING
    parameter: Any = MISSING

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        _put(out, "pointer", self.pointer)
        _put(out, "parameter", self.parameter)
        return out

    @classmethod
    def from_dict(cls, obj: Any) -> ErrorSource:
        obj = _expect_object(obj, "error source")
        return cls(pointer=obj.get("pointer", MISSING), parameter=obj.get("parameter", MISSING))


@dataclass
class Error:
    id: Any = MISSING
    status: Any = MISSING
    code: Any = MISSING
    title: Any = MISSING
    detail: Any = MISSING
    source: Any = MISSING
    links: Any = MISSING
    meta: Any = MISSING

    def summary(self) -> str:
        parts: list[str] = []
        if self.status:
            parts.append(f"[{self.status}]")
        if self.code:
            parts.append(f"({self.code})")
        text = ": ".join(str(p) for p in (self.title, self.detail) if p)
        parts.append(text or "unknown error")
        if isinstance(self.source, ErrorSource):
            if self.source.pointer:
                parts.append(f"pointer={self.source.pointer}")
            if self.source.parameter:
                parts.append(f"parameter={self.source.parameter}")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        _put(out, "id", self.id)
        _put(out, "links", self.links)
        _put(out, "status", self.status)
        _put(out, "code", self.code)
        _put(out, "title", self.title)
        _put(out, "detail", self.detail)
        _put(out, "source", self.source, lambda s: s.to_dict())
        _put(out, "meta", self.meta)
        return out

    @classmethod
    def from_dict(cls, obj: Any) -> Error:
        obj = _expect_object(obj, "error object")
        source = MISSING
        if "source" in obj:
            source = None if obj["source"] is None else ErrorSource.from_dict(obj["source"])
        return cls(
            id=obj.get("id", MISSING),
            status=obj.get("status", MISSING),
            code=obj.get("code", MISSING),
            title=obj.get("title", MISSING),
            detail=obj.get("detail", MISSING),
            source=source,
            links=obj.get("links", MISSING),
            meta=obj.get("meta", MISSING),
        )


@dataclass
class JsonApiObject:
    version: Any = MISSING
    meta: Any = MISSING

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        _put(out, "version", self.version)
        _put(out, "meta", self.meta)
        return out

    @classmethod
    def from_dict(cls, obj: Any) -> JsonApiObject:
        obj = _expect_object(obj, "jsonapi object")
        return cls(version=obj.get("version", MISSING), meta=obj.get("meta", MISSING))


def _encode_primary(data: Any) -> Any:
    if isinstance(data, list):
        return [item.to_dict() for item in data]
    return data.to_dict()


def _decode_primary(raw: Any, *, identifiers: bool) -> Any:
    if raw is None:
        return None
    decode = ResourceIdentifier.from_dict if identifiers else Resource.from_dict
    if isinstance(raw, list):
        return [decode(item) for item in raw]
    if isinstance(raw, dict):
        return decode(raw)
    raise DecodeError(f"invalid primary data: expected object, array or null, got {type(raw).__name__}")


@dataclass
class Document:
    """Top-level envelope.

    ``data`` is a tagged union chosen from the wire shape: an object decodes to
    a single Resource (or ResourceIdentifier), an array to a list, ``null`` to
    None, and an absent member to MISSING.
    """

    data: Any = MISSING
    errors: Any = MISSING
    meta: Any = MISSING
    jsonapi: Any = MISSING
    links: Any = MISSING
    included: Any = MISSING

    @property
    def is_collection(self) -> bool:
        return isinstance(self.data, list)

    @property
    def has_errors(self) -> bool:
        return isinstance(self.errors, list) and len(self.errors) > 0

    def resource(self) -> Resource:
        if not isinstance(self.data, Resource):
            raise DecodeError("expected a single resource object as primary data")
        return self.data

    def resources(self) -> list[Any]:
        if self.data is MISSING or self.data is None:
            return []
        if isinstance(self.data, list):
            return list(self.data)
        return [self.data]

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        _put(out, "jsonapi", self.jsonapi, lambda j: j.to_dict())
        _put(out, "links", self.links)
        _put(out, "data", self.data, _encode_primary)
        _put(out, "errors", self.errors, lambda errs: [e.to_dict() for e in errs])
        _put(out, "included", self.included, lambda items: [r.to_dict() for r in items])
        _put(out, "meta", self.meta)
        return out

    @classmethod
    def from_dict(cls, obj: Any, *, identifiers: bool = False) -> Document:
        obj = _expect_object(obj, "document")
        data = _decode_primary(obj["data"], identifiers=identifiers) if "data" in obj else MISSING
        errors = MISSING
        if "errors" in obj:
            raw = obj["errors"]
            errors = None if raw is None else [Error.from_dict(e) for e in _expect_list(raw, "errors")]
        included = MISSING
        if "included" in obj:
            raw = obj["included"]
            included = None if raw is None else [Resource.from_dict(r) for r in _expect_list(raw, "included")]
        jsonapi = MISSING
        if "jsonapi" in obj:
            jsonapi = None if obj["jsonapi"] is None else JsonApiObject.from_dict(obj["jsonapi"])
        return cls(
            data=data,
            errors=errors,
            meta=obj.get("meta", MISSING),
            jsonapi=jsonapi,
            links=obj.get("links", MISSING),
            included=included,
        )


def _expect_list(val: Any, label: str) -> list[Any]:
    if not isinstance(val, list):
        raise DecodeError(f"invalid {label}: expected JSON array, got {type(val).__name__}")
    return val


def encode_document(doc: Document) -> bytes:
    return json.dumps(doc.to_dict(), separators=(",", ":")).encode("utf-8")


def decode_document(raw: bytes | str, *, identifiers: bool = False) -> Document:
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else str(raw)
    try:
        parsed = json.loads(text)
    except ValueError as e:
        raise DecodeError(f"invalid JSON in response: {e}", body=text) from e
    try:
        return Document.from_dict(parsed, identifiers=identifiers)
    except DecodeError as e:
        raise DecodeError(str(e), body=text) from e

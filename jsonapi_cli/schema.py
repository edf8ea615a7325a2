"""Entity schema documents returned by the server's model endpoint.

These are not JSON:API documents; member names follow the server's schema
format (``TableName``, ``Columns``, ``Actions`` ...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .cli_shared import DecodeError


def _obj(val: Any, label: str) -> dict[str, Any]:
    if val is None:
        return {}
    if not isinstance(val, dict):
        raise DecodeError(f"invalid {label}: expected JSON object, got {type(val).__name__}")
    return val


def _list(val: Any, label: str) -> list[Any]:
    if val is None:
        return []
    if not isinstance(val, list):
        raise DecodeError(f"invalid {label}: expected JSON array, got {type(val).__name__}")
    return val


def _s(val: Any) -> str:
    return "" if val is None else str(val)


@dataclass(frozen=True)
class ForeignKeyData:
    data_source: str = ""
    namespace: str = ""
    key_name: str = ""

    @classmethod
    def from_dict(cls, obj: Any) -> ForeignKeyData:
        obj = _obj(obj, "ForeignKeyData")
        return cls(
            data_source=_s(obj.get("DataSource")),
            namespace=_s(obj.get("Namespace")),
            key_name=_s(obj.get("KeyName")),
        )


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    column_name: str = ""
    column_description: str = ""
    column_type: str = ""
    data_type: str = ""
    is_nullable: bool = False
    is_foreign_key: bool = False
    foreign_key_data: ForeignKeyData = field(default_factory=ForeignKeyData)
    relation_type: str = ""
    related_type: str = ""

    @property
    def is_relation(self) -> bool:
        return bool(self.relation_type)

    @property
    def target(self) -> str:
        return self.related_type or self.foreign_key_data.namespace

    @classmethod
    def from_dict(cls, obj: Any) -> ColumnInfo:
        obj = _obj(obj, "column")
        name = _s(obj.get("Name")) or _s(obj.get("ColumnName"))
        return cls(
            name=name,
            column_name=_s(obj.get("ColumnName")),
            column_description=_s(obj.get("ColumnDescription")),
            column_type=_s(obj.get("ColumnType")),
            data_type=_s(obj.get("DataType")),
            is_nullable=bool(obj.get("IsNullable")),
            is_foreign_key=bool(obj.get("IsForeignKey")),
            foreign_key_data=ForeignKeyData.from_dict(obj.get("ForeignKeyData")),
            relation_type=_s(obj.get("jsonApi")),
            related_type=_s(obj.get("type")),
        )


@dataclass(frozen=True)
class ActionOutcome:
    type: str = ""
    method: str = ""
    reference: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, obj: Any) -> ActionOutcome:
        obj = _obj(obj, "action outcome")
        return cls(
            type=_s(obj.get("Type")),
            method=_s(obj.get("Method")),
            reference=_s(obj.get("Reference")),
            attributes=dict(_obj(obj.get("Attributes"), "action outcome attributes")),
        )


@dataclass(frozen=True)
class Action:
    name: str
    label: str = ""
    description: str = ""
    on_type: str = ""
    instance_optional: bool = False
    in_fields: tuple[ColumnInfo, ...] = ()
    out_fields: tuple[ActionOutcome, ...] = ()

    @classmethod
    def from_dict(cls, obj: Any) -> Action:
        obj = _obj(obj, "action")
        return cls(
            name=_s(obj.get("Name")),
            label=_s(obj.get("Label")),
            description=_s(obj.get("Description")),
            on_type=_s(obj.get("OnType")),
            instance_optional=bool(obj.get("InstanceOptional")),
            in_fields=tuple(ColumnInfo.from_dict(c) for c in _list(obj.get("InFields"), "InFields")),
            out_fields=tuple(ActionOutcome.from_dict(o) for o in _list(obj.get("OutFields"), "OutFields")),
        )


@dataclass(frozen=True)
class TableInfo:
    table_name: str
    columns: tuple[ColumnInfo, ...] = ()
    actions: tuple[Action, ...] = ()
    is_state_tracking_enabled: bool = False
    default_permission: int | None = None

    @classmethod
    def from_dict(cls, obj: Any, *, table_name: str = "") -> TableInfo:
        if not isinstance(obj, dict):
            raise DecodeError(f"invalid entity schema: expected JSON object, got {type(obj).__name__}")
        default_permission = obj.get("DefaultPermission")
        return cls(
            table_name=_s(obj.get("TableName")) or table_name,
            columns=tuple(ColumnInfo.from_dict(c) for c in _list(obj.get("Columns"), "Columns")),
            actions=tuple(Action.from_dict(a) for a in _list(obj.get("Actions"), "Actions")),
            is_state_tracking_enabled=bool(obj.get("IsStateTrackingEnabled")),
            default_permission=(
                default_permission
                if isinstance(default_permission, int) and not isinstance(default_permission, bool)
                else None
            ),
        )

    def action(self, name: str) -> Action | None:
        for a in self.actions:
            if a.name == name:
                return a
        return None

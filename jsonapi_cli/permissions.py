from __future__ import annotations

import enum
from typing import Any, Iterable

from .cli_shared import DecodeError, UnknownPermission

MAX_PERMISSION = (1 << 64) - 1


class AuthPermission(enum.IntFlag):
    """Object permission bits, one per (actor class, capability) pair.

    Bit 0 is unused; the table starts at ``1 << 1`` and the order below is the
    wire contract.
    """

    NONE = 0
    GuestPeek = 1 << 1
    GuestRead = 1 << 2
    GuestCreate = 1 << 3
    GuestUpdate = 1 << 4
    GuestDelete = 1 << 5
    GuestExecute = 1 << 6
    GuestRefer = 1 << 7
    UserPeek = 1 << 8
    UserRead = 1 << 9
    UserCreate = 1 << 10
    UserUpdate = 1 << 11
    UserDelete = 1 << 12
    UserExecute = 1 << 13
    UserRefer = 1 << 14
    GroupPeek = 1 << 15
    GroupRead = 1 << 16
    GroupCreate = 1 << 17
    GroupUpdate = 1 << 18
    GroupDelete = 1 << 19
    GroupExecute = 1 << 20
    GroupRefer = 1 << 21


PERMISSION_TABLE: tuple[tuple[str, int], ...] = (
    ("GuestPeek", AuthPermission.GuestPeek),
    ("GuestRead", AuthPermission.GuestRead),
    ("GuestCreate", AuthPermission.GuestCreate),
    ("GuestUpdate", AuthPermission.GuestUpdate),
    ("GuestDelete", AuthPermission.GuestDelete),
    ("GuestExecute", AuthPermission.GuestExecute),
    ("GuestRefer", AuthPermission.GuestRefer),
    ("UserPeek", AuthPermission.UserPeek),
    ("UserRead", AuthPermission.UserRead),
    ("UserCreate", AuthPermission.UserCreate),
    ("UserUpdate", AuthPermission.UserUpdate),
    ("UserDelete", AuthPermission.UserDelete),
    ("UserExecute", AuthPermission.UserExecute),
    ("UserRefer", AuthPermission.UserRefer),
    ("GroupPeek", AuthPermission.GroupPeek),
    ("GroupRead", AuthPermission.GroupRead),
    ("GroupCreate", AuthPermission.GroupCreate),
    ("GroupUpdate", AuthPermission.GroupUpdate),
    ("GroupDelete", AuthPermission.GroupDelete),
    ("GroupExecute", AuthPermission.GroupExecute),
    ("GroupRefer", AuthPermission.GroupRefer),
)

_BY_NAME = {name: int(bit) for name, bit in PERMISSION_TABLE}

UNION = "union"
SUBTRACT = "subtract"


def parse_names(names: Iterable[str]) -> int:
    perm = 0
    for raw in names:
        name = str(raw).strip()
        if not name:
            continue
        bit = _BY_NAME.get(name)
        if bit is None:
            raise UnknownPermission(name)
        perm |= bit
    return perm


def parse_names_csv(raw: str | None) -> int:
    return parse_names(str(raw or "").split(","))


def format_names(perm: int) -> list[str]:
    value = int(perm)
    return [name for name, bit in PERMISSION_TABLE if value & int(bit)]


def combine(existing: int, delta: int, op: str) -> int:
    if op == UNION:
        return int(existing) | int(delta)
    if op == SUBTRACT:
        return int(existing) & ~int(delta) & MAX_PERMISSION
    raise ValueError(f"unsupported permission operation: {op!r}")


def parse_permission_value(raw: Any) -> int:
    """Decode the ``permission`` attribute, which servers send as a string or number."""
    if isinstance(raw, bool) or raw is None:
        raise DecodeError(f"invalid permission value: {raw!r}")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, float):
        if not raw.is_integer():
            raise DecodeError(f"invalid permission value: {raw!r}")
        value = int(raw)
    elif isinstance(raw, str):
        s = raw.strip()
        if not (s.isascii() and s.isdigit()):
            raise DecodeError(f"invalid permission value: {raw!r}")
        value = int(s)
    else:
        raise DecodeError(f"invalid permission value type: {type(raw).__name__}")
    if value < 0 or value > MAX_PERMISSION:
        raise DecodeError(f"permission value out of range: {value}")
    return value


def format_value(perm: int) -> str:
    return str(int(perm))

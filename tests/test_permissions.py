import pytest

from jsonapi_cli.cli_shared import DecodeError, UnknownPermission
from jsonapi_cli.permissions import (
    MAX_PERMISSION,
    PERMISSION_TABLE,
    SUBTRACT,
    UNION,
    AuthPermission,
    combine,
    format_names,
    format_value,
    parse_names,
    parse_names_csv,
    parse_permission_value,
)


def test_bit_layout_starts_at_bit_one():
    assert int(AuthPermission.NONE) == 0
    assert int(AuthPermission.GuestPeek) == 2
    assert int(AuthPermission.GuestRead) == 4
    assert int(AuthPermission.UserRead) == 512
    assert int(AuthPermission.UserUpdate) == 2048
    assert int(AuthPermission.GroupRefer) == 1 << 21
    assert len(PERMISSION_TABLE) == 21


def test_every_name_round_trips_individually():
    for name, bit in PERMISSION_TABLE:
        assert parse_names([name]) == int(bit)
        assert format_names(parse_names([name])) == [name]


def test_name_set_round_trip_uses_table_order():
    names = ["UserUpdate", "GuestRead", "GroupExecute"]
    perm = parse_names(names)
    assert format_names(perm) == ["GuestRead", "UserUpdate", "GroupExecute"]
    assert parse_names(format_names(perm)) == perm


def test_parse_names_trims_and_skips_empty_tokens():
    assert parse_names_csv(" GuestRead , ,UserRead,") == 4 | 512
    assert parse_names_csv("") == 0
    assert parse_names_csv(None) == 0


@pytest.mark.parametrize(
    "raw",
    ["Bogus,GuestRead,UserRead", "GuestRead,Bogus,UserRead", "GuestRead,UserRead,Bogus"],
)
def test_unknown_name_is_reported_at_any_position(raw):
    with pytest.raises(UnknownPermission) as exc:
        parse_names_csv(raw)
    assert exc.value.name == "Bogus"
    assert "Bogus" in str(exc.value)


def test_names_are_case_sensitive():
    with pytest.raises(UnknownPermission):
        parse_names(["guestread"])


def test_format_names_ignores_bits_outside_the_table():
    perm = int(AuthPermission.GuestRead) | 1 | (1 << 40)
    assert format_names(perm) == ["GuestRead"]
    assert format_names(0) == []


def test_union_is_commutative_and_idempotent():
    p = parse_names(["GuestRead", "UserRead"])
    q = parse_names(["UserUpdate", "GroupPeek"])
    assert combine(p, q, UNION) == combine(q, p, UNION)
    assert combine(p, p, UNION) == p
    assert combine(combine(p, q, UNION), q, UNION) == combine(p, q, UNION)


def test_subtract_after_union_removes_exactly_the_delta():
    p = parse_names(["GuestRead", "UserRead"])
    q = parse_names(["UserUpdate", "GroupDelete"])
    assert combine(combine(p, q, UNION), q, SUBTRACT) == p


def test_subtract_of_unset_bits_is_a_noop():
    p = parse_names(["GuestRead"])
    assert combine(p, parse_names(["UserDelete"]), SUBTRACT) == p


def test_subtract_keeps_bits_outside_the_table():
    p = (1 << 63) | int(AuthPermission.GuestRead)
    assert combine(p, int(AuthPermission.GuestRead), SUBTRACT) == 1 << 63


def test_combine_rejects_unknown_operation():
    with pytest.raises(ValueError):
        combine(1, 2, "xor")


def test_parse_permission_value_accepts_strings_and_numbers():
    assert parse_permission_value("2564") == 2564
    assert parse_permission_value(" 4 ") == 4
    assert parse_permission_value(2564) == 2564
    assert parse_permission_value(4.0) == 4
    assert parse_permission_value(str(MAX_PERMISSION)) == MAX_PERMISSION


@pytest.mark.parametrize("raw", [None, True, -1, "-1", "abc", "", "²", "٤", 1.5, MAX_PERMISSION + 1, [4]])
def test_parse_permission_value_rejects_invalid(raw):
    with pytest.raises(DecodeError):
        parse_permission_value(raw)


def test_format_value_is_decimal_string():
    assert format_value(parse_names(["GuestRead", "UserRead", "UserUpdate"])) == "2564"

"""Tests for best-effort source value coercion."""

from datetime import datetime, timedelta

import pytest
from dateutil import tz

from itsm_migration.utils.coercion import (
    coerce_record,
    parse_bool,
    parse_datetime,
    parse_int,
    parse_string,
    parse_text,
)
from itsm_migration.utils.timezone import UTC, resolve_timezone

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("true", True),
        (" Yes ", True),
        ("Y", True),
        ("1", True),
        ("FALSE", False),
        ("no", False),
        ("n", False),
        ("0", False),
        ("", None),
        ("maybe", None),
        (None, None),
    ],
)
def test_parse_bool(raw, expected) -> None:
    assert parse_bool(raw) is expected


def test_parse_string_trims_and_drops_empty() -> None:
    assert parse_string("  IR42 ") == "IR42"
    assert parse_string("   ") is None
    assert parse_string(None) is None


def test_parse_text_keeps_inner_whitespace() -> None:
    assert parse_text("line one\n  line two") == "line one\n  line two"
    assert parse_text("\n ") is None


def test_parse_int() -> None:
    assert parse_int(" 3 ") == 3
    assert parse_int("3.5") is None
    assert parse_int("") is None


def test_parse_datetime_naive_uses_default_timezone() -> None:
    berlin = tz.gettz("Europe/Berlin")
    parsed = parse_datetime("2021-03-04 10:15:00", berlin)

    assert parsed == datetime(2021, 3, 4, 10, 15, tzinfo=berlin)
    assert parsed.utcoffset() == timedelta(hours=1)


def test_parse_datetime_keeps_explicit_offset() -> None:
    parsed = parse_datetime("2021-03-04T10:15:00+02:00")

    assert parsed is not None
    assert parsed.utcoffset() == timedelta(hours=2)


@pytest.mark.parametrize("raw", ["", "   ", "not a date", "2021-02-30", None])
def test_parse_datetime_invalid_is_none(raw) -> None:
    assert parse_datetime(raw) is None


def test_coerce_record_omits_failed_optional_fields() -> None:
    schema = {
        "Id": "string",
        "Title": "string",
        "Escalated": "bool",
        "CreatedDate": "datetime",
        "Priority": "int",
    }
    record = {
        "Id": "IR1",
        "Title": "Printer on fire",
        "Escalated": "sometimes",
        "CreatedDate": "yesterday-ish",
        "Priority": "2",
        "Unrelated": "ignored",
    }

    coerced = coerce_record(record, schema, required=("Id", "Title"))

    assert coerced == {"Id": "IR1", "Title": "Printer on fire", "Priority": 2}


def test_coerce_record_required_fields_always_present() -> None:
    coerced = coerce_record({"Id": "IR2"}, {"Id": "string", "Title": "string"}, required=("Id", "Title"))

    assert coerced == {"Id": "IR2", "Title": ""}


def test_coerce_record_applies_default_timezone() -> None:
    coerced = coerce_record(
        {"CreatedDate": "2020-01-01 00:00"},
        {"CreatedDate": "datetime"},
        default_tz=UTC,
    )

    assert coerced["CreatedDate"] == datetime(2020, 1, 1, tzinfo=UTC)


def test_resolve_timezone_falls_back_to_utc() -> None:
    assert resolve_timezone(None) is UTC
    assert resolve_timezone("Not/AZone") is UTC
    assert resolve_timezone("Europe/Berlin") is not UTC

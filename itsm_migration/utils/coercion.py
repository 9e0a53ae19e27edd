"""Best-effort type coercion of raw source values.

Legacy exports routinely contain malformed optional values. Each parse
function returns ``None`` instead of raising, and ``coerce_record`` leaves
such fields out of the result so the target keeps them unset.
"""

from __future__ import annotations

from collections.abc import Callable, Collection
from datetime import datetime, tzinfo

from dateutil import parser as date_parser

from itsm_migration.type_definitions import (
    CoercedRecord,
    CoercedValue,
    FieldKind,
    FieldSchema,
    SourceRecord,
)
from itsm_migration.utils.timezone import UTC

TRUE_VALUES = frozenset({"true", "yes", "y", "1"})
FALSE_VALUES = frozenset({"false", "no", "n", "0"})


def parse_string(raw: str | None) -> str | None:
    """Return the trimmed string, or None when empty."""
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def parse_text(raw: str | None) -> str | None:
    """Like parse_string but keeps inner and trailing whitespace of free text."""
    if raw is None or not raw.strip():
        return None
    return raw


def parse_bool(raw: str | None) -> bool | None:
    """Parse common boolean spellings; anything else is None."""
    if raw is None:
        return None
    value = raw.strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    return None


def parse_int(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def parse_datetime(raw: str | None, default_tz: tzinfo = UTC) -> datetime | None:
    """Parse a date/time string into an aware datetime.

    Naive values are interpreted in ``default_tz``. Empty, unparsable and
    out-of-range values give None.
    """
    if raw is None or not raw.strip():
        return None
    try:
        parsed = date_parser.parse(raw.strip())
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=default_tz)
    return parsed


def _parser_for(kind: FieldKind, default_tz: tzinfo) -> Callable[[str | None], CoercedValue | None]:
    match kind:
        case "bool":
            return parse_bool
        case "datetime":
            return lambda raw: parse_datetime(raw, default_tz)
        case "int":
            return parse_int
        case "text":
            return parse_text
        case "string" | "enum":
            return parse_string
        case _:
            msg = f"Unknown field kind: {kind}"
            raise ValueError(msg)


def coerce_record(
    record: SourceRecord,
    schema: FieldSchema,
    *,
    required: Collection[str] = (),
    default_tz: tzinfo = UTC,
) -> CoercedRecord:
    """Convert a raw source record into typed values following a field schema.

    Required fields are always present: their parsed value when it parses,
    otherwise the raw (trimmed) string. Optional fields are present only when
    their value parsed. Columns not named in the schema are ignored.
    """
    coerced: CoercedRecord = {}
    for field_name, kind in schema.items():
        raw = record.get(field_name)
        value = _parser_for(kind, default_tz)(raw)
        if value is not None:
            coerced[field_name] = value
        elif field_name in required:
            coerced[field_name] = (raw or "").strip()
    return coerced

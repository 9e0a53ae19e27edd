"""Tests for the enumeration pre-flight check."""

import pytest

from itsm_migration.migrations.enum_validation import EnumCatalog, EnumValidator, find_violations
from itsm_migration.models import EnumValidationError, EnumViolation
from itsm_migration.utils.record_reader import RecordSource

pytestmark = pytest.mark.unit


def test_catalog_first_display_name_wins(fake_client) -> None:
    catalog = EnumCatalog.from_client(fake_client)

    assert catalog.resolve("Active") == "enum-active"
    assert catalog.resolve("active") is None
    assert "Tier 1" in catalog


def test_catalog_ignores_incomplete_entries() -> None:
    catalog = EnumCatalog([{"id": "x"}, {"displayName": "No id"}, {"id": "y", "displayName": "Ok"}])

    assert len(catalog) == 1


def test_find_violations_reports_distinct_values_once() -> None:
    catalog = EnumCatalog([{"id": "a", "displayName": "Active"}])
    records = [
        {"Status": "Active", "Urgency": "Critical"},
        {"Status": "Pending", "Urgency": "Critical"},
        {"Status": "", "Urgency": "  "},
    ]

    violations = find_violations(records, ("Status", "Urgency"), catalog, "incidents.csv")

    assert violations == [
        EnumViolation("incidents.csv", "Urgency", "Critical"),
        EnumViolation("incidents.csv", "Status", "Pending"),
    ]


def test_validator_collects_violations_across_sources(fake_client) -> None:
    sources = {
        "incident": RecordSource([{"Status": "Unknown", "Source": "Fax"}], name="incidents.csv"),
        "manual": RecordSource([{"Stage": "Approve"}], name="manual.csv"),
    }
    validator = EnumValidator(fake_client, sources)

    with pytest.raises(EnumValidationError) as exc_info:
        validator.validate()

    assert {str(v) for v in exc_info.value.violations} == {
        "incidents.csv: Status='Unknown'",
        "incidents.csv: Source='Fax'",
        "manual.csv: Stage='Approve'",
    }
    assert "3 enumeration value(s) missing" in exc_info.value.message


def test_validator_passes_and_writes_nothing(fake_client) -> None:
    sources = {"incident": RecordSource([{"Status": "Active", "Impact": "High", "Urgency": ""}])}

    result = EnumValidator(fake_client, sources).run()

    assert result.success is True
    assert fake_client.objects == {}


def test_validator_run_reports_failure(fake_client) -> None:
    sources = {"service_request": RecordSource([{"Area": "Facilities"}], name="sr.csv")}

    result = EnumValidator(fake_client, sources).run()

    assert result.success is False
    assert result.failed_count == 1
    assert result.errors == ["sr.csv: Area='Facilities'"]


def test_validator_rejects_unknown_source_kind(fake_client) -> None:
    with pytest.raises(ValueError, match="change_request"):
        EnumValidator(fake_client, {"change_request": RecordSource([])})

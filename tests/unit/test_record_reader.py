"""Tests for delimited source file reading."""

from pathlib import Path

import pytest

from itsm_migration.utils.record_reader import RecordSource, read_records

pytestmark = pytest.mark.unit


def test_read_records_trims_header_and_pads_short_rows(tmp_path: Path) -> None:
    path = tmp_path / "incidents.csv"
    path.write_text(" Id ;Title; Status\nIR1;Broken mouse;Active\nIR2;No title row\n", encoding="utf-8")

    records = read_records(path, delimiter=";")

    assert records == [
        {"Id": "IR1", "Title": "Broken mouse", "Status": "Active"},
        {"Id": "IR2", "Title": "No title row", "Status": ""},
    ]


def test_read_records_strips_utf8_bom(tmp_path: Path) -> None:
    path = tmp_path / "bom.csv"
    path.write_bytes("\ufeffId,Title\nIR1,Mouse\n".encode())

    assert read_records(path) == [{"Id": "IR1", "Title": "Mouse"}]


def test_read_records_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")

    assert read_records(path) == []


def test_read_records_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        read_records(tmp_path / "missing.csv")


def test_where_matches_trimmed_values_in_file_order(write_csv) -> None:
    path = write_csv(
        "manual.csv",
        ["Id", "Parent"],
        [["MA1", "SR1"], ["MA2", " PA1 "], ["MA3", "SR1"], ["MA4", ""]],
    )
    source = RecordSource.from_file(path)

    assert [r["Id"] for r in source.where("Parent", "SR1")] == ["MA1", "MA3"]
    assert [r["Id"] for r in source.where("Parent", "PA1")] == ["MA2"]
    assert source.where("Parent", "SR404") == []
    assert source.name == "manual.csv"
    assert len(source) == 4


def test_empty_source() -> None:
    source = RecordSource.empty("review")

    assert len(source) == 0
    assert list(source) == []
    assert source.where("Parent", "SR1") == []

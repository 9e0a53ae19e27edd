"""Delimited source file reading.

Every legacy export is a header-row CSV; each row becomes a plain
``dict[str, str]`` keyed by the (whitespace-trimmed) header names.
"""

from __future__ import annotations

import csv
from collections import defaultdict
from collections.abc import Iterator
from pathlib import Path

from itsm_migration.display import get_logger
from itsm_migration.type_definitions import SourceRecord

logger = get_logger(__name__)


def read_records(
    path: Path | str,
    *,
    delimiter: str = ",",
    encoding: str = "utf-8-sig",
) -> list[SourceRecord]:
    """Read a delimited file into an ordered list of records.

    Short rows are padded with empty strings, surplus cells are dropped.

    Raises:
        FileNotFoundError: If the file does not exist

    """
    file_path = Path(path)
    if not file_path.is_file():
        msg = f"Source file not found: {file_path}"
        raise FileNotFoundError(msg)

    records: list[SourceRecord] = []
    with file_path.open("r", encoding=encoding, newline="") as f:
        reader = csv.DictReader(f, delimiter=delimiter)
        if reader.fieldnames is None:
            logger.warning("Source file %s is empty", file_path)
            return records

        header = [name.strip() for name in reader.fieldnames]
        reader.fieldnames = header

        for row in reader:
            records.append({name: (row.get(name) or "") for name in header})

    logger.info("Read %d record(s) from %s", len(records), file_path)
    return records


class RecordSource:
    """An in-memory source file with lazily built column indexes."""

    def __init__(self, records: list[SourceRecord], name: str = "") -> None:
        self.records = records
        self.name = name
        self._indexes: dict[str, dict[str, list[SourceRecord]]] = {}

    @classmethod
    def from_file(
        cls,
        path: Path | str,
        *,
        delimiter: str = ",",
        encoding: str = "utf-8-sig",
    ) -> RecordSource:
        return cls(read_records(path, delimiter=delimiter, encoding=encoding), name=Path(path).name)

    @classmethod
    def empty(cls, name: str = "") -> RecordSource:
        return cls([], name=name)

    def where(self, column: str, value: str) -> list[SourceRecord]:
        """Return all records whose column equals value (exact, trimmed), in file order."""
        index = self._indexes.get(column)
        if index is None:
            index = defaultdict(list)
            for record in self.records:
                index[record.get(column, "").strip()].append(record)
            self._indexes[column] = index
        return list(index.get(value.strip(), ()))

    def __iter__(self) -> Iterator[SourceRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

"""Diff Table: the persisted legacy-id to target-id mapping.

The creation phases append one row per created work item; every later phase
loads the file and translates legacy identifiers through it. Rows are written
to disk as they are appended, so an interrupted run leaves a valid table.
"""

from __future__ import annotations

import csv
from collections.abc import Iterator
from pathlib import Path

from itsm_migration.display import get_logger
from itsm_migration.models import DiffEntry, DiffTableError

logger = get_logger(__name__)


class DiffTable:
    """Append-only mapping from previous identifier to (current id, current ref)."""

    HEADER = ("PreviousId", "CurrentId", "CurrentGuid")

    def __init__(
        self,
        path: Path | str,
        *,
        delimiter: str = ",",
        encoding: str = "utf-8",
    ) -> None:
        self.path = Path(path)
        self.delimiter = delimiter
        self.encoding = encoding
        self._entries: dict[str, DiffEntry] = {}

    @classmethod
    def load(cls, path: Path | str, **kwargs: str) -> DiffTable:
        """Load an existing Diff Table for a lookup phase.

        Raises:
            FileNotFoundError: If the file does not exist
            DiffTableError: If the file is malformed

        """
        table = cls(path, **kwargs)
        if not table.path.is_file():
            msg = f"Diff Table not found: {table.path}"
            raise FileNotFoundError(msg)
        table._read()
        logger.notice("Loaded Diff Table %s with %d entries", table.path, len(table))
        return table

    @classmethod
    def open(cls, path: Path | str, **kwargs: str) -> DiffTable:
        """Open a Diff Table for appending, creating it with a header if needed.

        Existing rows are loaded so that a rerun can skip already created records.

        Raises:
            OSError: If the file cannot be created or written

        """
        table = cls(path, **kwargs)
        table.path.parent.mkdir(parents=True, exist_ok=True)
        if table.path.is_file() and table.path.stat().st_size > 0:
            table._read()
            logger.notice(
                "Resuming Diff Table %s with %d existing entries", table.path, len(table),
            )
        else:
            with table.path.open("w", encoding=table.encoding, newline="") as f:
                csv.writer(f, delimiter=table.delimiter).writerow(cls.HEADER)
        return table

    def _read(self) -> None:
        with self.path.open("r", encoding=self.encoding, newline="") as f:
            reader = csv.DictReader(f, delimiter=self.delimiter)
            missing = set(self.HEADER) - set(reader.fieldnames or ())
            if missing:
                msg = f"Diff Table {self.path} is missing columns: {', '.join(sorted(missing))}"
                raise DiffTableError(msg)

            for line_no, row in enumerate(reader, start=2):
                previous_id = (row.get("PreviousId") or "").strip()
                if not previous_id:
                    logger.warning("Diff Table %s line %d has no PreviousId; ignored", self.path, line_no)
                    continue
                if previous_id in self._entries:
                    msg = f"Duplicate PreviousId {previous_id!r} in {self.path} (line {line_no})"
                    raise DiffTableError(msg)
                self._entries[previous_id] = DiffEntry(
                    previous_id=previous_id,
                    current_id=(row.get("CurrentId") or "").strip(),
                    current_ref=(row.get("CurrentGuid") or "").strip(),
                )

    def append(self, entry: DiffEntry) -> None:
        """Record a created entity and persist the row immediately.

        Raises:
            DiffTableError: If the previous identifier is already mapped

        """
        if entry.previous_id in self._entries:
            msg = f"PreviousId {entry.previous_id!r} is already mapped to {self._entries[entry.previous_id].current_id}"
            raise DiffTableError(msg)

        with self.path.open("a", encoding=self.encoding, newline="") as f:
            csv.writer(f, delimiter=self.delimiter).writerow(
                (entry.previous_id, entry.current_id, entry.current_ref),
            )
        self._entries[entry.previous_id] = entry
        logger.debug("Mapped %s -> %s (%s)", entry.previous_id, entry.current_id, entry.current_ref)

    def lookup(self, previous_id: str) -> DiffEntry | None:
        """Return the entry for an exact previous identifier, or None."""
        return self._entries.get(previous_id.strip())

    def __contains__(self, previous_id: object) -> bool:
        return isinstance(previous_id, str) and previous_id.strip() in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[DiffEntry]:
        return iter(self._entries.values())

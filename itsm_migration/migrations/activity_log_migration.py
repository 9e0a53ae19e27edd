"""Activity log migration: user and analyst comments on migrated work items.

Comment objects only exist inside their work item's projection, so each row
is written as a projection commit seeded with the already migrated parent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from pydantic import ValidationError

from itsm_migration.display import ProgressTracker
from itsm_migration.mappings import target_model
from itsm_migration.migrations.base_migration import CREATION_ERRORS, BaseMigration
from itsm_migration.models import (
    ActivityLogRecord,
    AnalystCommentChild,
    ComponentResult,
    Projection,
    UserCommentChild,
)
from itsm_migration.type_definitions import SourceRecord, WorkItemType
from itsm_migration.utils.coercion import parse_bool, parse_datetime

if TYPE_CHECKING:
    from itsm_migration.clients.itsm_client import ItsmClient
    from itsm_migration.mappings.diff_table import DiffTable
    from itsm_migration.utils.record_reader import RecordSource


class ActivityLogMigration(BaseMigration):
    """Attach comment log entries to the work items they belong to."""

    COMPONENT_NAME = "activity_logs"

    # column holding the parent's legacy id -> parent work-item type
    RELATED_COLUMNS: ClassVar[dict[str, WorkItemType]] = {
        "RelatedIncident": "incident",
        "RelatedServiceRequest": "service_request",
    }

    def __init__(
        self,
        client: ItsmClient,
        source: RecordSource,
        diff_table: DiffTable,
        work_item_type: WorkItemType | None = None,
    ) -> None:
        """Initialize the phase.

        Args:
            client: Target client
            source: Activity log records
            diff_table: Diff Table of the migrated work items
            work_item_type: Parent type for every row; inferred from the
                related-id column when omitted

        """
        super().__init__(client)
        self.source = source
        self.diff_table = diff_table
        self.work_item_type = work_item_type

    def parse(self, record: SourceRecord) -> tuple[ActivityLogRecord, WorkItemType]:
        """Turn a raw row into a typed log record and its parent type.

        Raises:
            ValueError: If the row names no parent or an unknown log type

        """
        for column, item_type in self.RELATED_COLUMNS.items():
            related_id = (record.get(column) or "").strip()
            if related_id:
                break
        else:
            msg = "row has no RelatedIncident or RelatedServiceRequest value"
            raise ValueError(msg)

        log_type = (record.get("LogType") or "").strip()
        try:
            parsed = ActivityLogRecord(
                related_id=related_id,
                log_type=log_type,
                entered_by=(record.get("EnteredBy") or "").strip(),
                entered_date=parse_datetime(record.get("EnteredDate"), self.source_timezone),
                comment=record.get("Comment") or "",
                is_private=bool(parse_bool(record.get("IsPrivate"))),
            )
        except ValidationError as e:
            msg = f"unknown log type {log_type!r}"
            raise ValueError(msg) from e
        return parsed, self.work_item_type or item_type

    @staticmethod
    def build_child(log: ActivityLogRecord) -> UserCommentChild | AnalystCommentChild:
        match log.log_type:
            case "AnalystComment":
                return AnalystCommentChild(
                    comment=log.comment,
                    entered_by=log.entered_by,
                    entered_date=log.entered_date,
                    is_private=log.is_private,
                )
            case _:
                return UserCommentChild(
                    comment=log.comment,
                    entered_by=log.entered_by,
                    entered_date=log.entered_date,
                )

    def _skip(self, result: ComponentResult, message: str) -> None:
        self.logger.warning(message)
        result.add_warning(message)
        result.skipped_count += 1

    def run(self) -> ComponentResult:
        """Commit one projection per activity log row."""
        self.logger.info("Starting activity log migration (%d rows)", len(self.source))
        result = ComponentResult(total_count=len(self.source))

        with ProgressTracker("Migrating activity logs", len(self.source)) as tracker:
            for row_number, record in enumerate(tracker.track(self.source), start=1):
                try:
                    log, item_type = self.parse(record)
                except ValueError as e:
                    self._skip(result, f"Activity log row {row_number}: {e}; skipped")
                    continue

                parent = self.diff_table.lookup(log.related_id)
                if parent is None:
                    self._skip(result, f"{log.related_id}: no Diff Table entry for activity log; skipped")
                    continue

                projection = Projection(
                    seed=parent.current_ref,
                    seed_class=target_model.WORK_ITEM_CLASSES[item_type],
                    children=[self.build_child(log)],
                )
                try:
                    self.client.commit_projection(projection)
                except CREATION_ERRORS as e:
                    if self.record_failure(result, log.related_id, e):
                        break
                    continue

                result.success_count += 1
                tracker.add_log_item(f"{log.log_type} -> {parent.current_id}")

        return self.finish(result, "Activity log migration")

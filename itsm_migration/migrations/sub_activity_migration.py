"""Sub-activity migration: recreate the activity tree under Service Requests.

Supported shape, two levels deep at most::

    Service Request
    ├── Manual activity
    ├── Review activity
    └── Parallel activity
        └── Manual activity

A Parallel activity nested in another Parallel activity, or a Review
activity under a Parallel activity, is not created; both are reported as
unsupported.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from itsm_migration.display import ProgressTracker
from itsm_migration.mappings import target_model
from itsm_migration.migrations.base_migration import CREATION_ERRORS, BaseMigration
from itsm_migration.migrations.enum_validation import EnumCatalog, EnumValidator
from itsm_migration.models import ComponentResult, DiffEntry, EnumValidationError
from itsm_migration.type_definitions import ActivityKind, FieldSchema, SourceRecord
from itsm_migration.utils.coercion import coerce_record
from itsm_migration.utils.record_reader import RecordSource
from itsm_migration.utils.user_resolver import UserResolver

if TYPE_CHECKING:
    from itsm_migration.clients.itsm_client import ItsmClient
    from itsm_migration.mappings.diff_table import DiffTable

_COMMON_ACTIVITY_FIELDS: FieldSchema = {
    "Id": "string",
    "Title": "string",
    "Description": "text",
    "Status": "enum",
    "Priority": "enum",
    "Stage": "enum",
    "SequenceId": "int",
    "Skip": "bool",
    "CreatedDate": "datetime",
    "ScheduledStartDate": "datetime",
    "ScheduledEndDate": "datetime",
    "ActualStartDate": "datetime",
    "ActualEndDate": "datetime",
}

MANUAL_ACTIVITY_SCHEMA: FieldSchema = {
    **_COMMON_ACTIVITY_FIELDS,
    "Area": "enum",
    "Notes": "text",
    "Documentation": "text",
}

REVIEW_ACTIVITY_SCHEMA: FieldSchema = {
    **_COMMON_ACTIVITY_FIELDS,
    "ApprovalCondition": "enum",
    "ApprovalPercentage": "int",
    "LineManagerShouldReview": "bool",
    "OwnersOfConfigItemShouldReview": "bool",
    "Comments": "text",
}

PARALLEL_ACTIVITY_SCHEMA: FieldSchema = dict(_COMMON_ACTIVITY_FIELDS)

ACTIVITY_SCHEMAS: dict[ActivityKind, FieldSchema] = {
    "manual": MANUAL_ACTIVITY_SCHEMA,
    "review": REVIEW_ACTIVITY_SCHEMA,
    "parallel": PARALLEL_ACTIVITY_SCHEMA,
}


class SubActivityMigration(BaseMigration):
    """Create Manual, Review and Parallel activities under migrated parents."""

    COMPONENT_NAME = "sub_activities"
    PARENT_COLUMN: ClassVar[str] = "Parent"
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = ("Id", "Title")

    def __init__(
        self,
        client: ItsmClient,
        diff_table: DiffTable,
        *,
        manual: RecordSource | None = None,
        review: RecordSource | None = None,
        parallel: RecordSource | None = None,
        assigned_to_surrogate: str,
        activity_diff_table: DiffTable | None = None,
        catalog: EnumCatalog | None = None,
        keep_ids: bool | None = None,
    ) -> None:
        """Initialize the phase.

        Args:
            client: Target client
            diff_table: Work-item Diff Table (parents)
            manual: Manual activity records
            review: Review activity records
            parallel: Parallel activity records
            assigned_to_surrogate: Display name used when a Manual activity's
                AssignedTo user cannot be found
            activity_diff_table: Optional table receiving old->new activity ids
            catalog: Pre-loaded enumeration catalog
            keep_ids: Reuse legacy activity identifiers in the target

        """
        super().__init__(client, keep_ids=keep_ids)
        self.diff_table = diff_table
        self.sources: dict[ActivityKind, RecordSource] = {
            "manual": manual or RecordSource.empty("manual"),
            "review": review or RecordSource.empty("review"),
            "parallel": parallel or RecordSource.empty("parallel"),
        }
        self.activity_diff_table = activity_diff_table
        self.assigned_to = UserResolver(client, assigned_to_surrogate, "AssignedTo")
        self._catalog = catalog

    @property
    def catalog(self) -> EnumCatalog:
        if self._catalog is None:
            self._catalog = EnumCatalog.from_client(self.client)
        return self._catalog

    def children_of(self, kind: ActivityKind, parent_id: str) -> list[SourceRecord]:
        return self.sources[kind].where(self.PARENT_COLUMN, parent_id)

    def create_activity(
        self,
        kind: ActivityKind,
        record: SourceRecord,
        parent_ref: str,
        result: ComponentResult,
    ) -> DiffEntry:
        """Create one activity and link it to its parent.

        Raises:
            ClientError: If the target rejects the activity or a relationship

        """
        schema = ACTIVITY_SCHEMAS[kind]
        coerced = coerce_record(
            record,
            schema,
            required=self.REQUIRED_FIELDS,
            default_tz=self.source_timezone,
        )
        previous_id = str(coerced["Id"])
        properties = self.build_properties(coerced, schema, self.catalog, previous_id, result)

        created = self.client.create_object(target_model.ACTIVITY_CLASSES[kind], properties)
        entry = DiffEntry(
            previous_id=previous_id,
            current_id=str(created.get("displayId") or properties.get("Id") or created["id"]),
            current_ref=str(created["id"]),
        )
        self.client.create_relationship(target_model.CONTAINS_ACTIVITY, parent_ref, entry.current_ref)
        if self.activity_diff_table is not None:
            self.activity_diff_table.append(entry)

        if kind == "manual":
            resolution = self.assigned_to.resolve(record.get("AssignedTo", ""), previous_id)
            if resolution.ref is not None:
                self.client.create_relationship(target_model.ASSIGNED_TO, entry.current_ref, resolution.ref)

        self.logger.info("Created %s activity %s from %s", kind, entry.current_id, previous_id)
        return entry

    def _warn(self, result: ComponentResult, message: str) -> None:
        self.logger.warning(message)
        result.add_warning(message)

    def import_children(self, parent: DiffEntry, result: ComponentResult) -> int:
        """Create the activity tree of one migrated parent; return the number created.

        Raises:
            ClientError: If the target rejects an activity

        """
        created = 0

        for kind in ("manual", "review"):
            for record in self.children_of(kind, parent.previous_id):
                self.create_activity(kind, record, parent.current_ref, result)
                created += 1

        for record in self.children_of("parallel", parent.previous_id):
            parallel = self.create_activity("parallel", record, parent.current_ref, result)
            created += 1

            for child in self.children_of("manual", parallel.previous_id):
                self.create_activity("manual", child, parallel.current_ref, result)
                created += 1

            for child in self.children_of("review", parallel.previous_id):
                self._warn(
                    result,
                    f"{child.get('Id', '?')}: Review activity under Parallel activity "
                    f"{parallel.previous_id} is not supported; skipped",
                )
            for child in self.children_of("parallel", parallel.previous_id):
                self._warn(
                    result,
                    f"{child.get('Id', '?')}: Parallel activity nested in Parallel activity "
                    f"{parallel.previous_id} is not supported; skipped",
                )

        return created

    def run(self) -> ComponentResult:
        """Create activities for every Diff Table parent that has any."""
        self.logger.info("Starting sub-activity migration for %d parent(s)", len(self.diff_table))
        result = ComponentResult(total_count=sum(len(s) for s in self.sources.values()))

        loaded = {kind: source for kind, source in self.sources.items() if len(source)}
        try:
            EnumValidator(self.client, loaded, catalog=self.catalog).validate()
        except EnumValidationError as e:
            result.failed_count = len(e.violations)
            result.errors = [str(v) for v in e.violations]
            result.error = e.message
            result.message = "Sub-activity migration aborted: missing enumeration values"
            self.logger.error(result.message)
            return result

        parents = [entry for entry in self.diff_table if self._is_parent(entry)]

        with ProgressTracker("Migrating activities", len(parents)) as tracker:
            for parent in tracker.track(parents):
                try:
                    created = self.import_children(parent, result)
                except CREATION_ERRORS as e:
                    if self.record_failure(result, parent.previous_id, e):
                        break
                    continue
                if created:
                    result.success_count += created
                    tracker.add_log_item(f"{parent.previous_id}: {created} activities")

        self._report_orphans(result)
        result.warnings.extend(self.assigned_to.warnings)
        return self.finish(result, "Sub-activity migration")

    def _report_orphans(self, result: ComponentResult) -> None:
        """Warn about activities that no migrated parent picked up.

        Review and Parallel rows under a created Parallel activity are
        reported while importing, so only the remaining rows are checked here.
        """
        parents = {entry.previous_id for entry in self.diff_table if self._is_parent(entry)}
        created_parallels = {
            (r.get("Id") or "").strip()
            for r in self.sources["parallel"]
            if (r.get(self.PARENT_COLUMN) or "").strip() in parents
        }
        all_parallels = {(r.get("Id") or "").strip() for r in self.sources["parallel"]}

        for kind, source in self.sources.items():
            for record in source:
                parent_id = (record.get(self.PARENT_COLUMN) or "").strip()
                if parent_id in parents or parent_id in created_parallels:
                    continue
                if parent_id in all_parallels:
                    reason = f"parent Parallel activity {parent_id} was not created"
                elif parent_id in self.diff_table:
                    reason = f"parent {parent_id} is an Incident, which takes no activities"
                else:
                    reason = f"parent {parent_id or '<empty>'} has no Diff Table entry"
                self._warn(result, f"{record.get('Id', '?')}: {reason} ({kind} activity); skipped")
                result.skipped_count += 1

    @staticmethod
    def _is_parent(entry: DiffEntry) -> bool:
        return target_model.work_item_type_for_id(entry.previous_id) != "incident"

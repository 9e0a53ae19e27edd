"""Work-item creation shared by the Incident and Service Request phases.

Per source record:
- coerce the raw values, dropping optional fields that do not parse;
- create the work item and record it in the Diff Table right away;
- attach the AffectedUser and AssignedTo relationships when the users resolve.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from itsm_migration.display import ProgressTracker
from itsm_migration.mappings import target_model
from itsm_migration.migrations.base_migration import CREATION_ERRORS, BaseMigration
from itsm_migration.migrations.enum_validation import EnumCatalog, EnumValidator
from itsm_migration.models import ComponentResult, DiffEntry, EnumValidationError
from itsm_migration.type_definitions import FieldSchema, SourceRecord
from itsm_migration.utils.coercion import coerce_record
from itsm_migration.utils.user_resolver import UserResolver

if TYPE_CHECKING:
    from itsm_migration.clients.itsm_client import ItsmClient
    from itsm_migration.mappings.diff_table import DiffTable
    from itsm_migration.utils.record_reader import RecordSource


class WorkItemMigration(BaseMigration):
    """Creates work items of one type from a source export."""

    WORK_ITEM_TYPE: ClassVar[str] = ""
    FIELD_SCHEMA: ClassVar[FieldSchema] = {}
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = ("Id", "Title")

    # source column -> relationship class
    USER_RELATIONSHIPS: ClassVar[dict[str, str]] = {
        "AffectedUser": target_model.AFFECTED_USER,
        "AssignedTo": target_model.ASSIGNED_TO,
    }

    def __init__(
        self,
        client: ItsmClient,
        source: RecordSource,
        diff_table: DiffTable,
        *,
        affected_user_surrogate: str,
        assigned_to_surrogate: str,
        catalog: EnumCatalog | None = None,
        keep_ids: bool | None = None,
    ) -> None:
        """Initialize the work-item phase.

        Args:
            client: Target client
            source: Work-item records
            diff_table: Diff Table opened for appending
            affected_user_surrogate: Display name used when AffectedUser cannot be found
            assigned_to_surrogate: Display name used when AssignedTo cannot be found
            catalog: Pre-loaded enumeration catalog
            keep_ids: Reuse legacy identifiers in the target

        """
        super().__init__(client, keep_ids=keep_ids)
        self.source = source
        self.diff_table = diff_table
        self.class_name = target_model.WORK_ITEM_CLASSES[self.WORK_ITEM_TYPE]
        self._catalog = catalog
        self.resolvers: dict[str, UserResolver] = {
            "AffectedUser": UserResolver(client, affected_user_surrogate, "AffectedUser"),
            "AssignedTo": UserResolver(client, assigned_to_surrogate, "AssignedTo"),
        }

    @property
    def catalog(self) -> EnumCatalog:
        if self._catalog is None:
            self._catalog = EnumCatalog.from_client(self.client)
        return self._catalog

    def coerce(self, record: SourceRecord) -> dict[str, Any]:
        return coerce_record(
            record,
            self.FIELD_SCHEMA,
            required=self.REQUIRED_FIELDS,
            default_tz=self.source_timezone,
        )

    def create_work_item(self, record: SourceRecord, result: ComponentResult) -> DiffEntry:
        """Create one work item with its user relationships.

        Raises:
            ClientError: If the target rejects the object or a relationship
            DiffTableError: If the identifier is already mapped

        """
        coerced = self.coerce(record)
        previous_id = str(coerced["Id"])
        properties = self.build_properties(coerced, self.FIELD_SCHEMA, self.catalog, previous_id, result)

        created = self.client.create_object(self.class_name, properties)
        entry = DiffEntry(
            previous_id=previous_id,
            current_id=str(created.get("displayId") or properties.get("Id") or created["id"]),
            current_ref=str(created["id"]),
        )
        self.diff_table.append(entry)
        self.logger.info("Created %s %s from %s", self.WORK_ITEM_TYPE, entry.current_id, previous_id)

        for column, relationship in self.USER_RELATIONSHIPS.items():
            resolution = self.resolvers[column].resolve(record.get(column, ""), previous_id)
            if resolution.ref is None:
                continue
            self.client.create_relationship(relationship, entry.current_ref, resolution.ref)

        return entry

    def enum_sources(self) -> dict[str, RecordSource]:
        """Sources whose enumeration values must exist before anything is created."""
        return {self.WORK_ITEM_TYPE: self.source}

    def after_create(self, record: SourceRecord, entry: DiffEntry, result: ComponentResult) -> None:
        """Hook for work-item types that create dependent objects."""

    def run(self) -> ComponentResult:
        """Validate enumerations, then create every work item not yet mapped."""
        label = f"{self.WORK_ITEM_TYPE} migration"
        self.logger.info("Starting %s (%d records)", label, len(self.source))
        result = ComponentResult(total_count=len(self.source))

        validator = EnumValidator(self.client, self.enum_sources(), catalog=self.catalog)
        try:
            validator.validate()
        except EnumValidationError as e:
            result.failed_count = len(e.violations)
            result.errors = [str(v) for v in e.violations]
            result.error = e.message
            result.message = f"{label} aborted: missing enumeration values"
            self.logger.error(result.message)
            return result

        with ProgressTracker(f"Migrating {self.WORK_ITEM_TYPE}s", len(self.source)) as tracker:
            for record in tracker.track(self.source):
                previous_id = (record.get("Id") or "").strip()
                if not previous_id:
                    message = "Skipping record without Id"
                    self.logger.warning(message)
                    result.add_warning(message)
                    result.skipped_count += 1
                    continue
                if previous_id in self.diff_table:
                    message = f"{previous_id} is already in the Diff Table; skipped"
                    self.logger.warning(message)
                    result.add_warning(message)
                    result.skipped_count += 1
                    continue

                try:
                    entry = self.create_work_item(record, result)
                    result.success_count += 1
                    tracker.add_log_item(f"{previous_id} -> {entry.current_id}")
                    self.after_create(record, entry, result)
                except CREATION_ERRORS as e:
                    if self.record_failure(result, previous_id, e):
                        break

        for resolver in self.resolvers.values():
            result.warnings.extend(resolver.warnings)
        return self.finish(result, label)

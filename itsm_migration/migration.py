"""Migration orchestrator.

Runs the phases in order: enumeration check, work-item creation (Incidents,
then Service Requests), activity logs, sub-activities and attachments. The
phases share nothing but the Diff Table.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from rich.console import Console

from itsm_migration import config
from itsm_migration.clients.exceptions import ClientError
from itsm_migration.clients.itsm_client import ItsmClient
from itsm_migration.mappings.diff_table import DiffTable
from itsm_migration.migrations.activity_log_migration import ActivityLogMigration
from itsm_migration.migrations.attachments_migration import AttachmentsMigration
from itsm_migration.migrations.base_migration import BaseMigration
from itsm_migration.migrations.enum_validation import EnumCatalog, EnumValidator
from itsm_migration.migrations.incident_migration import IncidentMigration
from itsm_migration.migrations.service_request_migration import ServiceRequestMigration
from itsm_migration.migrations.sub_activity_migration import SubActivityMigration
from itsm_migration.models import ComponentResult, MigrationError, MigrationResult
from itsm_migration.type_definitions import ComponentName, SourceFiles
from itsm_migration.utils import data_handler
from itsm_migration.utils.record_reader import RecordSource
from itsm_migration.utils.timezone import UTC

console = Console()

COMPONENT_ORDER: tuple[ComponentName, ...] = (
    "incidents",
    "service_requests",
    "activity_logs",
    "sub_activities",
    "attachments",
)


class SourceSet:
    """Source files of one run, read once and shared by the phases."""

    def __init__(self, files: SourceFiles) -> None:
        self.files = files
        self.delimiter = str(config.migration_config.get("csv_delimiter", ","))
        self.encoding = str(config.migration_config.get("csv_encoding", "utf-8-sig"))

        self.incidents = self._read(files.incidents)
        self.service_requests = self._read(files.service_requests)
        self.activity_logs = [self._read(path) for path in files.activity_logs]
        self.manual = self._read(files.manual_activities)
        self.review = self._read(files.review_activities)
        self.parallel = self._read(files.parallel_activities)

    def _read(self, path: Path | None) -> RecordSource | None:
        if path is None:
            return None
        return RecordSource.from_file(path, delimiter=self.delimiter, encoding=self.encoding)

    def enum_sources(self) -> dict[str, RecordSource]:
        """Every loaded source that carries enumeration-backed fields."""
        candidates = {
            "incident": self.incidents,
            "service_request": self.service_requests,
            "manual": self.manual,
            "review": self.review,
            "parallel": self.parallel,
        }
        return {kind: source for kind, source in candidates.items() if source is not None}

    def has_activities(self) -> bool:
        return any(s is not None for s in (self.manual, self.review, self.parallel))


def _build_component_factories(
    client: ItsmClient,
    sources: SourceSet,
    diff_table: DiffTable,
    catalog: EnumCatalog,
    *,
    affected_user_surrogate: str,
    assigned_to_surrogate: str,
) -> dict[ComponentName, Callable[[], BaseMigration]]:
    """Return lazy factories for the phases whose inputs were given.

    Phases are only constructed when they run, so a failed earlier phase
    never reads the inputs of a later one.
    """
    factories: dict[ComponentName, Callable[[], BaseMigration]] = {}
    surrogates = {
        "affected_user_surrogate": affected_user_surrogate,
        "assigned_to_surrogate": assigned_to_surrogate,
    }

    if sources.incidents is not None:
        factories["incidents"] = lambda: IncidentMigration(
            client, sources.incidents, diff_table, catalog=catalog, **surrogates,
        )
    if sources.service_requests is not None:
        factories["service_requests"] = lambda: ServiceRequestMigration(
            client, sources.service_requests, diff_table, catalog=catalog, **surrogates,
        )
    if sources.activity_logs:
        factories["activity_logs"] = lambda: _ActivityLogBatch(client, sources.activity_logs, diff_table)
    if sources.has_activities():
        factories["sub_activities"] = lambda: SubActivityMigration(
            client,
            diff_table,
            manual=sources.manual,
            review=sources.review,
            parallel=sources.parallel,
            assigned_to_surrogate=assigned_to_surrogate,
            catalog=catalog,
        )
    factories["attachments"] = lambda: AttachmentsMigration(client, sources.files.attachments, diff_table)
    return factories


class _ActivityLogBatch(BaseMigration):
    """Runs the activity log phase over several export files as one component."""

    COMPONENT_NAME = "activity_logs"

    def __init__(self, client: ItsmClient, sources: list[RecordSource], diff_table: DiffTable) -> None:
        super().__init__(client)
        self.phases = [ActivityLogMigration(client, source, diff_table) for source in sources]

    def run(self) -> ComponentResult:
        combined = ComponentResult()
        for phase in self.phases:
            part = phase.run()
            combined.total_count += part.total_count
            combined.success_count += part.success_count
            combined.skipped_count += part.skipped_count
            combined.failed_count += part.failed_count
            combined.errors.extend(part.errors)
            combined.warnings.extend(part.warnings)
            combined.error = combined.error or part.error
            if not part.success and self.stop_on_error:
                break
        return self.finish(combined, "Activity log migration")


def print_component_header(component_name: str) -> None:
    """Print a formatted header for a migration phase."""
    console.rule(f"RUNNING COMPONENT: {component_name}")


def run_migration(
    files: SourceFiles,
    *,
    affected_user_surrogate: str,
    assigned_to_surrogate: str,
    components: list[ComponentName] | None = None,
    client: ItsmClient | None = None,
) -> MigrationResult:
    """Run the requested phases in dependency order.

    Args:
        files: Input locations; optional phases without inputs are not run,
            the attachment root must exist (it may be empty)
        affected_user_surrogate: Display name used when AffectedUser cannot be found
        assigned_to_surrogate: Display name used when AssignedTo cannot be found
        components: Subset of phases to run; all available phases when omitted
        client: Target client; built from the ``target`` config section when omitted

    Returns:
        The collected phase results; also saved as JSON in the results directory

    """
    results = MigrationResult()
    timestamp = results.overall["timestamp"]
    config.logger.info("Starting migration run %s", timestamp)

    try:
        if not files.attachments.is_dir():
            msg = f"Attachment directory not found: {files.attachments}"
            raise FileNotFoundError(msg)
        sources = SourceSet(files)
        client = client or ItsmClient()
        catalog = EnumCatalog.from_client(client)
        diff_table = DiffTable.open(files.diff_table)
    except (OSError, ClientError, MigrationError, ValueError) as e:
        config.logger.error("Migration setup failed: %s", e)
        results.overall["status"] = "failed"
        results.overall["message"] = str(e)
        save_results(results)
        return results

    # nothing is written unless every enumeration value is known
    print_component_header("enum_validation")
    validation = EnumValidator(client, sources.enum_sources(), catalog=catalog).run()
    results.record("enum_validation", validation)
    if not validation.success:
        config.logger.error(validation.message)
        results.overall["message"] = validation.message
        save_results(results)
        return results

    factories = _build_component_factories(
        client,
        sources,
        diff_table,
        catalog,
        affected_user_surrogate=affected_user_surrogate,
        assigned_to_surrogate=assigned_to_surrogate,
    )
    selected = [name for name in COMPONENT_ORDER if name in factories and (components is None or name in components)]
    stop_on_error = bool(config.migration_config.get("stop_on_error", True))

    for name in selected:
        print_component_header(name)
        try:
            result = factories[name]().run()
        except (OSError, ClientError, MigrationError) as e:
            config.logger.exception("Component %s failed: %s", name, e)
            result = ComponentResult(success=False, message=str(e), error=str(e))
        results.record(name, result)

        if not result.success and stop_on_error:
            config.logger.error("Component '%s' failed, aborting migration", name)
            break

    end = datetime.now(tz=UTC)
    results.overall["end_time"] = end.isoformat()
    results.overall["total_time_seconds"] = (
        end - datetime.fromisoformat(results.overall["start_time"])
    ).total_seconds()

    if results.overall["status"] == "success":
        config.logger.success(
            "Migration completed successfully in %.2f seconds.", results.overall["total_time_seconds"],
        )
    else:
        config.logger.error(
            "Migration completed with status '%s' in %.2f seconds.",
            results.overall["status"],
            results.overall["total_time_seconds"],
        )

    save_results(results)
    return results


def save_results(results: MigrationResult) -> None:
    """Write the run results as JSON into the results directory."""
    results_file = f"migration_results_{results.overall['timestamp']}.json"
    path = data_handler.save(results, filename=results_file, directory=config.get_path("results"))
    results.overall["results_file"] = str(path)

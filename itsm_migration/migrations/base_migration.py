"""Base migration class providing common functionality for all migration phases."""

from __future__ import annotations

from datetime import tzinfo
from typing import TYPE_CHECKING, Any, ClassVar

from itsm_migration import config
from itsm_migration.clients.exceptions import ClientError
from itsm_migration.display import get_logger
from itsm_migration.models import ComponentResult, MigrationError
from itsm_migration.type_definitions import CoercedRecord, FieldSchema
from itsm_migration.utils.timezone import resolve_timezone

if TYPE_CHECKING:
    from itsm_migration.clients.itsm_client import ItsmClient
    from itsm_migration.migrations.enum_validation import EnumCatalog

# Failures that abort a record: the target rejected a write, or the Diff Table did.
CREATION_ERRORS = (ClientError, MigrationError)


class ComponentInitializationError(Exception):
    """Raised when a migration component cannot be initialized."""


class BaseMigration:
    """Base class for all migration phases.

    Holds the target client and the shared migration settings, and provides
    the helpers every phase uses to build target properties and account for
    per-record failures.
    """

    COMPONENT_NAME: ClassVar[str] = ""

    def __init__(self, client: ItsmClient, *, keep_ids: bool | None = None) -> None:
        """Initialize the migration with common attributes.

        Args:
            client: Initialized target client
            keep_ids: Send legacy identifiers to the target instead of letting
                it number new objects; defaults to ``migration.keep_ids``

        """
        if client is None:
            msg = f"{self.__class__.__name__} requires a target client"
            raise ComponentInitializationError(msg)

        self.client = client
        self.settings = config.migration_config
        self.logger = get_logger(f"itsm_migration.{self.COMPONENT_NAME or self.__class__.__name__}")
        self.keep_ids = bool(self.settings.get("keep_ids", False)) if keep_ids is None else keep_ids
        self.stop_on_error = bool(self.settings.get("stop_on_error", True))

    @property
    def source_timezone(self) -> tzinfo:
        """Timezone applied to naive source timestamps."""
        return resolve_timezone(self.settings.get("source_timezone"))

    def build_properties(
        self,
        coerced: CoercedRecord,
        schema: FieldSchema,
        catalog: EnumCatalog | None,
        entity_id: str,
        result: ComponentResult,
    ) -> dict[str, Any]:
        """Turn a coerced record into target properties.

        Enumeration fields are replaced by their enumeration id; the legacy
        ``Id`` is only sent when identifiers are kept.
        """
        properties: dict[str, Any] = {}
        for name, value in coerced.items():
            if name == "Id" and not self.keep_ids:
                continue
            if schema.get(name) == "enum" and catalog is not None:
                enum_id = catalog.resolve(str(value))
                if enum_id is None:
                    message = f"{entity_id}: {name}={value!r} is not a known enumeration; field left unset"
                    self.logger.warning(message)
                    result.add_warning(message)
                    continue
                properties[name] = enum_id
                continue
            properties[name] = value
        return properties

    def record_failure(self, result: ComponentResult, identifier: str, error: Exception) -> bool:
        """Account for a failed record; return True when the phase must stop."""
        message = f"{identifier}: {error}"
        self.logger.error("Failed to migrate %s: %s", identifier, error)
        result.failed_count += 1
        result.add_error(message)
        if self.stop_on_error:
            result.error = message
            self.logger.error("Stopping %s after failure (stop_on_error)", self.COMPONENT_NAME)
            return True
        return False

    def finish(self, result: ComponentResult, label: str) -> ComponentResult:
        """Set the final status and log a one-line summary."""
        result.success = result.failed_count == 0
        result.message = (
            f"{label}: created={result.success_count}, skipped={result.skipped_count}, "
            f"failed={result.failed_count}, warnings={len(result.warnings)}"
        )
        if result.success:
            self.logger.success(result.message)
        else:
            self.logger.error(result.message)
        return result

    def run(self) -> ComponentResult:
        """Execute the phase."""
        raise NotImplementedError

"""Models package for data structures used in the migration."""

from itsm_migration.models.component_results import ComponentResult
from itsm_migration.models.migration_error import (
    DiffTableError,
    EnumValidationError,
    EnumViolation,
    MigrationError,
)
from itsm_migration.models.migration_results import MigrationResult
from itsm_migration.models.records import (
    ActivityLogRecord,
    AnalystCommentChild,
    AttachmentChild,
    DiffEntry,
    Projection,
    ProjectionChild,
    UserCommentChild,
)

__all__ = [
    "ActivityLogRecord",
    "AnalystCommentChild",
    "AttachmentChild",
    "ComponentResult",
    "DiffEntry",
    "DiffTableError",
    "EnumValidationError",
    "EnumViolation",
    "MigrationError",
    "MigrationResult",
    "Projection",
    "ProjectionChild",
    "UserCommentChild",
]

"""Defines exceptions for the migration process."""

from dataclasses import dataclass


class MigrationError(Exception):
    """Base exception for migration errors.

    Should be used when a migration component encounters an error
    that prevents it from continuing execution.
    """

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message


@dataclass(frozen=True, slots=True)
class EnumViolation:
    """A non-empty source value with no matching enumeration display name."""

    source: str
    field: str
    value: str

    def __str__(self) -> str:
        return f"{self.source}: {self.field}={self.value!r}"


class EnumValidationError(MigrationError):
    """Raised after a full scan when any enumeration value is missing in the target."""

    def __init__(self, violations: list[EnumViolation]) -> None:
        self.violations = violations
        lines = "\n".join(f"  - {v}" for v in violations)
        super().__init__(
            f"{len(violations)} enumeration value(s) missing in target system:\n{lines}",
        )


class DiffTableError(MigrationError):
    """Raised when the Diff Table file is malformed or would get a duplicate entry."""

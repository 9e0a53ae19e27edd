"""Component result models for tracking migration phases."""

from typing import Any

from pydantic import BaseModel, Field


class ComponentResult(BaseModel):
    """Represents the result of one migration phase."""

    success: bool = False
    message: str = ""
    details: dict[str, Any] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    total_count: int = 0
    success_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0
    error: str | None = None

    def add_error(self, error: str) -> None:
        """Add an error message to the errors list."""
        self.errors.append(error)

    def add_warning(self, warning: str) -> None:
        """Add a warning message to the warnings list."""
        self.warnings.append(warning)


"""
Migration result models for tracking a full multi-phase run.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from itsm_migration.models.component_results import ComponentResult
from itsm_migration.utils.timezone import UTC


class MigrationResult(BaseModel):
    """Represents the overall result of a migration run."""

    components: dict[str, ComponentResult] = Field(default_factory=dict)
    overall: dict[str, Any] = Field(default_factory=dict)

    def __init__(self, **data: Any) -> None:
        super().__init__(**data)

        now = datetime.now(tz=UTC)
        self.overall.setdefault("status", "success")
        self.overall.setdefault("start_time", now.isoformat())
        self.overall.setdefault("timestamp", now.strftime("%Y-%m-%d_%H-%M-%S"))

    def record(self, name: str, result: ComponentResult) -> None:
        """Store a phase result and downgrade the overall status on failure."""
        self.components[name] = result
        if not result.success:
            self.overall["status"] = "failed"


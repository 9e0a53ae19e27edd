"""Data handler module for JSON serialization of payloads and run results.

Provides a consistent interface for writing results, with special handling
for Pydantic models, datetimes and paths.
"""

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from itsm_migration.display import get_logger
from itsm_migration.models.migration_error import MigrationError

logger = get_logger(__name__)


def json_default(value: Any) -> Any:
    """Best-effort encoder for non-JSON-native objects.

    - datetimes and dates as ISO 8601
    - pathlib.Path as str
    - Pydantic models as dict
    - anything else as its string representation
    """
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, BaseModel):
        return value.model_dump()
    return str(value)


def dumps(data: Any) -> str:
    """Serialize data to a JSON string using json_default."""
    return json.dumps(data, default=json_default, ensure_ascii=False)


def save(
    data: Any,
    filename: str | Path,
    directory: str | Path,
    indent: int = 2,
) -> Path:
    """Save data to a JSON file, automatically handling Pydantic models.

    Args:
        data: The data to save (Pydantic model or any JSON-serializable data)
        filename: Name of the file to save; only its last component is used
        directory: Directory to save to
        indent: JSON indentation level

    Returns:
        Path of the written file

    Raises:
        MigrationError: If saving fails

    """
    filepath = Path(directory) / Path(filename).name
    filepath.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")

    try:
        with filepath.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent, ensure_ascii=False, default=json_default)
    except (OSError, TypeError, ValueError) as e:
        msg = f"Failed to save data to {filepath}"
        raise MigrationError(msg) from e

    logger.info("Saved data to %s", filepath)
    return filepath

"""Type definitions for the ITSM work-item migration.

This module contains the typed configuration sections, field schema aliases
and literal names used throughout the migration process.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Literal, NotRequired, TypedDict

type SourceRecord = dict[str, str]
type CoercedValue = str | bool | int | datetime
type CoercedRecord = dict[str, CoercedValue]
type ObjectRef = str

type FieldKind = Literal["string", "text", "enum", "bool", "datetime", "int"]
type FieldSchema = dict[str, FieldKind]

type ConfigValue = str | int | bool | dict[str, Any] | list[Any]


class TargetConfig(TypedDict, total=False):
    """Configuration for the target ITSM instance."""

    url: str
    username: str
    password: str
    api_token: NotRequired[str]
    verify_ssl: bool
    timeout: int
    retries: int


type LogLevel = Literal[
    "DEBUG",
    "INFO",
    "NOTICE",
    "WARNING",
    "ERROR",
    "CRITICAL",
    "SUCCESS",
]


class MigrationConfig(TypedDict, total=False):
    """Configuration for the migration."""

    log_level: LogLevel
    csv_delimiter: str
    csv_encoding: str
    source_timezone: str
    keep_ids: bool
    max_attachment_size: int
    stop_on_error: bool


class Config(TypedDict):
    """Configuration for the config loader."""

    target: TargetConfig
    migration: MigrationConfig


type WorkItemType = Literal["incident", "service_request"]
type ActivityKind = Literal["manual", "review", "parallel"]
type LogType = Literal["UserComment", "AnalystComment"]

type ComponentName = Literal[
    "enum_validation",
    "incidents",
    "service_requests",
    "activity_logs",
    "sub_activities",
    "attachments",
]

type DirType = Literal[
    "logs",
    "results",
]


@dataclass(slots=True)
class SourceFiles:
    """Input locations for one full migration run."""

    diff_table: Path
    attachments: Path
    incidents: Path | None = None
    service_requests: Path | None = None
    activity_logs: list[Path] = field(default_factory=list)
    manual_activities: Path | None = None
    review_activities: Path | None = None
    parallel_activities: Path | None = None

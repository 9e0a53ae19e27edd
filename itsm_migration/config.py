"""Configuration module for the ITSM work-item migration.
Provides a centralized configuration interface using ConfigLoader.
"""

from pathlib import Path
from typing import Any

from itsm_migration.config_loader import ConfigLoader
from itsm_migration.display import configure_logging
from itsm_migration.type_definitions import (
    DirType,
    LogLevel,
    MigrationConfig,
    TargetConfig,
)

_config_loader = ConfigLoader()

target_config: TargetConfig = _config_loader.get_target_config()
migration_config: MigrationConfig = _config_loader.get_migration_config()

root_dir = Path(__file__).resolve().parent.parent
var_dir = root_dir / "var"

var_dirs: dict[DirType, Path] = {
    "logs": var_dir / "logs",
    "results": var_dir / "results",
}

LOG_LEVEL: LogLevel = migration_config.get("log_level", "INFO")
log_file = var_dirs["logs"] / "migration.log"
var_dirs["logs"].mkdir(parents=True, exist_ok=True)
logger = configure_logging(LOG_LEVEL, log_file)


def get_path(path_type: DirType) -> Path:
    """Get a var directory, creating it on first use."""
    if path_type not in var_dirs:
        msg = f"Invalid path type: {path_type}"
        raise ValueError(msg)

    path = var_dirs[path_type]
    path.mkdir(parents=True, exist_ok=True)
    return path


def validate_config() -> bool:
    """Validate that the target connection settings are present."""
    missing_vars = []

    if not target_config.get("url"):
        missing_vars.append("ITSMM_TARGET_URL")
    if not (target_config.get("api_token") or target_config.get("username")):
        missing_vars.append("ITSMM_TARGET_USERNAME or ITSMM_TARGET_API_TOKEN")
    if target_config.get("username") and not target_config.get("password"):
        missing_vars.append("ITSMM_TARGET_PASSWORD")

    if missing_vars:
        logger.error(
            "Missing required configuration: %s", ", ".join(missing_vars),
        )
        return False

    return True


def update_from_cli_args(args: Any) -> None:
    """Update migration configuration from CLI arguments.

    Args:
        args: An object containing CLI arguments (typically from argparse)

    """
    if getattr(args, "keep_ids", False):
        migration_config["keep_ids"] = True
        logger.debug("Setting keep_ids=True from CLI arguments")

    if getattr(args, "continue_on_error", False):
        migration_config["stop_on_error"] = False
        logger.debug("Setting stop_on_error=False from CLI arguments")

    delimiter = getattr(args, "delimiter", None)
    if delimiter:
        migration_config["csv_delimiter"] = delimiter
        logger.debug("Setting csv_delimiter=%r from CLI arguments", delimiter)

    log_level = getattr(args, "log_level", None)
    if log_level:
        migration_config["log_level"] = log_level.upper()
        configure_logging(log_level, log_file)

"""Configuration loading for the ITSM work-item migration.

Handles loading and accessing configuration settings from YAML files,
``.env`` files and ``ITSMM_*`` environment variables.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from itsm_migration.type_definitions import (
    Config,
    ConfigValue,
    MigrationConfig,
    TargetConfig,
)

config_logger = logging.getLogger("itsm_migration.config_loader")

ENV_PREFIX = "ITSMM"
DEFAULT_CONFIG_FILE = Path(__file__).resolve().parent.parent / "config" / "config.yaml"

DEFAULT_TARGET_CONFIG: TargetConfig = {
    "url": "",
    "username": "",
    "password": "",
    "verify_ssl": True,
    "timeout": 60,
    "retries": 3,
}

DEFAULT_MIGRATION_CONFIG: MigrationConfig = {
    "log_level": "INFO",
    "csv_delimiter": ",",
    "csv_encoding": "utf-8-sig",
    "source_timezone": "UTC",
    "keep_ids": False,
    "max_attachment_size": 0,
    "stop_on_error": True,
}

VALID_LOG_LEVELS = ("DEBUG", "INFO", "NOTICE", "WARNING", "ERROR", "CRITICAL", "SUCCESS")


def is_test_environment() -> bool:
    """Detect if code is running under pytest or with ITSMM_TEST_MODE set."""
    if "PYTEST_CURRENT_TEST" in os.environ:
        return True
    return os.environ.get(f"{ENV_PREFIX}_TEST_MODE", "").lower() in ("true", "1", "yes")


class ConfigLoader:
    """Loads and provides access to configuration settings from YAML files and environment variables."""

    def __init__(self, config_file_path: Path | None = None) -> None:
        """Initialize the configuration loader.

        Args:
            config_file_path: Path to the YAML configuration file. Defaults to
                ``ITSMM_CONFIG`` or ``config/config.yaml`` next to the package.

        """
        self._load_environment_configuration()

        if config_file_path is None:
            env_path = os.environ.get(f"{ENV_PREFIX}_CONFIG")
            config_file_path = Path(env_path) if env_path else DEFAULT_CONFIG_FILE

        loaded = self._load_yaml_config(config_file_path)

        self.config: Config = {
            "target": {**DEFAULT_TARGET_CONFIG, **(loaded.get("target") or {})},
            "migration": {**DEFAULT_MIGRATION_CONFIG, **(loaded.get("migration") or {})},
        }

        self._apply_environment_overrides()

    def _load_environment_configuration(self) -> None:
        """Load ``.env`` files; later files override earlier ones.

        - .env (base config for all environments)
        - .env.local (local overrides, if present)
        - .env.test (test-specific config, only in test environment)
        """
        load_dotenv(".env")

        if Path(".env.local").exists():
            load_dotenv(".env.local", override=True)
            config_logger.debug("Loaded local overrides from .env.local")

        if is_test_environment() and Path(".env.test").exists():
            load_dotenv(".env.test", override=True)
            config_logger.debug("Loaded test environment from .env.test")

    def _load_yaml_config(self, config_file_path: Path) -> dict[str, Any]:
        """Load configuration from a YAML file.

        A missing file is not an error: defaults and environment variables
        are enough to run the migration.
        """
        try:
            with config_file_path.open("r", encoding="utf-8") as config_file:
                config = yaml.safe_load(config_file) or {}
        except FileNotFoundError:
            config_logger.debug("Config file not found, using defaults: %s", config_file_path)
            return {}

        if not isinstance(config, dict):
            msg = f"Config file {config_file_path} must contain a mapping"
            raise ValueError(msg)
        return config

    def _apply_environment_overrides(self) -> None:
        """Override configuration settings with ITSMM_* environment variables."""
        for env_var, env_value in os.environ.items():
            if not env_var.startswith(f"{ENV_PREFIX}_"):
                continue

            match env_var.split("_"):
                case [_, "LOG", "LEVEL"]:
                    log_level = env_value.upper()
                    if log_level in VALID_LOG_LEVELS:
                        self.config["migration"]["log_level"] = log_level
                    config_logger.debug("Applied log level: %s", log_level)

                case [_, "TARGET", *rest] if rest:
                    key = "_".join(rest).lower()
                    self.config["target"][key] = self._convert_value(env_value)
                    if key in ("password", "api_token"):
                        config_logger.debug("Applied target config: %s=***", key)
                    else:
                        config_logger.debug("Applied target config: %s=%s", key, env_value)

                case [_, "CSV", "DELIMITER"]:
                    self.config["migration"]["csv_delimiter"] = env_value
                    config_logger.debug("Applied CSV delimiter: %r", env_value)

                case [_, "CSV", "ENCODING"]:
                    self.config["migration"]["csv_encoding"] = env_value
                    config_logger.debug("Applied CSV encoding: %s", env_value)

                case [_, "SOURCE", "TIMEZONE"]:
                    self.config["migration"]["source_timezone"] = env_value
                    config_logger.debug("Applied source timezone: %s", env_value)

                case [_, "KEEP", "IDS"]:
                    self.config["migration"]["keep_ids"] = bool(self._convert_value(env_value))
                    config_logger.debug("Applied keep_ids: %s", env_value)

                case [_, "MAX", "ATTACHMENT", "SIZE"] if env_value.isdigit():
                    self.config["migration"]["max_attachment_size"] = int(env_value)
                    config_logger.debug("Applied max attachment size: %s", env_value)

                case [_, "STOP", "ON", "ERROR"]:
                    self.config["migration"]["stop_on_error"] = bool(self._convert_value(env_value))
                    config_logger.debug("Applied stop_on_error: %s", env_value)

                case [_, "SSL", "VERIFY"]:
                    ssl_verify = env_value.lower() not in ("false", "0", "no", "n", "f")
                    self.config["target"]["verify_ssl"] = ssl_verify
                    config_logger.debug("Applied SSL verify: %s", ssl_verify)

    def _convert_value(self, value: str) -> ConfigValue:
        """Convert string value to appropriate type."""
        if value.isdigit():
            return int(value)

        match value.lower():
            case "true" | "yes" | "y":
                return True
            case "false" | "no" | "n":
                return False
            case _:
                return value

    def get_target_config(self) -> TargetConfig:
        """Get target-system configuration."""
        return self.config["target"]

    def get_migration_config(self) -> MigrationConfig:
        """Get migration-specific configuration."""
        return self.config["migration"]

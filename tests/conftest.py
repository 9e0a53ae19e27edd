"""Shared pytest fixtures and configuration for all tests."""

import os
from collections.abc import Generator
from pathlib import Path

import pytest
from _pytest.config import Config

from tests.utils.mock_factory import FakeItsmClient, create_fake_client


def pytest_configure(config: Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark a test as a unit test")
    config.addinivalue_line(
        "markers",
        "integration: mark a test as an integration test",
    )
    config.addinivalue_line("markers", "slow: mark a test as slow-running")


def _env_flag(name: str, default: bool = False) -> bool:
    """Read boolean environment flag (true/false)."""
    val = os.environ.get(name, "true" if default else "false").strip().lower()
    return val in {"1", "true", "yes", "on"}


def pytest_collection_modifyitems(config: Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless ITSMM_RUN_INTEGRATION is set.

    Integration tests talk to a live target instance configured through
    the usual ITSMM_TARGET_* variables.
    """
    if _env_flag("ITSMM_RUN_INTEGRATION", False):
        return

    skip_integration = pytest.mark.skip(
        reason="Integration tests disabled by default. Set ITSMM_RUN_INTEGRATION=true to enable.",
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> Generator[None]:
    """Flag test mode for the config loader and restore the environment afterwards."""
    original_env = os.environ.copy()
    os.environ["ITSMM_TEST_MODE"] = "true"

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture(autouse=True)
def migration_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> dict:
    """Reset the shared migration settings for each test.

    CLI handling mutates ``config.migration_config`` in place, so every test
    starts from the defaults and writes results into its own directory.
    """
    from itsm_migration import config
    from itsm_migration.config_loader import DEFAULT_MIGRATION_CONFIG

    for key, value in DEFAULT_MIGRATION_CONFIG.items():
        monkeypatch.setitem(config.migration_config, key, value)
    monkeypatch.setitem(config.var_dirs, "results", tmp_path / "results")
    return config.migration_config


@pytest.fixture
def fake_client() -> FakeItsmClient:
    """An in-memory target with a small enumeration catalog and user directory."""
    return create_fake_client()


@pytest.fixture
def write_csv(tmp_path: Path):
    """Write rows to a CSV file under tmp_path and return its path."""
    import csv

    def _write(name: str, header: list[str], rows: list[list[str]], delimiter: str = ",") -> Path:
        path = tmp_path / name
        with path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f, delimiter=delimiter)
            writer.writerow(header)
            writer.writerows(rows)
        return path

    return _write

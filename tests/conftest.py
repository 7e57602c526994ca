"""
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest and provides:
- Workbook fixtures written to tmp_path with openpyxl
- In-memory store fixtures (with and without a persisted match)
- Database DSN for the optional PostgreSQL integration tests
- The --runslow option
"""

import os
from datetime import date
from pathlib import Path
from typing import Optional

import pytest

from gaa_etl.load.memory import InMemoryStore
from gaa_etl.settings import load_config
from gaa_etl.validate.results import ValidationOutcome
from tests.fixtures import workbooks


@pytest.fixture(scope="session")
def config() -> dict:
    """Packaged etl.yaml, loaded fresh for the session."""
    return load_config()


@pytest.fixture(scope="session")
def test_db_dsn() -> Optional[str]:
    """
    Return the database connection string for PostgreSQL tests.

    None unless TEST_DATABASE_URL is set; those tests are skipped then.
    """
    return os.getenv("TEST_DATABASE_URL")


@pytest.fixture
def store() -> InMemoryStore:
    """Empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def store_with_match() -> InMemoryStore:
    """Store holding match 9 against Slaughtmanus on 26.09.25."""
    store = InMemoryStore()
    store.add_match(9, date(2025, 9, 26), "Slaughtmanus")
    return store


@pytest.fixture
def outcome() -> ValidationOutcome:
    return ValidationOutcome("09. Player stats vs Slaughtmanus 26.09.25")


@pytest.fixture
def player_workbook_path(tmp_path: Path) -> Path:
    """Position sheets plus "09. Player stats vs Slaughtmanus 26.09.25" with 3 players."""
    return workbooks.player_workbook(tmp_path / "player_stats.xlsx")


@pytest.fixture
def season_workbook_path(tmp_path: Path) -> Path:
    """Match sheet, player sheet and position sheets for match 9."""
    return workbooks.season_workbook(tmp_path / "season.xlsx")


# Pytest command-line options
def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--runslow",
        action="store_true",
        default=False,
        help="Run slow tests (default: skip)"
    )


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")


def pytest_collection_modifyitems(config, items):
    """Modify test collection based on command-line options."""
    if config.getoption("--runslow"):
        # --runslow given in cli: do not skip slow tests
        return

    skip_slow = pytest.mark.skip(reason="need --runslow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)

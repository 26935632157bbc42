from datetime import datetime, timezone

import pytest

from aplus_study.content import load_catalogue


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_study.db")
    return db_path


@pytest.fixture(scope="session")
def catalogue():
    return load_catalogue()


@pytest.fixture
def now():
    return datetime(2026, 3, 10, 15, 30, tzinfo=timezone.utc)

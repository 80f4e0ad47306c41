"""
Pytest configuration and shared fixtures for warmpath tests.

Test Categories:
- unit: Fast tests with no external dependencies (< 100ms each)
- slow: Tests that touch SQLite files or search larger graphs

Run categories:
- pytest -m unit              # Fast unit tests only
- pytest -m "not slow"        # Skip slow tests
- pytest                      # All tests
"""
import pytest

from tests.fixtures.graph_data import NOW, abc_records
from warmpath.services.data_provider import InMemoryDataProvider, TenantScope
from warmpath.services.graph_builder import build_graph


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "slow: Slow tests (SQLite files, larger graphs)")


@pytest.fixture
def now():
    """Fixed reference time so recency-based results are deterministic."""
    return NOW


@pytest.fixture
def scope():
    return TenantScope("acme")


@pytest.fixture
def abc_graph():
    """Graph for the A/B/C triangle (A is me)."""
    persons, relationships = abc_records()
    return build_graph(persons, relationships)


@pytest.fixture
def abc_provider(scope):
    """In-memory provider holding the A/B/C triangle for tenant acme."""
    persons, relationships = abc_records()
    return InMemoryDataProvider.from_records(scope, persons, relationships)


@pytest.fixture
def sqlite_provider(tmp_path):
    """Temporary SQLite provider, closed after the test."""
    from warmpath.services.sqlite_provider import SqliteDataProvider

    provider = SqliteDataProvider(tmp_path / "warmpath.db")
    yield provider
    provider.close()


@pytest.fixture(scope="function")
def mock_settings(tmp_path, monkeypatch):
    """
    Mock settings for testing.

    Uses a temporary database path to avoid affecting real data.
    """
    from config.settings import Settings

    mock = Settings(db_path=tmp_path / "warmpath.db")

    # Patch the global settings
    monkeypatch.setattr("config.settings.settings", mock)
    return mock

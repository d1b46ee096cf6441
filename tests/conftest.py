"""
Pytest fixtures for the default reset quantity tests.

Provides sample catalogs, flag stores and a TestClient wired to them.
"""

import re

import pytest
from fastapi.testclient import TestClient

from default_reset_quantity.app import create_app
from default_reset_quantity.catalog import InMemoryCatalog
from default_reset_quantity.config import Settings
from default_reset_quantity.flag_store import InMemoryFlagStore
from default_reset_quantity.models import Item

NONCE_PATTERN = re.compile(r'name="_nonce" value="([^"]+)"')


def extract_nonce(page: str) -> str:
    """Pull the form token out of a rendered settings page."""
    match = NONCE_PATTERN.search(page)
    assert match, "settings page has no form token"
    return match.group(1)


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

@pytest.fixture
def sample_items() -> list[Item]:
    """Item 1 has a default of 5, item 2 is marked do-not-reset, item 3 has neither."""
    return [
        Item("1", stock=2, attributes={"default_reset_quantity": "5"}),
        Item("2", stock=10, attributes={"do_not_reset_quantity": "yes"}),
        Item("3", stock=7),
    ]


@pytest.fixture
def catalog(sample_items) -> InMemoryCatalog:
    return InMemoryCatalog(sample_items)


@pytest.fixture
def flags() -> InMemoryFlagStore:
    return InMemoryFlagStore()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


# =============================================================================
# APPLICATION FIXTURES
# =============================================================================

@pytest.fixture
def app(settings, flags, catalog):
    """Create FastAPI application instance."""
    return create_app(settings, flags=flags, catalog=catalog)


@pytest.fixture
def client(app) -> TestClient:
    """Create test client."""
    return TestClient(app)


# =============================================================================
# ENVIRONMENT FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep host environment settings out of the tests."""
    for var in (
        "FLAG_STORE_PATH",
        "CATALOG_PATH",
        "ADMIN_TOKEN",
        "AUTO_RESET_DEFAULT",
        "STORE_STATUS_INTEGRATION",
        "SETTINGS_RATE_LIMIT",
        "HEALTH_RATE_LIMIT",
        "REDIS_URL",
    ):
        monkeypatch.delenv(var, raising=False)

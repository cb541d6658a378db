"""
Pytest configuration and shared fixtures.
"""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from crawler.database import ChangeLogStore, KVNamespace, MapVersionStores, VersionStore
from crawler.models import KVEntry
from crawler.version_fetcher import MapVersionFetcher
from scheduler.alerting import EmailNotifier


class InMemoryNamespace(KVNamespace):
    """KVNamespace backed by a dict instead of a MongoDB collection."""

    def __init__(self, name: str = "memory"):
        self.name = name
        self.values = {}
        self.metadata = {}

    async def get(self, key):
        return self.values.get(key)

    async def get_json(self, key):
        value = self.values.get(key)
        return json.loads(value) if value is not None else None

    async def get_many(self, keys):
        return {key: self.values.get(key) for key in keys}

    async def put(self, key, value, metadata=None):
        self.values[key] = value
        self.metadata[key] = metadata

    async def list(self, prefix=""):
        return [
            KVEntry(name=key, metadata=self.metadata.get(key))
            for key in sorted(self.values)
            if key.startswith(prefix)
        ]


@pytest.fixture
def fixed_now():
    """Noon UTC on the day used throughout the tests."""
    return datetime(2024, 11, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def today(fixed_now):
    return fixed_now.date().isoformat()


@pytest.fixture
def yesterday():
    return "2024-11-18"


@pytest.fixture
def versions_namespace():
    return InMemoryNamespace("map_versions")


@pytest.fixture
def changes_namespace():
    return InMemoryNamespace("map_version_changes")


@pytest.fixture
def version_store(versions_namespace):
    return VersionStore(versions_namespace)


@pytest.fixture
def change_log(changes_namespace):
    return ChangeLogStore(changes_namespace)


@pytest.fixture
def stores(version_store, change_log):
    return MapVersionStores(version_store, change_log)


@pytest.fixture
def mock_fetcher():
    """Fetcher returning version 2024 unless reconfigured."""
    fetcher = AsyncMock(spec=MapVersionFetcher)
    fetcher.fetch_map_version.return_value = "2024"
    return fetcher


@pytest.fixture
def mock_notifier():
    return AsyncMock(spec=EmailNotifier)


@pytest.fixture
def sample_version_page():
    """Sample map version page HTML for testing."""
    return """
    <html>
        <head><title>Latest map version</title></head>
        <body>
            <div class="hero">
                <h2>Map updates</h2>
                <p>The <strong>latest   map
                version</strong> is <span class="version">2027</span>.</p>
            </div>
        </body>
    </html>
    """

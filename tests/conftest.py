"""Shared fixtures for tasksync tests."""

from unittest.mock import MagicMock

import pytest

from tasksync.cache import LocalStore, SnapshotCache
from tasksync.models import SaveResult
from tasksync.sync import RemoteStoreClient, SyncEngine


@pytest.fixture
def local_store():
    """Create an in-memory LocalStore."""
    store = LocalStore(":memory:")
    store.connect()
    yield store
    store.close()


@pytest.fixture
def cache(local_store):
    return SnapshotCache(local_store)


@pytest.fixture
def mock_client():
    """Remote client whose store is healthy, empty-handed and accepts every save."""
    client = MagicMock(spec=RemoteStoreClient)
    client.health_check.return_value = True
    client.fetch.return_value = []
    client.save.side_effect = lambda collection, records: SaveResult(True, len(records))
    return client


@pytest.fixture
def engine(mock_client, cache):
    return SyncEngine(mock_client, cache, safety_timeout=5.0)


@pytest.fixture
def org_users():
    """Users of two tenants plus a super-admin."""
    return [
        {"id": "u_super", "organizationId": "system", "username": "root",
         "fullName": "Root", "role": "SUPER_ADMIN", "password": "x"},
        {"id": "u_a1", "organizationId": "org_a", "username": "alice",
         "fullName": "Alice A", "role": "ADMIN", "password": "x"},
        {"id": "u_a2", "organizationId": "org_a", "username": "anna",
         "fullName": "Anna A", "role": "ANALYST", "password": "x"},
        {"id": "u_b1", "organizationId": "org_b", "username": "bob",
         "fullName": "Bob B", "role": "ADMIN", "password": "x"},
    ]


@pytest.fixture
def unusable_store(tmp_path):
    """LocalStore whose parent directory cannot be created (a file is in the way)."""
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    return LocalStore(blocker / "sub" / "cache.db")

"""Sync infrastructure for tasksync clients.

Keeps the in-memory dataset in step with the remote key-document store and
falls back to the local snapshot cache while the store is unreachable.
"""

from .engine import LoadResult, LoadStatus, PersistPolicy, SyncEngine
from .remote_client import RemoteStoreClient, RemoteStoreError

__all__ = [
    "LoadResult",
    "LoadStatus",
    "PersistPolicy",
    "RemoteStoreClient",
    "RemoteStoreError",
    "SyncEngine",
]

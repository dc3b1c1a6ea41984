"""Local persistence for tasksync clients.

Provides:
- A SQLite key-value store
- The offline snapshot cache layered on top of it
"""

from .local_store import LocalStore
from .snapshot import SnapshotCache

__all__ = ["LocalStore", "SnapshotCache"]

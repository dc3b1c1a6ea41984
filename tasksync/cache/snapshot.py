"""Best-effort JSON snapshot cache used when the remote store is unreachable."""

import json
import logging
import sqlite3
from typing import Any

from .local_store import LocalStore

logger = logging.getLogger(__name__)


class SnapshotCache:
    """JSON values on top of a LocalStore.

    The cache is never load-bearing: write failures are logged and dropped,
    and unreadable entries read back as absent.
    """

    def __init__(self, store: LocalStore):
        self.store = store

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` as JSON under ``key``; failures are swallowed."""
        try:
            self.store.set(key, json.dumps(value))
        except (TypeError, ValueError, OSError, sqlite3.Error) as e:
            logger.warning(f"Could not cache {key}: {e}")

    def get(self, key: str) -> Any | None:
        """Return the cached value for ``key``, or None if missing or malformed."""
        try:
            raw = self.store.get(key)
        except (OSError, sqlite3.Error) as e:
            logger.warning(f"Could not read cache entry {key}: {e}")
            return None

        if not raw:
            return None

        try:
            return json.loads(raw)
        except ValueError:
            logger.debug(f"Ignoring malformed cache entry {key}")
            return None

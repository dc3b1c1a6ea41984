"""Synchronization engine for the tasksync data layer.

Owns the canonical collections for the session, loads them from the remote
store (seeding an empty store, falling back to the snapshot cache when the
store is unreachable) and persists local changes in the background.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable

from ..cache import SnapshotCache
from ..models import Collection, Record
from ..seed import seed_orgs, seed_tasks, seed_users
from ..visibility import (
    TenantView,
    filter_for_actor,
    visible_organizations,
    visible_tasks,
    visible_templates,
    visible_users,
)
from .remote_client import RemoteStoreClient, RemoteStoreError

logger = logging.getLogger(__name__)

OFFLINE_MESSAGE = "Could not connect to the backend (offline mode)."
TIMEOUT_MESSAGE = "Timed out waiting for the backend. It may be inactive."

# Offline fallback per collection when the cache has no entry. Templates are never seeded.
_FALLBACKS: dict[Collection, Callable[[], list[Record]]] = {
    Collection.USERS: seed_users,
    Collection.TASKS: seed_tasks,
    Collection.TEMPLATES: list,
    Collection.ORGS: seed_orgs,
}


class LoadStatus(Enum):
    """Where the collections of the last load came from."""

    ONLINE = "online"
    SEEDED = "seeded"  # Remote store was empty, seed data used
    OFFLINE = "offline"  # Remote unavailable, cache/seed used


@dataclass
class LoadResult:
    """Result of a load cycle."""

    status: LoadStatus
    error: str | None = None
    timestamp: datetime | None = None


@dataclass
class PersistPolicy:
    """Retry policy for background writes.

    The default of a single attempt means failed writes are only cached
    locally and never retried.
    """

    max_attempts: int = 1
    backoff_seconds: float = 1.0


class SyncEngine:
    """Canonical in-memory dataset kept in step with the remote store.

    Mutations are applied locally first and persisted afterwards; callers
    never wait on the network and never see write failures. Visible
    collections are derived from the raw ones on every access according to
    ``current_user``.
    """

    def __init__(
        self,
        client: RemoteStoreClient,
        cache: SnapshotCache,
        safety_timeout: float = 8.0,
        persist_policy: PersistPolicy | None = None,
    ):
        """Initialize the engine.

        Args:
            client: Remote store client.
            cache: Local snapshot cache used as offline fallback.
            safety_timeout: Seconds after which a hanging load stops
                reporting itself as loading.
            persist_policy: Retry policy for background writes.
        """
        self.client = client
        self.cache = cache
        self.safety_timeout = safety_timeout
        self.persist_policy = persist_policy or PersistPolicy()

        self.raw_users: list[Record] = []
        self.raw_tasks: list[Record] = []
        self.raw_templates: list[Record] = []
        self.raw_orgs: list[Record] = []

        self.is_loading = False
        self.connection_error: str | None = None
        self.current_user: Record | None = None

        self._last_load: LoadResult | None = None
        self._pending_writes: set[asyncio.Task] = set()

    # ==================== Visible Collections ====================

    @property
    def users(self) -> list[Record]:
        return visible_users(self.current_user, self.raw_users)

    @property
    def tasks(self) -> list[Record]:
        return visible_tasks(self.current_user, self.raw_tasks)

    @property
    def templates(self) -> list[Record]:
        return visible_templates(self.current_user, self.raw_templates)

    @property
    def organizations(self) -> list[Record]:
        return visible_organizations(self.current_user, self.raw_orgs)

    def view(self) -> TenantView:
        """Snapshot of every collection visible to the current user."""
        return filter_for_actor(
            self.current_user,
            self.raw_users,
            self.raw_tasks,
            self.raw_templates,
            self.raw_orgs,
        )

    def set_current_user(self, user: Record | None) -> None:
        self.current_user = user

    def get_collection(self, collection: Collection) -> list[Record]:
        """Raw (unfiltered) content of a collection."""
        return {
            Collection.USERS: self.raw_users,
            Collection.TASKS: self.raw_tasks,
            Collection.TEMPLATES: self.raw_templates,
            Collection.ORGS: self.raw_orgs,
        }[collection]

    def _set_collection(self, collection: Collection, records: list[Record]) -> None:
        if collection is Collection.USERS:
            self.raw_users = records
        elif collection is Collection.TASKS:
            self.raw_tasks = records
        elif collection is Collection.TEMPLATES:
            self.raw_templates = records
        else:
            self.raw_orgs = records

    # ==================== Load Protocol ====================

    def _on_safety_timeout(self) -> None:
        """Unlock a load that is taking too long. In-flight requests keep running."""
        if self.is_loading:
            logger.warning("Safety timeout reached, forcing loading state off")
            self.connection_error = TIMEOUT_MESSAGE
            self.is_loading = False

    async def load(self) -> LoadResult:
        """Load all collections, seeding or falling back to the cache as needed.

        Never raises: every failure ends in the offline fallback.

        Returns:
            LoadResult describing which source won.
        """
        self.is_loading = True
        self.connection_error = None

        loop = asyncio.get_running_loop()
        safety_timer = loop.call_later(self.safety_timeout, self._on_safety_timeout)

        try:
            if not await self.client.health_check():
                raise RemoteStoreError("Backend unreachable (health check failed)")

            logger.info("Backend online, fetching data")
            users, tasks, templates, orgs = await asyncio.gather(
                self.client.fetch(Collection.USERS),
                self.client.fetch(Collection.TASKS),
                self.client.fetch(Collection.TEMPLATES),
                self.client.fetch(Collection.ORGS),
            )

            status = LoadStatus.ONLINE
            if not users and not orgs:
                logger.warning("Remote store looks empty, seeding initial data")
                users, tasks, orgs = seed_users(), seed_tasks(), seed_orgs()
                await self._write_seed(users, tasks, orgs)
                status = LoadStatus.SEEDED

            fresh = {
                Collection.USERS: users or [],
                Collection.TASKS: tasks or [],
                Collection.TEMPLATES: templates or [],
                Collection.ORGS: orgs or [],
            }
            for collection, records in fresh.items():
                self._set_collection(collection, records)
                self.cache.set(collection.cache_key, records)

            result = LoadResult(status=status, timestamp=datetime.now())

        except Exception as e:
            logger.error(f"Backend sync failed: {e}")
            self.connection_error = OFFLINE_MESSAGE
            self._restore_from_cache()
            result = LoadResult(status=LoadStatus.OFFLINE, error=str(e), timestamp=datetime.now())

        finally:
            safety_timer.cancel()
            self.is_loading = False

        self._last_load = result
        logger.info(
            f"Load finished: {result.status.value}, users={len(self.raw_users)}, "
            f"tasks={len(self.raw_tasks)}, templates={len(self.raw_templates)}, "
            f"orgs={len(self.raw_orgs)}"
        )
        return result

    async def refresh(self) -> LoadResult:
        """Re-run the load protocol on explicit request."""
        return await self.load()

    async def _write_seed(
        self,
        users: list[Record],
        tasks: list[Record],
        orgs: list[Record],
    ) -> None:
        """Upload seed data; a failure only costs persistence, not the session."""
        try:
            await asyncio.gather(
                self.client.save(Collection.USERS, users),
                self.client.save(Collection.TASKS, tasks),
                self.client.save(Collection.ORGS, orgs),
            )
            logger.info("Seed data saved to backend")
        except Exception as e:
            logger.warning(f"Could not seed initial data to backend: {e}")

    def _restore_from_cache(self) -> None:
        """Populate every collection from its cached snapshot or its fallback."""
        for collection, fallback in _FALLBACKS.items():
            cached = self.cache.get(collection.cache_key)
            if isinstance(cached, list):
                self._set_collection(collection, cached)
            else:
                logger.debug(f"No cached {collection.value}, using fallback data")
                self._set_collection(collection, fallback())

    # ==================== Mutation Propagation ====================

    def sync_users(self, users: list[Record]) -> None:
        self._sync(Collection.USERS, users)

    def sync_tasks(self, tasks: list[Record]) -> None:
        self._sync(Collection.TASKS, tasks)

    def sync_templates(self, templates: list[Record]) -> None:
        self._sync(Collection.TEMPLATES, templates)

    def sync_orgs(self, orgs: list[Record]) -> None:
        self._sync(Collection.ORGS, orgs)

    def _sync(self, collection: Collection, records: list[Record]) -> None:
        """Apply a new collection value locally, then persist it in the background."""
        records = list(records)
        self._set_collection(collection, records)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                f"No event loop running, {collection.value} change kept in local cache only"
            )
            self.cache.set(collection.cache_key, records)
            return

        task = loop.create_task(self._persist(collection, records))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _persist(self, collection: Collection, records: list[Record]) -> bool:
        """Save a collection following the persist policy.

        The value is cached whether or not the save succeeds, so an offline
        reload shows what the user last saw.

        Returns:
            True if the remote store accepted the write.
        """
        max_attempts = max(1, self.persist_policy.max_attempts)
        backoff = self.persist_policy.backoff_seconds

        for attempt in range(1, max_attempts + 1):
            try:
                await self.client.save(collection, records)
            except Exception as e:
                if attempt < max_attempts:
                    logger.warning(
                        f"Saving {collection.value} failed, attempt {attempt}/{max_attempts}: {e}"
                    )
                    await asyncio.sleep(backoff)
                    backoff *= 2
                    continue

                logger.error(f"Failed to save {collection.value}: {e}")
                self.cache.set(collection.cache_key, records)
                return False

            self.cache.set(collection.cache_key, records)
            return True

        return False

    async def wait_for_pending_writes(self) -> None:
        """Wait until every background write has finished."""
        while self._pending_writes:
            await asyncio.gather(*list(self._pending_writes), return_exceptions=True)

    @property
    def pending_writes(self) -> int:
        return len(self._pending_writes)

    @property
    def last_load(self) -> LoadResult | None:
        """Result of the most recent load, if any."""
        return self._last_load

    def get_status(self) -> dict[str, Any]:
        """Get current engine status.

        Returns:
            Dictionary with loading state and collection sizes.
        """
        return {
            "is_loading": self.is_loading,
            "connection_error": self.connection_error,
            "last_load": self._last_load.status.value if self._last_load else None,
            "pending_writes": self.pending_writes,
            "counts": {
                collection.value: len(self.get_collection(collection))
                for collection in Collection
            },
        }

"""End-to-end persistence self-test against the live remote store."""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .models import Collection, Record, Role
from .sync import RemoteStoreClient, SyncEngine

logger = logging.getLogger(__name__)

TEST_ORG_ID = "test_org"


class StepStatus(Enum):
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class TestStepResult:
    """One line of the self-test report."""

    __test__ = False  # Not a pytest test class

    step: str
    status: StepStatus
    message: str
    details: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "step": self.step,
            "status": self.status.value,
            "message": self.message,
            "details": self.details,
        }


class ProbeAborted(Exception):
    """Raised inside the probe to stop at a failed step."""


async def run_backend_test(client: RemoteStoreClient, engine: SyncEngine) -> list[TestStepResult]:
    """Write, read back and remove a synthetic user on the remote store.

    Works on freshly fetched remote data, not on cached or in-memory state.
    On success the cleaned user list is mirrored into ``engine.raw_users``.

    Args:
        client: Client for the store under test.
        engine: Engine whose users are refreshed after cleanup.

    Returns:
        Ordered step results. Failures end with a ``FATAL`` step; this
        function never raises.
    """
    results: list[TestStepResult] = []
    test_id = f"test_user_{int(time.time() * 1000)}"

    def log(step: str, status: StepStatus, message: str, details: Any = None) -> None:
        results.append(TestStepResult(step, status, message, details))
        level = logging.ERROR if status is StepStatus.ERROR else logging.INFO
        logger.log(level, f"[TEST {status.value.upper()}] {step}: {message}")

    try:
        log("1. PRE-CHECK", StepStatus.PENDING, "Fetching current users from backend...")
        try:
            initial_users = await client.fetch(Collection.USERS)
        except Exception as e:
            log("1. PRE-CHECK", StepStatus.ERROR, "Failed to fetch users. Backend likely offline.")
            raise ProbeAborted("Backend offline") from e
        log("1. PRE-CHECK", StepStatus.SUCCESS, f"Fetched {len(initial_users)} users.")

        test_user: Record = {
            "id": test_id,
            "organizationId": TEST_ORG_ID,
            "username": test_id,
            "fullName": "Test Persistence User",
            "role": Role.ANALYST.value,
            "password": "test",
        }

        log("2. WRITE", StepStatus.PENDING, f"Posting new user {test_id} to backend...")
        save_result = await client.save(Collection.USERS, [*initial_users, test_user])
        if not (save_result.success or save_result.count):
            raise ProbeAborted("Backend returned failure on save")
        log("2. WRITE", StepStatus.SUCCESS, "Backend responded with success.")

        log("3. VERIFY", StepStatus.PENDING, "Fetching users again to verify persistence...")
        verified_users = await client.fetch(Collection.USERS)
        found = next((u for u in verified_users if u.get("id") == test_id), None)
        if found is None:
            log("3. VERIFY", StepStatus.ERROR, "User NOT found in backend response.", verified_users)
            raise ProbeAborted("Persistence failed: data was not saved.")
        log("3. VERIFY", StepStatus.SUCCESS, "User found in backend response.", found)

        log("4. CLEANUP", StepStatus.PENDING, "Removing test user...")
        cleaned = [u for u in verified_users if u.get("id") != test_id]
        await client.save(Collection.USERS, cleaned)
        log("4. CLEANUP", StepStatus.SUCCESS, "Test user removed.")

        engine.raw_users = cleaned

    except Exception as e:
        log("FATAL", StepStatus.ERROR, "Test suite failed or backend offline", str(e))

    return results

"""Shared types for tasksync records and collections."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

# Records travel as plain JSON documents between the engine, cache and remote store.
Record = dict[str, Any]

# Tenant id carried by super-admin accounts, which are not bound to one tenant.
SUPER_ADMIN_ORG_ID = "system"


class Collection(Enum):
    """The four named collections of the remote store (value = wire name)."""

    USERS = "users"
    TASKS = "tasks"
    TEMPLATES = "templates"
    ORGS = "orgs"

    @property
    def cache_key(self) -> str:
        """Key of this collection's snapshot in the local cache."""
        return f"cache_{self.value}"


class Role(str, Enum):
    """User roles, most privileged first."""

    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    ANALYST = "ANALYST"


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass
class SaveResult:
    """Acknowledgement returned by the remote store for a save."""

    success: bool
    count: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SaveResult":
        """Create from the service's JSON acknowledgement."""
        return cls(
            success=bool(data.get("success", False)),
            count=int(data.get("count") or 0),
        )


def is_super_admin(user: Record | None) -> bool:
    """Check whether a user record carries the super-admin role."""
    return user is not None and user.get("role") == Role.SUPER_ADMIN.value

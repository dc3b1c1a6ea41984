"""Built-in datasets used to initialize an empty remote store.

Every accessor returns a fresh deep copy so callers may mutate the result
without touching the defaults.
"""

import copy

from .models import SUPER_ADMIN_ORG_ID, Priority, Record, Role, TaskStatus

DEMO_ORG_ID = "org_1"

_SEED_ORGS: list[Record] = [
    {
        "id": DEMO_ORG_ID,
        "name": "Demo Logistics",
        "createdAt": "2024-01-01T00:00:00.000Z",
        "isActive": True,
    },
]

_SEED_USERS: list[Record] = [
    {
        "id": "u_super",
        "organizationId": SUPER_ADMIN_ORG_ID,
        "username": "superadmin",
        "password": "superadmin",
        "fullName": "Platform Administrator",
        "role": Role.SUPER_ADMIN.value,
    },
    {
        "id": "u_admin",
        "organizationId": DEMO_ORG_ID,
        "username": "admin",
        "password": "admin",
        "fullName": "Demo Administrator",
        "role": Role.ADMIN.value,
    },
    {
        "id": "u_analyst",
        "organizationId": DEMO_ORG_ID,
        "username": "analyst",
        "password": "analyst",
        "fullName": "Demo Analyst",
        "role": Role.ANALYST.value,
    },
]

_SEED_TASKS: list[Record] = [
    {
        "id": "0003",
        "organizationId": DEMO_ORG_ID,
        "title": "Review weekly inventory report",
        "description": "Check stock levels against the weekly forecast.",
        "category": "Inventory",
        "priority": Priority.HIGH.value,
        "status": TaskStatus.PENDING.value,
        "assignedTo": "u_analyst",
        "deadline": "2024-01-08T09:00",
        "createdAt": "2024-01-01T00:00:00.000Z",
    },
    {
        "id": "0002",
        "organizationId": DEMO_ORG_ID,
        "title": "Confirm carrier pickups",
        "description": "Call carriers to confirm tomorrow's pickup windows.",
        "category": "Operations",
        "priority": Priority.MEDIUM.value,
        "status": TaskStatus.PENDING.value,
        "assignedTo": "u_analyst",
        "deadline": "2024-01-05T16:00",
        "createdAt": "2024-01-01T00:00:00.000Z",
    },
    {
        "id": "0001",
        "organizationId": DEMO_ORG_ID,
        "title": "Onboard new analyst",
        "description": "Walk through the task board and reporting tools.",
        "category": "People",
        "priority": Priority.LOW.value,
        "status": TaskStatus.COMPLETED.value,
        "assignedTo": "u_admin",
        "deadline": "2024-01-02T10:00",
        "createdAt": "2024-01-01T00:00:00.000Z",
        "completedAt": "2024-01-02T09:30:00.000Z",
        "notes": "Done during the morning stand-up.",
    },
]


def seed_orgs() -> list[Record]:
    return copy.deepcopy(_SEED_ORGS)


def seed_users() -> list[Record]:
    return copy.deepcopy(_SEED_USERS)


def seed_tasks() -> list[Record]:
    return copy.deepcopy(_SEED_TASKS)

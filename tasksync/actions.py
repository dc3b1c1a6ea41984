"""Domain mutation actions for organizations, users, tasks and templates.

Every action computes the derived fields of the records it creates
(identifiers, timestamps, status, tenant) and hands the complete new
collection to the SyncEngine. Actions are silent no-ops while nobody is
signed in.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any

from .export import tasks_to_csv
from .ids import next_id, next_ids, time_id, utc_now_iso
from .models import Record, Role, TaskStatus, is_super_admin
from .sync import SyncEngine

logger = logging.getLogger(__name__)


def parse_day(value: date | datetime | str) -> date:
    """Normalize a date, datetime or ISO string to a calendar day (midnight)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip()[:10])


def days_in_range(start: date | datetime | str, end: date | datetime | str) -> list[date]:
    """Every calendar day from ``start`` to ``end``, both inclusive."""
    current = parse_day(start)
    last = parse_day(end)
    days = []
    while current <= last:
        days.append(current)
        current += timedelta(days=1)
    return days


class DataActions:
    """Create/update/delete operations scoped to the engine's current user."""

    def __init__(self, engine: SyncEngine):
        """Initialize the actions.

        Args:
            engine: Engine owning the canonical collections.
        """
        self.engine = engine

    @property
    def actor(self) -> Record | None:
        return self.engine.current_user

    # ==================== Organizations ====================

    def add_organization(
        self,
        name: str,
        admin_username: str,
        admin_password: str,
        admin_full_name: str,
    ) -> tuple[Record, Record] | None:
        """Create a tenant together with its first administrator.

        Only super-admins may create organizations.

        Returns:
            The new (organization, admin user) pair, or None if not allowed.
        """
        if not is_super_admin(self.actor):
            logger.debug("add_organization ignored: current user is not a super-admin")
            return None

        org_id = time_id("org", self.engine.raw_orgs)
        org = {
            "id": org_id,
            "name": name,
            "createdAt": utc_now_iso(),
            "isActive": True,
        }
        admin = {
            "id": time_id("u", self.engine.raw_users),
            "organizationId": org_id,
            "username": admin_username,
            "password": admin_password,
            "fullName": admin_full_name,
            "role": Role.ADMIN.value,
        }

        self.engine.sync_orgs([*self.engine.raw_orgs, org])
        self.engine.sync_users([*self.engine.raw_users, admin])
        logger.info(f"Created organization {org_id} ({name})")
        return org, admin

    # ==================== Tasks ====================

    def _new_task(self, fields: dict[str, Any], task_id: str, **overrides: Any) -> Record:
        return {
            **fields,
            **overrides,
            "id": task_id,
            "organizationId": self.actor["organizationId"],
            "status": TaskStatus.PENDING.value,
            "createdAt": utc_now_iso(),
        }

    def add_task(self, task: dict[str, Any]) -> Record | None:
        """Create one task at the top of the list."""
        if not self.actor:
            return None

        new_task = self._new_task(task, next_id(self.engine.raw_tasks))
        self.engine.sync_tasks([new_task, *self.engine.raw_tasks])
        return new_task

    def create_task_range(
        self,
        task_base: dict[str, Any],
        deadline_time: str,
        start_date: date | str,
        end_date: date | str,
    ) -> list[Record]:
        """Create one copy of a task for every day of a date range.

        Args:
            task_base: Task fields shared by every copy.
            deadline_time: Time of day of each deadline ("HH:MM").
            start_date: First day (inclusive).
            end_date: Last day (inclusive).

        Returns:
            The new tasks, oldest date first.
        """
        if not self.actor:
            return []

        days = days_in_range(start_date, end_date)
        ids = next_ids(self.engine.raw_tasks, len(days))
        new_tasks = [
            self._new_task(task_base, task_id, deadline=f"{day.isoformat()}T{deadline_time}")
            for day, task_id in zip(days, ids)
        ]

        self.engine.sync_tasks([*new_tasks, *self.engine.raw_tasks])
        return new_tasks

    def update_task(self, task: Record) -> None:
        if not self.actor:
            return
        self.engine.sync_tasks(
            [task if t.get("id") == task.get("id") else t for t in self.engine.raw_tasks]
        )

    def delete_task(self, task_id: str) -> None:
        if not self.actor:
            return
        self.engine.sync_tasks([t for t in self.engine.raw_tasks if t.get("id") != task_id])

    def toggle_task_status(self, task_id: str) -> None:
        """Flip a task between PENDING and COMPLETED, stamping ``completedAt``."""
        if not self.actor:
            return

        def toggled(task: Record) -> Record:
            updated = dict(task)
            if task.get("status") == TaskStatus.COMPLETED.value:
                updated["status"] = TaskStatus.PENDING.value
                updated.pop("completedAt", None)
            else:
                updated["status"] = TaskStatus.COMPLETED.value
                updated["completedAt"] = utc_now_iso()
            return updated

        self.engine.sync_tasks(
            [toggled(t) if t.get("id") == task_id else t for t in self.engine.raw_tasks]
        )

    def update_task_notes(self, task_id: str, notes: str) -> None:
        if not self.actor:
            return
        self.engine.sync_tasks(
            [{**t, "notes": notes} if t.get("id") == task_id else t for t in self.engine.raw_tasks]
        )

    # ==================== Users ====================

    def add_user(self, full_name: str, username: str, password: str, role: Role | str) -> Record | None:
        """Create a user in the current user's organization."""
        if not self.actor:
            return None

        user = {
            "id": time_id("u", self.engine.raw_users),
            "organizationId": self.actor["organizationId"],
            "fullName": full_name,
            "username": username,
            "password": password,
            "role": Role(role).value,
        }
        self.engine.sync_users([*self.engine.raw_users, user])
        return user

    def reset_user_password(self, user_id: str, new_password: str) -> None:
        if not self.actor:
            return
        self.engine.sync_users(
            [
                {**u, "password": new_password} if u.get("id") == user_id else u
                for u in self.engine.raw_users
            ]
        )

    # ==================== Templates ====================

    def save_template(self, template: dict[str, Any]) -> Record | None:
        """Insert or replace a template, always in the current user's organization."""
        if not self.actor:
            return None

        full_template = {**template, "organizationId": self.actor["organizationId"]}
        templates = self.engine.raw_templates

        if any(t.get("id") == template.get("id") for t in templates):
            updated = [full_template if t.get("id") == template.get("id") else t for t in templates]
        else:
            updated = [*templates, full_template]

        self.engine.sync_templates(updated)
        return full_template

    def delete_template(self, template_id: str) -> None:
        if not self.actor:
            return
        self.engine.sync_templates(
            [t for t in self.engine.raw_templates if t.get("id") != template_id]
        )

    def assign_template_to_user(
        self,
        template_id: str,
        user_id: str,
        start_date: date | str,
        end_date: date | str,
    ) -> list[Record]:
        """Stamp out a template's items as tasks for every day of a range.

        Tasks are ordered by day, then by the template's item order, and
        prepended as one block.

        Returns:
            The new tasks, or an empty list if the template is unknown.
        """
        if not self.actor:
            return []

        template = next((t for t in self.engine.raw_templates if t.get("id") == template_id), None)
        if template is None:
            logger.debug(f"assign_template_to_user ignored: unknown template {template_id}")
            return []

        items = template.get("items") or []
        slots = [(day, item) for day in days_in_range(start_date, end_date) for item in items]
        ids = next_ids(self.engine.raw_tasks, len(slots))

        new_tasks = []
        for (day, item), task_id in zip(slots, ids):
            fields = {
                "title": item.get("title"),
                "description": item.get("description"),
                "category": item.get("category"),
                "priority": item.get("priority"),
                "assignedTo": user_id,
            }
            new_tasks.append(
                self._new_task(fields, task_id, deadline=f"{day.isoformat()}T{item.get('timeOffset')}")
            )

        self.engine.sync_tasks([*new_tasks, *self.engine.raw_tasks])
        logger.info(f"Assigned template {template_id} to {user_id}: {len(new_tasks)} tasks")
        return new_tasks

    # ==================== Export ====================

    def export_csv(self) -> str:
        """Visible tasks as CSV text. Read-only."""
        return tasks_to_csv(self.engine.tasks, self.engine.users)

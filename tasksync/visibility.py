"""Tenant visibility rules over the raw, tenant-agnostic collections."""

from dataclasses import dataclass, field

from .models import Record, is_super_admin


@dataclass
class TenantView:
    """The slice of each collection an actor may see."""

    users: list[Record] = field(default_factory=list)
    tasks: list[Record] = field(default_factory=list)
    templates: list[Record] = field(default_factory=list)
    organizations: list[Record] = field(default_factory=list)


def _same_tenant(records: list[Record], organization_id: str | None) -> list[Record]:
    return [r for r in records if r.get("organizationId") == organization_id]


def visible_users(actor: Record | None, users: list[Record]) -> list[Record]:
    if actor is None:
        return []
    if is_super_admin(actor):
        return users
    return _same_tenant(users, actor.get("organizationId"))


def visible_tasks(actor: Record | None, tasks: list[Record]) -> list[Record]:
    # Super-admins manage tenants and accounts, never task content.
    if actor is None or is_super_admin(actor):
        return []
    return _same_tenant(tasks, actor.get("organizationId"))


def visible_templates(actor: Record | None, templates: list[Record]) -> list[Record]:
    if actor is None or is_super_admin(actor):
        return []
    return _same_tenant(templates, actor.get("organizationId"))


def visible_organizations(actor: Record | None, orgs: list[Record]) -> list[Record]:
    return orgs if is_super_admin(actor) else []


def filter_for_actor(
    actor: Record | None,
    users: list[Record],
    tasks: list[Record],
    templates: list[Record],
    orgs: list[Record],
) -> TenantView:
    """Derive every visible collection for ``actor`` in one call.

    Args:
        actor: Current user record, or None when nobody is signed in.
        users: Raw users collection.
        tasks: Raw tasks collection.
        templates: Raw templates collection.
        orgs: Raw organizations collection.

    Returns:
        TenantView holding the filtered collections.
    """
    return TenantView(
        users=visible_users(actor, users),
        tasks=visible_tasks(actor, tasks),
        templates=visible_templates(actor, templates),
        organizations=visible_organizations(actor, orgs),
    )

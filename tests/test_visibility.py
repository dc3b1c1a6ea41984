"""Tests for tenant visibility filtering."""

import pytest

from tasksync.visibility import filter_for_actor


@pytest.fixture
def dataset(org_users):
    tasks = [
        {"id": "0001", "organizationId": "org_a", "title": "A task"},
        {"id": "0002", "organizationId": "org_b", "title": "B task"},
        {"id": "0003", "organizationId": "org_a", "title": "Another A task"},
    ]
    templates = [
        {"id": "t1", "organizationId": "org_a", "items": []},
        {"id": "t2", "organizationId": "org_b", "items": []},
    ]
    orgs = [{"id": "org_a", "name": "A"}, {"id": "org_b", "name": "B"}]
    return org_users, tasks, templates, orgs


def _by_id(users, user_id):
    return next(u for u in users if u["id"] == user_id)


class TestFilterForActor:
    """Tests for filter_for_actor."""

    def test_no_actor_sees_nothing(self, dataset):
        view = filter_for_actor(None, *dataset)

        assert view.users == []
        assert view.tasks == []
        assert view.templates == []
        assert view.organizations == []

    def test_super_admin_sees_tenants_and_accounts_only(self, dataset):
        users, tasks, templates, orgs = dataset
        view = filter_for_actor(_by_id(users, "u_super"), *dataset)

        assert view.users == users
        assert view.organizations == orgs
        assert view.tasks == []
        assert view.templates == []

    def test_tenant_actor_sees_own_organization(self, dataset):
        users = dataset[0]
        view = filter_for_actor(_by_id(users, "u_a2"), *dataset)

        assert [u["id"] for u in view.users] == ["u_a1", "u_a2"]
        assert [t["id"] for t in view.tasks] == ["0001", "0003"]
        assert [t["id"] for t in view.templates] == ["t1"]
        assert view.organizations == []

    @pytest.mark.parametrize("actor_id", ["u_a1", "u_a2", "u_b1"])
    def test_tenant_isolation(self, dataset, actor_id):
        actor = _by_id(dataset[0], actor_id)
        view = filter_for_actor(actor, *dataset)

        for record in [*view.users, *view.tasks, *view.templates]:
            assert record["organizationId"] == actor["organizationId"]

    def test_filter_preserves_order(self, dataset):
        users, tasks, templates, orgs = dataset
        reversed_tasks = list(reversed(tasks))
        view = filter_for_actor(_by_id(users, "u_a1"), users, reversed_tasks, templates, orgs)

        assert [t["id"] for t in view.tasks] == ["0003", "0001"]

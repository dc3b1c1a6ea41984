"""Tests for the remote store service and its client."""

import asyncio
import sqlite3
import time
from unittest.mock import MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from tasksync.config import Config
from tasksync.models import Collection
from tasksync.server import DocumentStore, create_app
from tasksync.sync import RemoteStoreClient, RemoteStoreError

API_URL = "http://testserver/api"


@pytest.fixture
def document_store():
    """Create an in-memory DocumentStore."""
    store = DocumentStore(":memory:")
    store.connect()
    yield store
    store.close()


@pytest.fixture
def app(document_store):
    return create_app(Config(), document_store)


@pytest.fixture
def http(app):
    """Create a test client."""
    return TestClient(app)


@pytest.fixture
def remote_client(app):
    """RemoteStoreClient talking to the in-process app."""
    return RemoteStoreClient(api_url=API_URL, transport=httpx.ASGITransport(app=app))


def _failing_client(handler) -> RemoteStoreClient:
    return RemoteStoreClient(api_url=API_URL, transport=httpx.MockTransport(handler))


class TestDocumentStore:
    """Tests for DocumentStore."""

    def test_get_missing(self, document_store):
        assert document_store.get("users") is None

    def test_put_replaces(self, document_store):
        document_store.put("tasks", [{"id": "0001"}, {"id": "0002"}])
        document_store.put("tasks", [{"id": "0003"}])

        assert document_store.get("tasks") == [{"id": "0003"}]

    def test_get_stats(self, document_store):
        document_store.put("users", [{"id": "a"}, {"id": "b"}])
        document_store.put("orgs", {"id": "single"})

        assert document_store.get_stats() == {"orgs": 1, "users": 2}


class TestStoreEndpoint:
    """Tests for the /api route."""

    def test_health(self, http):
        response = http.get("/api", params={"type": "health"})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert isinstance(data["timestamp"], int)

    def test_get_empty_collection(self, http):
        response = http.get("/api", params={"type": "users"})

        assert response.status_code == 200
        assert response.json() == []

    def test_post_then_get(self, http):
        records = [{"id": "0001", "title": "Task"}, {"id": "0002", "title": "Other"}]

        post = http.post("/api", params={"type": "tasks"}, json=records)
        get = http.get("/api", params={"type": "tasks"})

        assert post.status_code == 200
        assert post.json() == {"success": True, "count": 2}
        assert get.json() == records

    def test_post_object_counts_one(self, http):
        response = http.post("/api", params={"type": "orgs"}, json={"id": "org_1"})
        assert response.json() == {"success": True, "count": 1}

    @pytest.mark.parametrize("params", [{}, {"type": "projects"}])
    def test_invalid_type(self, http, params):
        response = http.get("/api", params=params)

        assert response.status_code == 400
        assert "type" in response.json()["error"]

    def test_missing_body(self, http):
        response = http.post("/api", params={"type": "users"}, content=b"")

        assert response.status_code == 400
        assert response.json()["error"] == "Missing body"

    def test_null_body(self, http):
        response = http.post(
            "/api",
            params={"type": "users"},
            content=b"null",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400

    def test_invalid_json_body(self, http):
        response = http.post(
            "/api",
            params={"type": "users"},
            content=b"{oops",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400

    def test_method_not_allowed(self, http):
        response = http.delete("/api", params={"type": "users"})

        assert response.status_code == 405

    def test_options_returns_no_content(self, http):
        response = http.options("/api", params={"type": "users"})

        assert response.status_code == 204

    def test_cors_headers(self, http):
        response = http.get(
            "/api",
            params={"type": "users"},
            headers={"Origin": "https://example.com"},
        )
        assert response.headers["access-control-allow-origin"] == "*"

    def test_cors_preflight(self, http):
        response = http.options(
            "/api?type=tasks",
            headers={
                "Origin": "https://example.com",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert response.status_code == 200
        assert "POST" in response.headers["access-control-allow-methods"]

    def test_storage_failure_is_server_error(self):
        store = MagicMock(spec=DocumentStore)
        store.get.side_effect = sqlite3.OperationalError("database is locked")
        http = TestClient(create_app(Config(), store))

        response = http.get("/api", params={"type": "users"})

        assert response.status_code == 500
        assert response.json()["error"] == "database is locked"


class TestRemoteStoreClient:
    """Tests for RemoteStoreClient against the in-process service."""

    @pytest.mark.asyncio
    async def test_health_check(self, remote_client):
        assert await remote_client.health_check() is True
        await remote_client.close()

    @pytest.mark.asyncio
    async def test_save_and_fetch(self, remote_client):
        records = [{"id": "u_1", "organizationId": "org_a"}]

        result = await remote_client.save(Collection.USERS, records)
        fetched = await remote_client.fetch(Collection.USERS)

        assert result.success is True
        assert result.count == 1
        assert fetched == records
        await remote_client.close()

    @pytest.mark.asyncio
    async def test_fetch_empty(self, remote_client):
        assert await remote_client.fetch(Collection.TEMPLATES) == []
        await remote_client.close()

    @pytest.mark.asyncio
    async def test_orgs_wire_name(self, remote_client, document_store):
        await remote_client.save(Collection.ORGS, [{"id": "org_1"}])

        assert document_store.get("orgs") == [{"id": "org_1"}]
        await remote_client.close()

    @pytest.mark.asyncio
    async def test_health_check_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = _failing_client(handler)
        assert await client.health_check() is False
        await client.close()

    @pytest.mark.asyncio
    async def test_health_check_hanging_store(self):
        async def handler(request):
            await asyncio.sleep(10)
            return httpx.Response(200, json={"status": "ok"})

        client = RemoteStoreClient(
            api_url=API_URL,
            health_timeout=0.05,
            transport=httpx.MockTransport(handler),
        )

        started = time.monotonic()
        healthy = await client.health_check()
        elapsed = time.monotonic() - started
        await client.close()

        assert healthy is False
        assert elapsed < 1.0

    @pytest.mark.asyncio
    async def test_health_check_server_error(self):
        client = _failing_client(lambda request: httpx.Response(503))
        assert await client.health_check() is False
        await client.close()

    @pytest.mark.asyncio
    async def test_fetch_server_error_raises(self):
        client = _failing_client(
            lambda request: httpx.Response(500, json={"error": "Internal Server Error"})
        )

        with pytest.raises(RemoteStoreError, match="HTTP 500"):
            await client.fetch(Collection.USERS)
        await client.close()

    @pytest.mark.asyncio
    async def test_save_connection_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = _failing_client(handler)

        with pytest.raises(RemoteStoreError, match="Connection failed"):
            await client.save(Collection.TASKS, [])
        await client.close()

    @pytest.mark.asyncio
    async def test_fetch_timeout_raises(self):
        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        client = _failing_client(handler)

        with pytest.raises(RemoteStoreError, match="timeout"):
            await client.fetch(Collection.TASKS)
        await client.close()

    @pytest.mark.asyncio
    async def test_fetch_non_list_raises(self):
        client = _failing_client(lambda request: httpx.Response(200, json={"unexpected": True}))

        with pytest.raises(RemoteStoreError, match="Expected a list"):
            await client.fetch(Collection.USERS)
        await client.close()

    @pytest.mark.asyncio
    async def test_fetch_sends_type_param(self):
        seen = []

        def handler(request):
            seen.append(request.url.params["type"])
            return httpx.Response(200, json=[])

        client = _failing_client(handler)
        await client.fetch(Collection.ORGS)
        await client.close()

        assert seen == ["orgs"]

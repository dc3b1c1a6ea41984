"""Tests for CLI command resource cleanup."""

import argparse
from unittest.mock import AsyncMock, patch

import pytest

from tasksync.__main__ import cmd_diagnose, cmd_export, cmd_tasks


@pytest.fixture(autouse=True)
def cache_path(tmp_path, monkeypatch):
    monkeypatch.setenv("TASKSYNC_CACHE_DB_PATH", str(tmp_path / "cache.db"))


@pytest.fixture
def signed_in(engine, org_users):
    engine.raw_users = list(org_users)
    engine.raw_tasks = [{"id": "0001", "organizationId": "org_a", "title": "Task"}]
    engine.set_current_user(org_users[1])
    return engine


class TestClientCleanup:
    """The HTTP client is closed even when a command fails midway."""

    @pytest.mark.asyncio
    async def test_tasks_closes_client(self, signed_in, capsys):
        client = AsyncMock()

        with patch("tasksync.__main__._load_as", AsyncMock(return_value=(client, signed_in))):
            code = await cmd_tasks(argparse.Namespace(config=None, user="alice"))

        assert code == 0
        assert "0001" in capsys.readouterr().out
        client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_export_failure_closes_client(self, signed_in, tmp_path):
        client = AsyncMock()
        args = argparse.Namespace(config=None, user="alice", output=tmp_path / "out.csv")

        with patch("tasksync.__main__._load_as", AsyncMock(return_value=(client, signed_in))), \
                patch("tasksync.export.write_csv", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                await cmd_export(args)

        client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_diagnose_failure_closes_client(self, engine):
        client = AsyncMock()

        with patch("tasksync.__main__._build_engine", return_value=(client, engine)), \
                patch("tasksync.diagnostics.run_backend_test", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                await cmd_diagnose(argparse.Namespace(config=None, json=False))

        client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_user_returns_error(self):
        with patch("tasksync.__main__._load_as", AsyncMock(return_value=None)):
            code = await cmd_tasks(argparse.Namespace(config=None, user="nobody"))

        assert code == 1

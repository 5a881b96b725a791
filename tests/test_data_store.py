"""
Tests for secgate.services.data_store and secgate.services.account_pools.
"""

import pytest

from secgate.core.account_pool import VariableConfig
from secgate.services.account_pools import load_accounts, prepare_stored_account_pools
from secgate.services.data_store import EntityNotFoundError


# ===================================================================
# Repository CRUD
# ===================================================================

class TestSqlAlchemyRepository:

    async def test_create_and_find(self, data_store):
        created = await data_store.drop_rules.create({"name": "Health", "match_path": "/health"})

        assert created["id"]
        assert created["priority"] == 100
        assert created["is_enabled"] is True
        assert await data_store.drop_rules.find_by_id(created["id"]) == created

    async def test_find_by_unknown_id(self, data_store):
        assert await data_store.drop_rules.find_by_id("missing") is None

    async def test_where_filter_and_count(self, data_store):
        await data_store.drop_rules.create({"name": "A", "is_enabled": True})
        await data_store.drop_rules.create({"name": "B", "is_enabled": False})

        enabled = await data_store.drop_rules.find_all(where={"is_enabled": True})

        assert [r["name"] for r in enabled] == ["A"]
        assert await data_store.drop_rules.count() == 2
        assert await data_store.drop_rules.count({"is_enabled": False}) == 1

    async def test_limit_and_offset(self, data_store):
        for name in ("A", "B", "C"):
            await data_store.drop_rules.create({"name": name})

        page = await data_store.drop_rules.find_all(limit=1, offset=1)

        assert len(page) == 1

    async def test_partial_update(self, data_store):
        created = await data_store.drop_rules.create({"name": "A", "priority": 5})

        updated = await data_store.drop_rules.update(created["id"], {"priority": 1})

        assert updated["priority"] == 1
        assert updated["name"] == "A"

    async def test_update_unknown_id(self, data_store):
        with pytest.raises(EntityNotFoundError) as exc:
            await data_store.drop_rules.update("missing", {"priority": 1})
        assert exc.value.entity_id == "missing"

    async def test_delete(self, data_store):
        created = await data_store.drop_rules.create({"name": "A"})
        assert await data_store.drop_rules.delete(created["id"]) is True
        assert await data_store.drop_rules.delete(created["id"]) is False

    async def test_unknown_field_rejected(self, data_store):
        with pytest.raises(ValueError):
            await data_store.drop_rules.create({"name": "A", "colour": "red"})
        with pytest.raises(ValueError):
            await data_store.drop_rules.find_all(where={"metadata": {}})

    async def test_security_run_metadata_alias(self, data_store):
        run = await data_store.security_runs.create({"status": "running", "metadata": {"suite": "P0"}})
        assert run["metadata"] == {"suite": "P0"}

        updated = await data_store.security_runs.update(run["id"], {"metadata": {"suite": "P1"}})
        assert updated["metadata"] == {"suite": "P1"}


# ===================================================================
# Stored account pools
# ===================================================================

class TestStoredAccountPools:

    @pytest.fixture
    async def stored_accounts(self, data_store):
        alice = await data_store.accounts.create({"name": "alice", "fields": {"user_id": "u1"}})
        bob = await data_store.accounts.create({"name": "bob", "fields": {"user_id": "u2", "token": "t"}})
        carol = await data_store.accounts.create({"name": "carol", "fields": {}})
        return alice, bob, carol

    async def test_load_all(self, data_store, stored_accounts):
        accounts = await load_accounts(data_store)
        assert sorted(a.name for a in accounts) == ["alice", "bob", "carol"]

    async def test_load_selected_in_given_order(self, data_store, stored_accounts):
        alice, bob, _ = stored_accounts
        accounts = await load_accounts(data_store, [bob["id"], "ghost", alice["id"]])
        assert [a.name for a in accounts] == ["bob", "alice"]

    async def test_prepare_from_store(self, data_store, stored_accounts):
        alice, bob, _ = stored_accounts
        variables = [
            VariableConfig(name="uid", data_source="account_field", account_field_name="user_id"),
            VariableConfig(name="tok", data_source="account_field", account_field_name="token"),
        ]

        prepared = await prepare_stored_account_pools(data_store, variables, "per_account")

        assert prepared.valid is True
        assert [a.id for a in prepared.filtered_accounts] == [bob["id"]]


# ===================================================================
# Database bootstrap
# ===================================================================

class TestInitDb:

    async def test_creates_directory_and_tables(self, tmp_path, monkeypatch):
        from sqlalchemy import inspect
        from sqlalchemy.ext.asyncio import create_async_engine

        from secgate.config import settings
        from secgate.db import database

        url = f"sqlite+aiosqlite:///{tmp_path}/nested/secgate.db"
        engine = create_async_engine(url)
        monkeypatch.setattr(settings, "DATABASE_URL", url)
        monkeypatch.setattr(database, "engine", engine)

        await database.init_db()

        assert (tmp_path / "nested").is_dir()
        async with engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        assert {"security_runs", "test_runs", "finding_drop_rules", "gate_policies"} <= set(tables)

        await engine.dispose()

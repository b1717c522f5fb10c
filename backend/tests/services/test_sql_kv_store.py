"""SQL Key-Value Store — kv_entries table on in-memory SQLite.

Tests cover:
    - get/put/delete round-trip through the JSON column
    - update() creates missing keys from the default and bumps the version
    - Persistent version conflicts raise ConcurrencyError after bounded retries
"""

import pytest
from sqlalchemy import select

from finledger.core.errors import ConcurrencyError
from finledger.infrastructure.database import DatabaseSessionManager
from finledger.infrastructure.kv_store import SqlKeyValueStore
from finledger.models.kv_entry import KeyValueEntry
from finledger.services.ledger_store import LedgerStore

from tests.services.fakes import make_tx


@pytest.fixture
async def sql_db():
    db = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    await db.create_schema()
    yield db
    await db.close()


async def _version(db, key):
    async with db.session() as session:
        return (await session.execute(
            select(KeyValueEntry.version).where(KeyValueEntry.key == key)
        )).scalar_one()


async def test_get_put_delete(sql_db):
    store = SqlKeyValueStore(sql_db)
    assert await store.get("budgets") is None
    await store.put("budgets", {"food": "100.00"})
    assert await store.get("budgets") == {"food": "100.00"}
    await store.put("budgets", {"food": "200.00"})
    assert await store.get("budgets") == {"food": "200.00"}
    await store.delete("budgets")
    assert await store.get("budgets") is None


async def test_update_creates_then_increments_version(sql_db):
    store = SqlKeyValueStore(sql_db)
    await store.update("transactions", lambda cur: cur + ["a"], default=[])
    assert await _version(sql_db, "transactions") == 1
    await store.update("transactions", lambda cur: cur + ["b"], default=[])
    assert await store.get("transactions") == ["a", "b"]
    assert await _version(sql_db, "transactions") == 2


async def test_update_raises_concurrency_error_when_version_keeps_moving(sql_db, monkeypatch):
    store = SqlKeyValueStore(sql_db, max_cas_retries=3)
    attempts = []

    async def always_conflict(key, mutator, default):
        attempts.append(key)
        return False, None

    monkeypatch.setattr(store, "_try_update", always_conflict)
    with pytest.raises(ConcurrencyError) as exc:
        await store.update("transactions", lambda cur: cur, default=[])
    assert exc.value.code == "CONCURRENCY_CONFLICT"
    assert len(attempts) == 3


async def test_ledger_store_over_sql(sql_db):
    ledger = LedgerStore(SqlKeyValueStore(sql_db))
    await ledger.append_transaction(make_tx("9.99", "Streaming"))
    await ledger.append_transaction(make_tx("20", "Taxi"))
    listed = await ledger.list_transactions()
    assert [tx.description for tx in listed] == ["Streaming", "Taxi"]

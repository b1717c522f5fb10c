"""Ledger Store — typed transactions and budgets over a KeyValueStore.

Tests cover:
    - Append/list round-trip preserves ledger order
    - remove_transaction removes exactly the first match; no match → no mutation
    - Malformed stored entries are skipped, never aggregated
    - set_budget returns the previous limit (latest write wins)
"""

from datetime import date
from decimal import Decimal

from finledger.core.domain_types import Category, StoreKey
from finledger.infrastructure.kv_store import InMemoryKeyValueStore
from finledger.services.ledger_store import LedgerStore

from tests.services.fakes import make_tx


async def test_append_and_list_preserves_order(ledger):
    first = await ledger.append_transaction(make_tx("10", "Coffee"))
    second = await ledger.append_transaction(make_tx("20", "Lunch"))
    listed = await ledger.list_transactions()
    assert [tx.id for tx in listed] == [first.id, second.id]
    assert listed[0].amount == Decimal("10.00")


async def test_remove_transaction_removes_only_first_match(ledger):
    await ledger.append_transaction(make_tx("4", "Coffee beans"))
    await ledger.append_transaction(make_tx("5", "Coffee shop"))
    removed = await ledger.remove_transaction(lambda tx: "coffee" in tx.description.lower())
    assert removed.description == "Coffee beans"
    remaining = await ledger.list_transactions()
    assert [tx.description for tx in remaining] == ["Coffee shop"]


async def test_remove_transaction_no_match_leaves_ledger_unchanged(ledger, kv_store):
    await ledger.append_transaction(make_tx("4", "Coffee"))
    before = await kv_store.get(StoreKey.TRANSACTIONS.value)
    assert await ledger.remove_transaction(lambda tx: False) is None
    assert await kv_store.get(StoreKey.TRANSACTIONS.value) == before


async def test_malformed_entries_are_skipped():
    good = make_tx("12", "Groceries").to_storage()
    store = InMemoryKeyValueStore({
        StoreKey.TRANSACTIONS.value: [
            good,
            {"amount": "-5", "description": "bad", "category": "food",
             "type": "expense", "date": "2025-09-01"},
            {"amount": "5", "description": "bad", "category": "groceries",
             "type": "expense", "date": "2025-09-01"},
            "not a record",
        ],
    })
    listed = await LedgerStore(store).list_transactions()
    assert [tx.description for tx in listed] == ["Groceries"]


async def test_set_budget_returns_previous_limit(ledger):
    assert await ledger.set_budget(Category.FOOD, Decimal("300.00")) is None
    assert await ledger.set_budget(Category.FOOD, Decimal("450.00")) == Decimal("300.00")
    assert await ledger.get_budgets() == {Category.FOOD: Decimal("450.00")}


async def test_replace_all_resets_transactions_and_budgets(ledger):
    await ledger.append_transaction(make_tx("1", "Old"))
    await ledger.set_budget(Category.FOOD, Decimal("10.00"))
    new = [make_tx("7", "New", day=date(2025, 10, 1))]
    await ledger.replace_all(new, {Category.SHOPPING: Decimal("99.00")})
    assert [tx.description for tx in await ledger.list_transactions()] == ["New"]
    assert await ledger.get_budgets() == {Category.SHOPPING: Decimal("99.00")}

"""Ledger Store — typed transaction list and budget map over a KeyValueStore.

Invariants:
    - Stored entries are validated into Transaction on every read; malformed entries are
      logged and skipped, so they never reach aggregation
    - No computed fields are stored: only raw transactions and category → limit
    - Every mutation goes through KeyValueStore.update (serialized read-modify-write)
    - remove_transaction removes at most one record: the first match in ledger order
"""

import logging
from decimal import Decimal
from typing import Any, Callable, Iterable

from pydantic import ValidationError

from finledger.core.domain_types import Category, StoreKey
from finledger.core.records import Transaction, to_money
from finledger.core.repository_protocols import KeyValueStore

logger = logging.getLogger(__name__)


def parse_transactions(raw: Any) -> list[Transaction]:
    """Validate stored entries; drop (and log) anything that is not a Transaction."""
    if not isinstance(raw, list):
        return []
    parsed: list[Transaction] = []
    for index, entry in enumerate(raw):
        try:
            parsed.append(Transaction.model_validate(entry))
        except ValidationError as e:
            logger.warning(
                f"Skipping malformed ledger entry at index {index}: {e.error_count()} errors",
            )
    return parsed


def parse_budgets(raw: Any) -> dict[Category, Decimal]:
    if not isinstance(raw, dict):
        return {}
    budgets: dict[Category, Decimal] = {}
    for key, value in raw.items():
        try:
            category = Category(key)
            limit = to_money(value)
        except (ValueError, ArithmeticError, TypeError):
            logger.warning(f"Skipping malformed budget entry '{key}'")
            continue
        if limit > 0:
            budgets[category] = limit
    return budgets


def dump_budgets(budgets: dict[Category, Decimal]) -> dict[str, str]:
    return {category.value: str(limit) for category, limit in budgets.items()}


class LedgerStore:
    """Transactions and budgets for one ledger (one KeyValueStore)."""

    def __init__(self, store: KeyValueStore):
        self._store = store

    # -- Transactions ---------------------------------------------------------

    async def list_transactions(self) -> list[Transaction]:
        return parse_transactions(await self._store.get(StoreKey.TRANSACTIONS.value))

    async def append_transaction(self, tx: Transaction) -> Transaction:
        def _append(current: Any) -> list:
            entries = current if isinstance(current, list) else []
            entries.append(tx.to_storage())
            return entries

        await self._store.update(StoreKey.TRANSACTIONS.value, _append, default=[])
        return tx

    async def remove_transaction(
        self, predicate: Callable[[Transaction], bool],
    ) -> Transaction | None:
        """Remove the first transaction (ledger order) satisfying predicate."""
        removed: list[Transaction] = []

        def _remove(current: Any) -> list:
            removed.clear()
            entries = current if isinstance(current, list) else []
            kept = []
            for entry in entries:
                if not removed:
                    try:
                        tx = Transaction.model_validate(entry)
                    except ValidationError:
                        tx = None
                    if tx is not None and predicate(tx):
                        removed.append(tx)
                        continue
                kept.append(entry)
            return kept

        await self._store.update(StoreKey.TRANSACTIONS.value, _remove, default=[])
        return removed[0] if removed else None

    async def replace_transactions(self, transactions: Iterable[Transaction]) -> None:
        await self._store.put(
            StoreKey.TRANSACTIONS.value, [tx.to_storage() for tx in transactions],
        )

    # -- Budgets --------------------------------------------------------------

    async def get_budgets(self) -> dict[Category, Decimal]:
        return parse_budgets(await self._store.get(StoreKey.BUDGETS.value))

    async def set_budget(self, category: Category, amount: Decimal) -> Decimal | None:
        """Latest write wins. Returns the previous limit, if any."""
        previous: list[Decimal | None] = [None]

        def _set(current: Any) -> dict:
            budgets = parse_budgets(current)
            previous[0] = budgets.get(category)
            budgets[category] = amount
            return dump_budgets(budgets)

        await self._store.update(StoreKey.BUDGETS.value, _set, default={})
        return previous[0]

    async def replace_all(
        self,
        transactions: Iterable[Transaction],
        budgets: dict[Category, Decimal] | None = None,
    ) -> None:
        """Reset the ledger (used by reset and sample seeding)."""
        await self.replace_transactions(transactions)
        await self._store.put(StoreKey.BUDGETS.value, dump_budgets(budgets or {}))

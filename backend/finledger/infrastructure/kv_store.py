"""Key-Value Stores — the opaque fixed-key object that persists ledger state.

Invariants:
    - Values are JSON-compatible documents; callers get deep copies, never shared references
    - update() is the only read-modify-write path: writers on one store instance are
      serialized by an asyncio.Lock
    - SqlKeyValueStore.update additionally compare-and-swaps on the row version, retrying
      a bounded number of times before raising ConcurrencyError
    - The mutator may run more than once (on retry); it must not leak side effects

Design Decisions:
    - In-memory store for tests and ephemeral runs; SQL store for anything persistent
"""

import asyncio
import copy
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from finledger.core.errors import ConcurrencyError, ErrorContext
from finledger.core.repository_protocols import Mutator
from finledger.infrastructure.database import DatabaseSessionManager
from finledger.models.kv_entry import KeyValueEntry

logger = logging.getLogger(__name__)


class InMemoryKeyValueStore:
    """Process-local dict implementation of KeyValueStore."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = copy.deepcopy(initial or {})
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Any | None:
        return copy.deepcopy(self._data.get(key))

    async def put(self, key: str, value: Any) -> None:
        async with self._lock:
            self._data[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._data.pop(key, None)

    async def update(self, key: str, mutator: Mutator, default: Any = None) -> Any:
        async with self._lock:
            current = copy.deepcopy(self._data.get(key, default))
            new_value = mutator(current)
            self._data[key] = copy.deepcopy(new_value)
            return new_value


class SqlKeyValueStore:
    """KeyValueStore over the kv_entries table (SQLAlchemy async)."""

    def __init__(self, db: DatabaseSessionManager, max_cas_retries: int = 5):
        self._db = db
        self._lock = asyncio.Lock()
        self.max_cas_retries = max_cas_retries

    async def get(self, key: str) -> Any | None:
        async with self._db.session() as session:
            row = await session.get(KeyValueEntry, key)
            return copy.deepcopy(row.value) if row else None

    async def put(self, key: str, value: Any) -> None:
        async with self._lock:
            async with self._db.session() as session:
                row = await session.get(KeyValueEntry, key)
                if row is None:
                    session.add(KeyValueEntry(key=key, value=value, version=1))
                else:
                    await session.execute(
                        update(KeyValueEntry)
                        .where(KeyValueEntry.key == key)
                        .values(
                            value=value,
                            version=KeyValueEntry.version + 1,
                            updated_at=datetime.now(timezone.utc),
                        )
                        .execution_options(synchronize_session=False)
                    )
                await session.commit()

    async def delete(self, key: str) -> None:
        async with self._lock:
            async with self._db.session() as session:
                await session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
                await session.commit()

    async def update(self, key: str, mutator: Mutator, default: Any = None) -> Any:
        async with self._lock:
            for attempt in range(self.max_cas_retries):
                written, new_value = await self._try_update(key, mutator, default)
                if written:
                    return new_value
                logger.warning(
                    f"Version conflict on '{key}', retrying",
                    extra={"attempt": attempt + 1},
                )
        raise ConcurrencyError(
            f"Key '{key}' kept changing during update",
            context=ErrorContext(debug_info={"key": key, "retries": self.max_cas_retries}),
        )

    async def _try_update(
        self, key: str, mutator: Mutator, default: Any,
    ) -> tuple[bool, Any]:
        """One compare-and-swap attempt. Returns (written, new_value)."""
        async with self._db.session() as session:
            row = (await session.execute(
                select(KeyValueEntry.value, KeyValueEntry.version)
                .where(KeyValueEntry.key == key)
            )).first()

            if row is None:
                new_value = mutator(copy.deepcopy(default))
                session.add(KeyValueEntry(key=key, value=new_value, version=1))
                try:
                    await session.commit()
                except IntegrityError:
                    await session.rollback()
                    return False, None
                return True, new_value

            current, version = row
            new_value = mutator(copy.deepcopy(current))
            result = await session.execute(
                update(KeyValueEntry)
                .where(KeyValueEntry.key == key, KeyValueEntry.version == version)
                .values(
                    value=new_value,
                    version=version + 1,
                    updated_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                await session.rollback()
                return False, None
            await session.commit()
            return True, new_value

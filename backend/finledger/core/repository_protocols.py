"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO (persistence, inference, embeddings, vector search) accessed through Protocols
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, fakes in tests need no base class
"""

from datetime import date
from typing import Any, Callable, Protocol

from finledger.core.records import RetrievalMatch


Mutator = Callable[[Any], Any]


class KeyValueStore(Protocol):
    """Opaque fixed-key object holding ledger state (JSON-compatible values)."""
    async def get(self, key: str) -> Any | None: ...
    async def put(self, key: str, value: Any) -> None: ...
    async def delete(self, key: str) -> None: ...
    async def update(self, key: str, mutator: Mutator, default: Any = None) -> Any:
        """Atomically apply mutator(current) and store the result. Returns the new value."""
        ...


class InferenceClient(Protocol):
    """(system prompt, message history) → text."""
    async def complete(
        self,
        system: str,
        messages: list[dict],
        max_tokens: int,
        context: Any = None,
    ) -> str: ...


class Embedder(Protocol):
    """text → fixed-length vector. One instance serves indexing and queries."""
    dimensions: int

    async def embed(self, text: str) -> list[float]: ...


class VectorIndex(Protocol):
    """Pluggable similarity backend."""
    name: str

    async def insert(self, vectors: list[dict]) -> None:
        """Each item: {"id": str, "values": list[float], "metadata": dict}."""
        ...

    async def delete(self, ids: list[str]) -> None: ...

    async def query(
        self,
        vector: list[float],
        top_k: int = 5,
        filter: dict | None = None,
        return_metadata: bool = True,
    ) -> list[RetrievalMatch]: ...


TodayProvider = Callable[[], date]

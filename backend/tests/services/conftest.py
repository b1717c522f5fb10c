"""Service test fixtures — in-memory store, ledger, memory and a wired orchestrator.

Invariants:
    - Every test gets a fresh InMemoryKeyValueStore (no shared ledger state)
    - "today" is pinned so month-relative figures are deterministic
    - Retrieval uses the hashing embedder + in-memory index (no network)
"""

import pytest

from finledger.infrastructure.embeddings import HashingEmbedder
from finledger.infrastructure.kv_store import InMemoryKeyValueStore
from finledger.infrastructure.vector_index import InMemoryVectorIndex
from finledger.services.action_dispatch import ActionDispatch
from finledger.services.context_assembler import ContextAssembler
from finledger.services.conversation_memory import ConversationMemory
from finledger.services.handle_actions import LedgerActionHandlers
from finledger.services.ledger_store import LedgerStore
from finledger.services.orchestrator import ConversationOrchestrator
from finledger.services.retrieval import Retriever

from tests.services.fakes import TODAY, FakeInferenceClient, fixed_today


@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def ledger(kv_store):
    return LedgerStore(kv_store)


@pytest.fixture
def memory(kv_store):
    return ConversationMemory(kv_store)


@pytest.fixture
def retriever():
    return Retriever(HashingEmbedder(dimensions=64), InMemoryVectorIndex())


@pytest.fixture
def handlers(ledger, retriever):
    return LedgerActionHandlers(ledger, retriever, today=fixed_today(TODAY))


@pytest.fixture
def dispatch(handlers):
    return ActionDispatch(handlers)


@pytest.fixture
def inference():
    return FakeInferenceClient()


@pytest.fixture
def orchestrator(ledger, memory, inference, retriever, dispatch):
    return ConversationOrchestrator(
        ledger=ledger,
        memory=memory,
        inference=inference,
        assembler=ContextAssembler(retriever),
        dispatch=dispatch,
        inference_timeout_seconds=1.0,
        confirmation_timeout_seconds=1.0,
    )

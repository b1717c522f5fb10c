"""Service Container — wires one ledger's collaborators together.

Invariants:
    - One container per application (per ledger); built in the lifespan or in tests
    - Every collaborator is passed in explicitly; nothing is looked up globally
"""

from dataclasses import dataclass
from datetime import date

from finledger.config import Settings
from finledger.core.repository_protocols import (
    Embedder, InferenceClient, KeyValueStore, TodayProvider, VectorIndex,
)
from finledger.services.action_dispatch import ActionDispatch
from finledger.services.context_assembler import ContextAssembler
from finledger.services.conversation_memory import ConversationMemory
from finledger.services.handle_actions import LedgerActionHandlers
from finledger.services.ledger_store import LedgerStore
from finledger.services.orchestrator import ConversationOrchestrator
from finledger.services.retrieval import Retriever


@dataclass
class AppServices:
    ledger: LedgerStore
    memory: ConversationMemory
    retriever: Retriever
    orchestrator: ConversationOrchestrator
    today: TodayProvider = date.today


def build_services(
    settings: Settings,
    *,
    store: KeyValueStore,
    inference: InferenceClient,
    embedder: Embedder,
    index: VectorIndex,
    today: TodayProvider = date.today,
) -> AppServices:
    ledger = LedgerStore(store)
    memory = ConversationMemory(store, max_messages=settings.memory_max_messages)
    retriever = Retriever(embedder, index)
    handlers = LedgerActionHandlers(ledger, retriever, today=today)
    orchestrator = ConversationOrchestrator(
        ledger=ledger,
        memory=memory,
        inference=inference,
        assembler=ContextAssembler(retriever),
        dispatch=ActionDispatch(handlers),
        inference_timeout_seconds=settings.inference_timeout_seconds,
        confirmation_timeout_seconds=settings.confirmation_timeout_seconds,
        answer_max_tokens=settings.answer_max_tokens,
        confirmation_max_tokens=settings.confirmation_max_tokens,
        context_turns=settings.context_turns,
    )
    return AppServices(
        ledger=ledger, memory=memory, retriever=retriever,
        orchestrator=orchestrator, today=today,
    )

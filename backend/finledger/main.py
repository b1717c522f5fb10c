"""FinLedger API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map FinLedgerError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, retrieval backends and the service container are built in the lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Knowledge indexing at startup is best-effort: the API serves without retrieval
    - Sample data is seeded only when enabled and the ledger is empty
    - Every stored transaction is re-indexed at startup (upsert by id), so similarity
      survives restarts on the in-memory index
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from finledger.api.error_handlers import register_error_handlers
from finledger.api.routes import chat, conversations, health, ledger
from finledger.config import Settings, get_settings
from finledger.core.errors import RetrievalUnavailableError
from finledger.core.sample_data import DEFAULT_BUDGETS, generate_sample_transactions
from finledger.infrastructure.anthropic_client import ResilientAnthropicClient
from finledger.infrastructure.database import init_db
from finledger.infrastructure.embeddings import HashingEmbedder, HttpEmbedder
from finledger.infrastructure.kv_store import SqlKeyValueStore
from finledger.infrastructure.observability import setup_logging
from finledger.infrastructure.vector_index import create_vector_index
from finledger.services.service_container import AppServices, build_services

logger = logging.getLogger(__name__)


def _create_embedder(settings: Settings):
    if settings.embedding_url:
        return HttpEmbedder(
            base_url=settings.embedding_url,
            model=settings.embedding_model,
            timeout_seconds=settings.embedding_timeout_seconds,
        )
    return HashingEmbedder(dimensions=settings.embedding_dimensions)


async def _bootstrap(services: AppServices, settings: Settings) -> None:
    try:
        await services.retriever.index_knowledge_base()
    except RetrievalUnavailableError as e:
        logger.warning(
            f"Knowledge indexing skipped: {e.message}", extra={"backend": e.backend},
        )

    transactions = await services.ledger.list_transactions()
    if settings.seed_sample_data and not transactions:
        transactions = generate_sample_transactions()
        await services.ledger.replace_all(transactions, DEFAULT_BUDGETS)
        logger.info(f"Seeded sample ledger ({len(transactions)} transactions)")

    if transactions:
        indexed = await services.retriever.index_transactions(transactions)
        logger.info(f"Indexed {indexed}/{len(transactions)} ledger transactions")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    await db.create_schema()

    index = await create_vector_index(settings)
    embedder = _create_embedder(settings)
    services = build_services(
        settings,
        store=SqlKeyValueStore(db),
        inference=ResilientAnthropicClient(
            api_key=settings.anthropic_api_key,
            model=settings.agent_model,
            max_retries=settings.anthropic_max_retries,
            base_delay_ms=settings.anthropic_base_delay_ms,
            max_delay_ms=settings.anthropic_max_delay_ms,
            timeout_seconds=settings.anthropic_timeout_seconds,
        ),
        embedder=embedder,
        index=index,
    )
    await _bootstrap(services, settings)
    app.state.services = services
    logger.info("FinLedger API started", extra={"backend": index.name})
    yield
    logger.info("FinLedger API shutting down")
    for client in (index, embedder):
        if hasattr(client, "aclose"):
            await client.aclose()
    await db.close()


app = FastAPI(title="FinLedger API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes (explicit registration)
app.include_router(health.router)
app.include_router(chat.router)
app.include_router(conversations.router)
app.include_router(ledger.router)

register_error_handlers(app)

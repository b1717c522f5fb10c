"""API test fixtures — the real app with an in-memory service container.

Invariants:
    - The lifespan never runs (ASGITransport): no database, no Anthropic, no Chroma
    - get_services is overridden per test with a fresh container
    - "today" is pinned so monthly figures are deterministic
"""

import pytest
from httpx import ASGITransport, AsyncClient

from finledger.api.dependencies import get_services
from finledger.config import Settings
from finledger.infrastructure.embeddings import HashingEmbedder
from finledger.infrastructure.kv_store import InMemoryKeyValueStore
from finledger.infrastructure.vector_index import InMemoryVectorIndex
from finledger.main import app
from finledger.services.service_container import build_services

from tests.services.fakes import TODAY, FakeInferenceClient, fixed_today


@pytest.fixture
def inference():
    return FakeInferenceClient()


@pytest.fixture
def services(inference):
    return build_services(
        Settings(inference_timeout_seconds=1.0, confirmation_timeout_seconds=1.0),
        store=InMemoryKeyValueStore(),
        inference=inference,
        embedder=HashingEmbedder(dimensions=256),
        index=InMemoryVectorIndex(),
        today=fixed_today(TODAY),
    )


@pytest.fixture
async def client(services):
    app.dependency_overrides[get_services] = lambda: services
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()

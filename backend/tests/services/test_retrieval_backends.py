"""Retrieval Backends — embedders and vector indexes.

Tests cover:
    - HashingEmbedder is deterministic, normalized and similarity-preserving
    - HttpEmbedder request shape and fault mapping (httpx.MockTransport)
    - InMemoryVectorIndex filtering, ranking, upsert and delete
    - ChromaVectorIndex against an in-process chromadb: filter, ranking, upsert, delete
    - Chroma distance → similarity, outage mapping, server address, backend selection
"""

import json
import math
import uuid

import chromadb
import httpx
import pytest

from finledger.config import Settings
from finledger.core.errors import RetrievalUnavailableError
from finledger.infrastructure.embeddings import HashingEmbedder, HttpEmbedder
from finledger.infrastructure.vector_index import (
    ChromaVectorIndex, InMemoryVectorIndex, cosine_similarity, create_vector_index,
)

from tests.services.fakes import InProcessChroma


# -- Embedders -----------------------------------------------------------------

async def test_hashing_embedder_is_deterministic_and_normalized():
    embedder = HashingEmbedder(dimensions=128)
    a = await embedder.embed("Uber ride to the airport")
    b = await embedder.embed("Uber ride to the airport")
    assert a == b
    assert len(a) == 128
    assert math.isclose(math.sqrt(sum(v * v for v in a)), 1.0)


async def test_hashing_embedder_empty_text_is_zero_vector():
    assert await HashingEmbedder(dimensions=8).embed("  ") == [0.0] * 8


async def test_hashing_embedder_similar_texts_score_higher():
    embedder = HashingEmbedder(dimensions=1024)
    query = await embedder.embed("coffee at starbucks")
    close = await embedder.embed("starbucks coffee")
    far = await embedder.embed("monthly rent payment")
    assert cosine_similarity(query, close) > cosine_similarity(query, far)


async def test_http_embedder_posts_model_and_input():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"embeddings": [[0.1, 0.2, 0.3]]})

    embedder = HttpEmbedder(
        "http://embed.local/", model="nomic-embed-text",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    assert await embedder.embed("hello") == [0.1, 0.2, 0.3]
    assert seen["url"] == "http://embed.local/api/embed"
    assert seen["body"] == {"model": "nomic-embed-text", "input": ["hello"]}
    assert embedder.dimensions == 3
    await embedder.aclose()


@pytest.mark.parametrize("response", [
    httpx.Response(500, text="boom"),
    httpx.Response(200, json={"embeddings": []}),
    httpx.Response(200, text="not json"),
])
async def test_http_embedder_faults_map_to_retrieval_unavailable(response):
    embedder = HttpEmbedder(
        "http://embed.local",
        client=httpx.AsyncClient(transport=httpx.MockTransport(lambda request: response)),
    )
    with pytest.raises(RetrievalUnavailableError):
        await embedder.embed("hello")


# -- In-memory index -----------------------------------------------------------

async def test_in_memory_index_filters_and_ranks():
    index = InMemoryVectorIndex()
    await index.insert([
        {"id": "k1", "values": [1.0, 0.0], "metadata": {"indexType": "knowledge"}},
        {"id": "t1", "values": [0.9, 0.1], "metadata": {"indexType": "transaction"}},
        {"id": "t2", "values": [0.0, 1.0], "metadata": {"indexType": "transaction"}},
    ])
    matches = await index.query([1.0, 0.0], top_k=5, filter={"indexType": "transaction"})
    assert [m.id for m in matches] == ["t1", "t2"]
    assert matches[0].score > matches[1].score

    bare = await index.query([1.0, 0.0], top_k=1, return_metadata=False)
    assert bare[0].id == "k1"
    assert bare[0].metadata == {}


async def test_in_memory_index_upserts_by_id():
    index = InMemoryVectorIndex()
    await index.insert([{"id": "a", "values": [1.0], "metadata": {"v": 1}}])
    await index.insert([{"id": "a", "values": [1.0], "metadata": {"v": 2}}])
    assert len(index) == 1
    (match,) = await index.query([1.0])
    assert match.metadata == {"v": 2}


async def test_in_memory_index_delete_is_idempotent():
    index = InMemoryVectorIndex()
    await index.insert([{"id": "a", "values": [1.0], "metadata": {}}])
    await index.delete(["a", "missing"])
    await index.delete(["a"])
    assert len(index) == 0


# -- Chroma --------------------------------------------------------------------

def _chroma() -> ChromaVectorIndex:
    return ChromaVectorIndex(InProcessChroma(), collection=f"test-{uuid.uuid4().hex}")


async def test_chroma_filters_ranks_and_flattens_metadata():
    index = _chroma()
    await index.insert([
        {"id": "budgeting-basics", "values": [1.0, 0.0],
         "metadata": {"indexType": "knowledge", "content": "Track spending",
                      "tags": ["a", "b"], "source": None}},
        {"id": "t1", "values": [0.9, 0.1], "metadata": {"indexType": "transaction"}},
        {"id": "t2", "values": [0.0, 1.0], "metadata": {"indexType": "transaction"}},
    ])

    matches = await index.query([1.0, 0.0], top_k=5, filter={"indexType": "transaction"})
    assert [m.id for m in matches] == ["t1", "t2"]
    assert matches[0].score > 0.9 > matches[1].score

    (knowledge,) = await index.query([1.0, 0.0], top_k=1, filter={"indexType": "knowledge"})
    assert knowledge.metadata == {"indexType": "knowledge", "content": "Track spending", "tags": "a, b"}

    (bare,) = await index.query([1.0, 0.0], top_k=1, return_metadata=False)
    assert bare.id == "budgeting-basics"
    assert bare.metadata == {}


async def test_chroma_upsert_and_delete_by_id():
    index = _chroma()
    await index.insert([{"id": "a", "values": [1.0, 0.0], "metadata": {"v": 1}}])
    await index.insert([
        {"id": "a", "values": [1.0, 0.0], "metadata": {"v": 2}},
        {"id": "b", "values": [0.0, 1.0], "metadata": {"v": 3}},
    ])
    matches = await index.query([1.0, 0.0], top_k=5)
    assert [(m.id, m.metadata) for m in matches] == [("a", {"v": 2}), ("b", {"v": 3})]

    await index.delete(["a"])
    assert [m.id for m in await index.query([1.0, 0.0], top_k=5)] == ["b"]


class _FixedDistanceCollection:
    async def query(self, **kwargs):
        return {
            "ids": [["a", "b"]],
            "distances": [[0.2, 1.0]],
            "metadatas": [[{"content": "A"}, None]],
        }


class _FixedDistanceClient:
    async def get_or_create_collection(self, **kwargs):
        return _FixedDistanceCollection()


async def test_chroma_distance_converted_to_similarity():
    matches = await ChromaVectorIndex(_FixedDistanceClient()).query([0.1])
    assert [m.score for m in matches] == [pytest.approx(0.9), pytest.approx(0.5)]
    assert matches[0].metadata == {"content": "A"}
    assert matches[1].metadata == {}


class _DownClient:
    async def heartbeat(self):
        raise ConnectionError("refused")

    async def get_or_create_collection(self, **kwargs):
        raise ConnectionError("refused")


async def test_chroma_outage_maps_to_retrieval_unavailable():
    index = ChromaVectorIndex(_DownClient())
    assert await index.heartbeat() is False
    with pytest.raises(RetrievalUnavailableError) as exc:
        await index.query([0.1])
    assert exc.value.backend == "chroma"


async def test_chroma_connect_passes_server_address(monkeypatch):
    seen = {}

    async def fake_client(**kwargs):
        seen.update(kwargs)
        return InProcessChroma()

    monkeypatch.setattr(chromadb, "AsyncHttpClient", fake_client)
    index = await ChromaVectorIndex.connect(
        "https://chroma.example.com", collection="ledger", api_key="secret", tenant="acme",
    )
    assert index.collection == "ledger"
    assert (seen["host"], seen["port"], seen["ssl"]) == ("chroma.example.com", 443, True)
    assert seen["headers"] == {"Authorization": "Bearer secret"}
    assert seen["tenant"] == "acme"
    assert "database" not in seen


async def test_create_vector_index_selects_reachable_chroma(monkeypatch):
    async def fake_client(**kwargs):
        assert (kwargs["host"], kwargs["port"]) == ("localhost", 8765)
        return InProcessChroma()

    monkeypatch.setattr(chromadb, "AsyncHttpClient", fake_client)
    index = await create_vector_index(Settings(chroma_url="http://localhost:8765"))
    assert isinstance(index, ChromaVectorIndex)


async def test_create_vector_index_falls_back_when_connect_fails(monkeypatch):
    async def refused(**kwargs):
        raise ConnectionError("Could not connect to a Chroma server")

    monkeypatch.setattr(chromadb, "AsyncHttpClient", refused)
    index = await create_vector_index(Settings(chroma_url="http://localhost:8765"))
    assert isinstance(index, InMemoryVectorIndex)

"""Vector Indexes — pluggable similarity backends for knowledge and transaction vectors.

Invariants:
    - insert() is an upsert keyed by id; delete() of unknown ids is a no-op
    - query() returns matches sorted by descending similarity, at most top_k
    - filter is a flat metadata equality match ({"indexType": "knowledge"})
    - Backend failures raise RetrievalUnavailableError

Design Decisions:
    - ChromaVectorIndex wraps chromadb's AsyncHttpClient; the collection uses cosine
      space, so distance d in [0, 2] is reported as similarity 1 - d/2
    - Vectors are always supplied by our Embedder: the collection has no embedding function
    - create_vector_index prefers Chroma when configured and its heartbeat answers,
      otherwise falls back to the in-memory index
"""

import logging
import math
from typing import Any
from urllib.parse import urlparse

import chromadb
from chromadb.config import Settings as ChromaSettings

from finledger.config import Settings
from finledger.core.errors import RetrievalUnavailableError
from finledger.core.records import RetrievalMatch

logger = logging.getLogger(__name__)


def cosine_similarity(a: list[float], b: list[float]) -> float:
    if len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


def _matches_filter(metadata: dict, filter: dict | None) -> bool:
    if not filter:
        return True
    return all(metadata.get(k) == v for k, v in filter.items())


class InMemoryVectorIndex:
    """Brute-force cosine index held in process memory."""

    name = "memory"

    def __init__(self):
        self._vectors: dict[str, tuple[list[float], dict]] = {}

    def __len__(self) -> int:
        return len(self._vectors)

    async def insert(self, vectors: list[dict]) -> None:
        for item in vectors:
            self._vectors[item["id"]] = (list(item["values"]), dict(item.get("metadata") or {}))

    async def delete(self, ids: list[str]) -> None:
        for vid in ids:
            self._vectors.pop(vid, None)

    async def query(
        self,
        vector: list[float],
        top_k: int = 5,
        filter: dict | None = None,
        return_metadata: bool = True,
    ) -> list[RetrievalMatch]:
        scored = [
            RetrievalMatch(
                id=vid,
                score=cosine_similarity(vector, values),
                metadata=dict(metadata) if return_metadata else {},
            )
            for vid, (values, metadata) in self._vectors.items()
            if _matches_filter(metadata, filter)
        ]
        scored.sort(key=lambda m: m.score, reverse=True)
        return scored[:top_k]


class ChromaVectorIndex:
    """Chroma server adapter over chromadb's async HTTP client."""

    name = "chroma"

    def __init__(self, client: Any, collection: str = "finance-knowledge"):
        self._client = client
        self.collection = collection
        self._collection: Any = None

    @classmethod
    async def connect(
        cls,
        url: str,
        collection: str = "finance-knowledge",
        api_key: str | None = None,
        tenant: str | None = None,
        database: str | None = None,
    ) -> "ChromaVectorIndex":
        """Open an AsyncHttpClient for a server URL such as http://chroma:8000."""
        parsed = urlparse(url if "://" in url else f"http://{url}")
        ssl = parsed.scheme == "https"
        kwargs: dict[str, Any] = {
            "host": parsed.hostname or "localhost",
            "port": parsed.port or (443 if ssl else 8000),
            "ssl": ssl,
            "settings": ChromaSettings(anonymized_telemetry=False),
        }
        if api_key:
            kwargs["headers"] = {"Authorization": f"Bearer {api_key}"}
        if tenant:
            kwargs["tenant"] = tenant
        if database:
            kwargs["database"] = database
        try:
            client = await chromadb.AsyncHttpClient(**kwargs)
        except Exception as e:
            raise RetrievalUnavailableError(str(e), backend=cls.name)
        return cls(client, collection=collection)

    async def heartbeat(self) -> bool:
        try:
            await self._client.heartbeat()
            return True
        except Exception as e:
            logger.warning(f"Chroma heartbeat failed: {e}", extra={"backend": self.name})
            return False

    async def _ensure_collection(self) -> Any:
        if self._collection is None:
            try:
                self._collection = await self._client.get_or_create_collection(
                    name=self.collection,
                    configuration={"hnsw": {"space": "cosine"}},
                    embedding_function=None,
                )
            except Exception as e:
                raise RetrievalUnavailableError(str(e), backend=self.name)
        return self._collection

    async def insert(self, vectors: list[dict]) -> None:
        if not vectors:
            return
        collection = await self._ensure_collection()
        metadatas = [_flatten_metadata(v.get("metadata") or {}) for v in vectors]
        try:
            await collection.upsert(
                ids=[v["id"] for v in vectors],
                embeddings=[list(v["values"]) for v in vectors],
                metadatas=[m or None for m in metadatas],
                documents=[
                    str(m.get("content") or m.get("description") or v["id"])
                    for v, m in zip(vectors, metadatas)
                ],
            )
        except Exception as e:
            raise RetrievalUnavailableError(str(e), backend=self.name)

    async def delete(self, ids: list[str]) -> None:
        if not ids:
            return
        collection = await self._ensure_collection()
        try:
            await collection.delete(ids=list(ids))
        except Exception as e:
            raise RetrievalUnavailableError(str(e), backend=self.name)

    async def query(
        self,
        vector: list[float],
        top_k: int = 5,
        filter: dict | None = None,
        return_metadata: bool = True,
    ) -> list[RetrievalMatch]:
        collection = await self._ensure_collection()
        try:
            result = await collection.query(
                query_embeddings=[list(vector)],
                n_results=top_k,
                where=filter or None,
                include=["metadatas", "distances"],
            )
        except Exception as e:
            raise RetrievalUnavailableError(str(e), backend=self.name)

        ids = (result.get("ids") or [[]])[0]
        distances = (result.get("distances") or [[]])[0] or []
        metadatas = (result.get("metadatas") or [[]])[0] or []
        matches = []
        for i, vid in enumerate(ids):
            distance = distances[i] if i < len(distances) else None
            metadata = metadatas[i] if i < len(metadatas) and metadatas[i] else {}
            matches.append(RetrievalMatch(
                id=vid,
                score=1 - distance / 2 if distance is not None else 1.0,
                metadata=dict(metadata) if return_metadata else {},
            ))
        return matches


def _flatten_metadata(metadata: dict) -> dict:
    """Chroma metadata values must be scalars; lists become comma-joined strings."""
    flat = {}
    for key, value in metadata.items():
        if isinstance(value, (list, tuple)):
            flat[key] = ", ".join(str(v) for v in value)
        elif value is None:
            continue
        else:
            flat[key] = value
    return flat


async def create_vector_index(settings: Settings):
    """Chroma when configured and reachable, otherwise in-memory."""
    if settings.chroma_url:
        try:
            chroma = await ChromaVectorIndex.connect(
                settings.chroma_url,
                collection=settings.chroma_collection,
                api_key=settings.chroma_api_key,
                tenant=settings.chroma_tenant,
                database=settings.chroma_database,
            )
        except RetrievalUnavailableError as e:
            logger.warning(f"Chroma connect failed: {e.message}", extra={"backend": e.backend})
        else:
            if await chroma.heartbeat():
                logger.info("Using Chroma vector index", extra={"backend": chroma.name})
                return chroma
        logger.warning(
            "Chroma unreachable, falling back to in-memory vector index",
            extra={"backend": "memory"},
        )
    return InMemoryVectorIndex()

"""Embedders — text → fixed-length vector for knowledge, transactions and queries.

Invariants:
    - One embedder instance serves indexing and querying, so vectors are comparable
    - Output length is constant per instance (self.dimensions)
    - Failures raise RetrievalUnavailableError; callers decide whether to degrade

Design Decisions:
    - HttpEmbedder speaks the Ollama /api/embed protocol ({"model", "input"} → {"embeddings"})
    - HashingEmbedder is a dependency-free fallback: signed feature hashing over word
      tokens and 5-char stems, L2-normalized
"""

import hashlib
import logging
import math
import re

import httpx

from finledger.core.errors import RetrievalUnavailableError

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"[a-z0-9]+")
_STEM_LENGTH = 5


class HttpEmbedder:
    """Embeddings from an Ollama-compatible HTTP endpoint."""

    name = "http"

    def __init__(
        self,
        base_url: str,
        model: str = "nomic-embed-text",
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.dimensions = 0
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def embed(self, text: str) -> list[float]:
        try:
            resp = await self._client.post(
                f"{self.base_url}/api/embed",
                json={"model": self.model, "input": [text]},
            )
            resp.raise_for_status()
            vectors = resp.json().get("embeddings") or []
        except (httpx.HTTPError, ValueError) as e:
            raise RetrievalUnavailableError(str(e), backend="embedder")
        if not vectors or not vectors[0]:
            raise RetrievalUnavailableError("empty embedding response", backend="embedder")
        vector = [float(v) for v in vectors[0]]
        self.dimensions = len(vector)
        return vector

    async def aclose(self) -> None:
        await self._client.aclose()


class HashingEmbedder:
    """Deterministic bag-of-features embedding; no network, no model."""

    name = "hashing"

    def __init__(self, dimensions: int = 256):
        if dimensions <= 0:
            raise ValueError("dimensions must be positive")
        self.dimensions = dimensions

    def _features(self, text: str) -> list[str]:
        tokens = _TOKEN.findall(text.lower())
        features = list(tokens)
        features.extend(f"~{t[:_STEM_LENGTH]}" for t in tokens if len(t) > _STEM_LENGTH)
        return features

    def _bucket(self, feature: str) -> tuple[int, float]:
        digest = hashlib.blake2b(feature.encode("utf-8"), digest_size=8).digest()
        value = int.from_bytes(digest, "big")
        sign = 1.0 if value & 1 else -1.0
        return (value >> 1) % self.dimensions, sign

    async def embed(self, text: str) -> list[float]:
        vector = [0.0] * self.dimensions
        for feature in self._features(text):
            index, sign = self._bucket(feature)
            vector[index] += sign
        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0:
            return vector
        return [v / norm for v in vector]

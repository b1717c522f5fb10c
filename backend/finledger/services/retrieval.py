"""Retriever — knowledge snippets and similar past transactions for a query.

Invariants:
    - One Embedder instance embeds knowledge, transactions and queries
    - retrieve_context() never raises: any fault is logged and yields an empty context
    - Similar transactions are only fetched when the query uses spending vocabulary
    - Knowledge indexing happens at most once per Retriever (idempotent)
    - suggest_category() degrades to (other, 0.0) on any fault or when nothing matches

Design Decisions:
    - Knowledge and transactions share one index, separated by metadata indexType
"""

import logging
import re
from collections import Counter

from finledger.core.domain_types import Category
from finledger.core.errors import RetrievalUnavailableError
from finledger.core.knowledge_base import (
    FINANCIAL_KNOWLEDGE, KNOWLEDGE_INDEX_TYPE, knowledge_document, knowledge_metadata,
)
from finledger.core.records import KnowledgeEntry, RetrievalContext, RetrievalMatch, Transaction
from finledger.core.repository_protocols import Embedder, VectorIndex

logger = logging.getLogger(__name__)

TRANSACTION_INDEX_TYPE = "transaction"
KNOWLEDGE_TOP_K = 3
SIMILAR_TOP_K = 5
SPENDING_VOCABULARY = re.compile(
    r"\b(spent|spending|bought|purchased|transactions|expenses)\b", re.IGNORECASE,
)


def transaction_document(tx: Transaction) -> str:
    return f"{tx.description} {tx.category.value} {tx.type.value}"


def transaction_vector_id(tx: Transaction) -> str:
    return f"transaction_{tx.id}"


def _knowledge_from_match(match: RetrievalMatch) -> KnowledgeEntry:
    meta = match.metadata
    tags = meta.get("tags") or []
    if isinstance(tags, str):
        tags = [t.strip() for t in tags.split(",") if t.strip()]
    return KnowledgeEntry(
        id=match.id,
        content=str(meta.get("content", "")),
        category=str(meta.get("category", "")),
        tags=tags,
        source=str(meta.get("source") or "builtin"),
        score=match.score,
    )


class Retriever:

    def __init__(self, embedder: Embedder, index: VectorIndex):
        self.embedder = embedder
        self.index = index
        self._knowledge_indexed = False

    @property
    def knowledge_indexed(self) -> bool:
        return self._knowledge_indexed

    async def index_knowledge_base(self, force: bool = False) -> int:
        """Embed and insert the curated corpus. Raises RetrievalUnavailableError on failure."""
        if self._knowledge_indexed and not force:
            return 0
        try:
            vectors = [
                {
                    "id": entry.id,
                    "values": await self.embedder.embed(knowledge_document(entry)),
                    "metadata": knowledge_metadata(entry),
                }
                for entry in FINANCIAL_KNOWLEDGE
            ]
            await self.index.insert(vectors)
        except RetrievalUnavailableError:
            raise
        except Exception as e:
            raise RetrievalUnavailableError(str(e), backend=self.index.name)
        self._knowledge_indexed = True
        logger.info(
            f"Knowledge base indexed ({len(vectors)} articles)",
            extra={"backend": self.index.name},
        )
        return len(vectors)

    async def index_transaction(self, tx: Transaction) -> bool:
        """Best-effort: a failure is logged and reported as False."""
        try:
            vector = await self.embedder.embed(transaction_document(tx))
            await self.index.insert([{
                "id": transaction_vector_id(tx),
                "values": vector,
                "metadata": {
                    "indexType": TRANSACTION_INDEX_TYPE,
                    "transactionId": tx.id,
                    "description": tx.description,
                    "category": tx.category.value,
                    "type": tx.type.value,
                    "amount": str(tx.amount),
                    "date": tx.date.isoformat(),
                },
            }])
            return True
        except Exception as e:
            logger.warning(
                f"Transaction indexing failed: {e}", extra={"backend": self.index.name},
            )
            return False

    async def index_transactions(self, transactions: list[Transaction]) -> int:
        """Index a batch; returns how many were stored."""
        indexed = 0
        for tx in transactions:
            if await self.index_transaction(tx):
                indexed += 1
        return indexed

    async def forget_transaction(self, tx: Transaction) -> bool:
        """Best-effort removal of a deleted transaction's vector."""
        try:
            await self.index.delete([transaction_vector_id(tx)])
            return True
        except Exception as e:
            logger.warning(
                f"Transaction unindexing failed: {e}", extra={"backend": self.index.name},
            )
            return False

    async def retrieve_context(self, query: str) -> RetrievalContext:
        try:
            vector = await self.embedder.embed(query)
            knowledge_hits = await self.index.query(
                vector, top_k=KNOWLEDGE_TOP_K,
                filter={"indexType": KNOWLEDGE_INDEX_TYPE}, return_metadata=True,
            )
            similar: list[RetrievalMatch] = []
            if SPENDING_VOCABULARY.search(query):
                similar = await self.index.query(
                    vector, top_k=SIMILAR_TOP_K,
                    filter={"indexType": TRANSACTION_INDEX_TYPE}, return_metadata=True,
                )
        except Exception as e:
            logger.warning(
                f"Retrieval unavailable, continuing without context: {e}",
                extra={"backend": self.index.name, "error_code": "RETRIEVAL_UNAVAILABLE"},
            )
            return RetrievalContext()

        return RetrievalContext(
            knowledge=[_knowledge_from_match(m) for m in knowledge_hits[:KNOWLEDGE_TOP_K]],
            similar_transactions=similar[:SIMILAR_TOP_K],
        )

    async def suggest_category(self, description: str) -> tuple[Category, float]:
        """Majority vote over similar past transactions; confidence = vote share."""
        try:
            vector = await self.embedder.embed(description)
            matches = await self.index.query(
                vector, top_k=SIMILAR_TOP_K,
                filter={"indexType": TRANSACTION_INDEX_TYPE}, return_metadata=True,
            )
        except Exception as e:
            logger.warning(f"Category suggestion unavailable: {e}")
            return Category.OTHER, 0.0

        votes: Counter[Category] = Counter()
        for match in matches:
            try:
                votes[Category(match.metadata.get("category"))] += 1
            except ValueError:
                continue
        if not votes:
            return Category.OTHER, 0.0
        category, count = votes.most_common(1)[0]
        return category, count / sum(votes.values())

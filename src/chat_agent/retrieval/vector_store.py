"""Vector store interface and in-memory implementation."""

from __future__ import annotations

from dataclasses import dataclass
from math import sqrt
from typing import Protocol

from chat_agent.types import DocumentChunk, ScoredChunk


class VectorStore(Protocol):
    """Minimal vector store contract for retrieval."""

    def upsert(self, chunks: list[DocumentChunk], embeddings: list[list[float]]) -> None:
        """Insert or update chunk vectors."""

    def similarity_search(
        self,
        query_embedding: list[float],
        k: int,
    ) -> list[ScoredChunk]:
        """Return the top-k chunks by vector similarity."""

    def __len__(self) -> int:
        """Number of stored chunks."""


@dataclass(slots=True)
class _StoredVector:
    chunk: DocumentChunk
    embedding: list[float]


class InMemoryVectorStore:
    """Process-lifetime vector store ranked by cosine similarity."""

    def __init__(self) -> None:
        self._store: dict[str, _StoredVector] = {}

    def __len__(self) -> int:
        return len(self._store)

    def upsert(self, chunks: list[DocumentChunk], embeddings: list[list[float]]) -> None:
        if len(chunks) != len(embeddings):
            raise ValueError("chunks and embeddings must have the same length")
        for chunk, embedding in zip(chunks, embeddings, strict=True):
            self._store[chunk.chunk_id] = _StoredVector(chunk=chunk, embedding=embedding)

    def similarity_search(self, query_embedding: list[float], k: int) -> list[ScoredChunk]:
        ranked = sorted(
            (
                ScoredChunk(
                    chunk=record.chunk,
                    score=_cosine_similarity(query_embedding, record.embedding),
                )
                for record in self._store.values()
            ),
            key=lambda item: item.score,
            reverse=True,
        )
        return [
            ScoredChunk(chunk=item.chunk, score=item.score, rank=i + 1)
            for i, item in enumerate(ranked[:k])
        ]


def _cosine_similarity(a: list[float], b: list[float]) -> float:
    if not a or not b or len(a) != len(b):
        return 0.0
    numerator = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = sqrt(sum(x * x for x in a))
    norm_b = sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return numerator / (norm_a * norm_b)

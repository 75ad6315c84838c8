"""Query-time retrieval over the vector store."""

from __future__ import annotations

from chat_agent.config import RetrievalConfig
from chat_agent.ingest.embedder import Embedder
from chat_agent.retrieval.vector_store import VectorStore
from chat_agent.types import ScoredChunk


class VectorRetriever:
    """Embeds a query and returns its nearest chunks."""

    def __init__(
        self,
        vector_store: VectorStore,
        embedder: Embedder,
        config: RetrievalConfig | None = None,
    ) -> None:
        self.vector_store = vector_store
        self.embedder = embedder
        self.config = config or RetrievalConfig()

    def retrieve(
        self,
        query: str,
        *,
        top_k: int | None = None,
    ) -> list[ScoredChunk]:
        query_embedding = self.embedder.embed_query(query)
        return self.vector_store.similarity_search(
            query_embedding=query_embedding,
            k=top_k or self.config.top_k,
        )

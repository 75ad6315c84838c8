"""End-to-end ingest pipeline: parse -> chunk -> embed -> upsert."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from chat_agent.ingest.chunker import TextChunker
from chat_agent.ingest.embedder import Embedder
from chat_agent.ingest.parser import ParserRegistry
from chat_agent.retrieval.vector_store import VectorStore
from chat_agent.types import DocumentChunk

log = logging.getLogger(__name__)


class IngestPipeline:
    """Coordinates parser/chunker/embedder/vector store stages.

    Ingestion normally runs once while the service starts; the resulting
    index lives in memory for the lifetime of the process.
    """

    def __init__(
        self,
        parser_registry: ParserRegistry,
        chunker: TextChunker,
        embedder: Embedder,
        vector_store: VectorStore,
    ) -> None:
        self._parser_registry = parser_registry
        self._chunker = chunker
        self._embedder = embedder
        self._vector_store = vector_store

    def ingest_source(self, source: str | Path) -> list[DocumentChunk]:
        """Ingest a single web page or file and return created chunks."""

        parsed = self._parser_registry.parse_source(source)

        chunks = self._chunker.chunk_document(parsed)
        log.info("Split %s into %d chunks", parsed.doc_id, len(chunks))
        if not chunks:
            return []

        embeddings = self._embedder.embed_documents([chunk.text for chunk in chunks])
        self._vector_store.upsert(chunks, embeddings)
        log.info("Indexed %d chunks from %s", len(chunks), parsed.doc_id)
        return chunks

    def ingest_many(self, sources: Sequence[str | Path]) -> list[DocumentChunk]:
        """Ingest many sources and return flattened chunk list."""

        all_chunks: list[DocumentChunk] = []
        for source in sources:
            all_chunks.extend(self.ingest_source(source))
        return all_chunks

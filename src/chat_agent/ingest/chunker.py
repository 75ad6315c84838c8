"""Overlapping character-window chunking."""

from __future__ import annotations

from langchain_text_splitters import RecursiveCharacterTextSplitter

from chat_agent.config import ChunkingConfig
from chat_agent.types import DocumentChunk, ParsedDocument


class TextChunker:
    """Splits documents into overlapping chunks along natural boundaries.

    The splitter tries paragraph breaks first, then line breaks, then words,
    so chunks stay readable while never exceeding ``chunk_size`` characters.
    Consecutive chunks share up to ``chunk_overlap`` characters of context.
    """

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        self.config = config or ChunkingConfig()
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=self.config.chunk_size,
            chunk_overlap=self.config.chunk_overlap,
        )

    def chunk_document(self, document: ParsedDocument) -> list[DocumentChunk]:
        pieces = self._splitter.split_text(document.text)
        return [
            DocumentChunk(
                chunk_id=f"{document.doc_id}-chunk-{index:04d}",
                doc_id=document.doc_id,
                text=piece,
                metadata={**document.metadata, "chunk_index": index},
            )
            for index, piece in enumerate(pieces)
            if piece.strip()
        ]

import pytest

from chat_agent.config import ChunkingConfig
from chat_agent.ingest.chunker import TextChunker
from chat_agent.types import ParsedDocument


def _make_long_text(word_count: int = 200) -> str:
    return " ".join(f"word{i:03d}" for i in range(word_count))


def test_chunker_size_bounds_and_overlap() -> None:
    chunker = TextChunker(ChunkingConfig(chunk_size=100, chunk_overlap=20))
    doc = ParsedDocument(doc_id="doc-1", text=_make_long_text(), metadata={"source": "unit"})

    chunks = chunker.chunk_document(doc)

    assert len(chunks) >= 2
    assert all(len(chunk.text) <= 100 for chunk in chunks)
    assert chunks[1].text.split()[0] in chunks[0].text.split()[-3:]


def test_chunk_ids_and_metadata() -> None:
    chunker = TextChunker(ChunkingConfig(chunk_size=100, chunk_overlap=20))
    doc = ParsedDocument(doc_id="doc-1", text=_make_long_text(), metadata={"source": "unit"})

    chunks = chunker.chunk_document(doc)

    assert chunks[0].chunk_id == "doc-1-chunk-0000"
    assert chunks[1].chunk_id == "doc-1-chunk-0001"
    assert chunks[1].metadata == {"source": "unit", "chunk_index": 1}
    assert all(chunk.doc_id == "doc-1" for chunk in chunks)


def test_short_document_is_a_single_chunk() -> None:
    chunker = TextChunker()
    doc = ParsedDocument(doc_id="d", text="Apple Inc. is an American company.", metadata={})

    chunks = chunker.chunk_document(doc)

    assert [chunk.text for chunk in chunks] == ["Apple Inc. is an American company."]


def test_overlap_must_be_smaller_than_chunk_size() -> None:
    with pytest.raises(ValueError):
        ChunkingConfig(chunk_size=100, chunk_overlap=100)

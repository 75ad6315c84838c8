import pytest

from chat_agent.ingest.embedder import HashingEmbedder, create_embedder
from chat_agent.retrieval.retriever import VectorRetriever
from chat_agent.retrieval.vector_store import InMemoryVectorStore
from chat_agent.types import DocumentChunk


def _chunk(chunk_id: str, text: str, **metadata: str) -> DocumentChunk:
    return DocumentChunk(chunk_id=chunk_id, doc_id="doc", text=text, metadata=metadata)


def test_hashing_embedder_is_deterministic_and_normalized() -> None:
    embedder = HashingEmbedder(dimension=64)

    first = embedder.embed_query("Apple designs the iPhone")
    second = embedder.embed_documents(["Apple designs the iPhone"])[0]

    assert first == second
    assert len(first) == 64
    assert sum(v * v for v in first) == pytest.approx(1.0)
    assert embedder.embed_query("   ") == [0.0] * 64


def test_similarity_search_ranks_closest_chunk_first() -> None:
    embedder = HashingEmbedder()
    store = InMemoryVectorStore()
    chunks = [
        _chunk("c1", "Holiday arrangements are in the employee handbook."),
        _chunk("c2", "Apple designs the iPhone and the Mac."),
        _chunk("c3", "The weather today is sunny."),
    ]
    store.upsert(chunks, embedder.embed_documents([c.text for c in chunks]))

    hits = store.similarity_search(embedder.embed_query("who designs the iPhone"), k=2)

    assert len(store) == 3
    assert [hit.rank for hit in hits] == [1, 2]
    assert hits[0].chunk.chunk_id == "c2"
    assert hits[0].score >= hits[1].score


def test_upsert_replaces_by_id_and_rejects_length_mismatch() -> None:
    embedder = HashingEmbedder()
    store = InMemoryVectorStore()
    store.upsert([_chunk("a", "alpha text")], embedder.embed_documents(["alpha text"]))
    store.upsert([_chunk("a", "beta text")], embedder.embed_documents(["beta text"]))

    hits = store.similarity_search(embedder.embed_query("beta"), k=5)
    assert len(store) == 1
    assert [hit.chunk.text for hit in hits] == ["beta text"]

    chunks = [_chunk("b", "gamma text")]
    with pytest.raises(ValueError):
        store.upsert(chunks, [])


def test_retriever_uses_configured_top_k(apple_retriever: VectorRetriever) -> None:
    hits = apple_retriever.retrieve("name this company")

    assert len(hits) == 1
    assert "Apple Inc." in hits[0].chunk.text


def test_embedder_backend_is_selected_by_name() -> None:
    assert isinstance(create_embedder("hashing", "ignored"), HashingEmbedder)

    with pytest.raises(ValueError, match="Unknown embedding backend"):
        create_embedder("word2vec", "ignored")

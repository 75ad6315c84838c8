from unittest.mock import MagicMock

import requests

from chat_agent.agent.registry import ToolName, ToolRegistry
from chat_agent.agent.tools import TavilySearchClient, register_builtin_tools
from chat_agent.config import RetrievalConfig, SearchConfig
from chat_agent.ingest.embedder import HashingEmbedder
from chat_agent.retrieval.retriever import VectorRetriever
from chat_agent.retrieval.vector_store import InMemoryVectorStore
from chat_agent.types import DocumentChunk


def _search_client(session: MagicMock) -> TavilySearchClient:
    return TavilySearchClient(SearchConfig(api_key="tvly-test"), session=session)


def test_web_search_formats_title_and_content() -> None:
    session = MagicMock()
    session.post.return_value.json.return_value = {
        "results": [
            {"title": "Forecast", "content": "Sunny, 21C"},
            {"title": "Radar", "content": "No rain expected"},
        ]
    }

    text = _search_client(session).search_text("weather today")

    assert text == "Forecast: Sunny, 21C\n\nRadar: No rain expected"
    session.post.assert_called_once_with(
        "https://api.tavily.com/search",
        json={"api_key": "tvly-test", "query": "weather today", "max_results": 5},
        timeout=30.0,
    )


def test_web_search_network_failure_returns_error_text() -> None:
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("network unreachable")

    text = _search_client(session).search_text("weather today")

    assert text.startswith("Error:")
    assert "network unreachable" in text


def test_web_search_http_error_returns_error_text() -> None:
    session = MagicMock()
    session.post.return_value.raise_for_status.side_effect = requests.HTTPError("401 Unauthorized")

    assert _search_client(session).search_text("x").startswith("Error:")


def test_web_search_without_results() -> None:
    session = MagicMock()
    session.post.return_value.json.return_value = {"results": []}

    assert _search_client(session).search_text("zzz") == "No results found for: zzz"


def _registry_with_chunks(texts: list[str]) -> ToolRegistry:
    embedder = HashingEmbedder()
    store = InMemoryVectorStore()
    chunks = [
        DocumentChunk(chunk_id=f"c{i}", doc_id="doc", text=text)
        for i, text in enumerate(texts)
    ]
    store.upsert(chunks, embedder.embed_documents(texts))
    registry = ToolRegistry()
    register_builtin_tools(
        registry,
        VectorRetriever(store, embedder),
        _search_client(MagicMock()),
        topic="Apple Inc.",
        source="https://en.wikipedia.org/wiki/Apple_Inc.",
        config=RetrievalConfig(),
    )
    return registry


def test_domain_search_returns_limited_information_for_sparse_content() -> None:
    registry = _registry_with_chunks(["Tiny text."])

    result = registry.execute(ToolName.DOMAIN_SEARCH, {"query": "anything"})

    assert result == RetrievalConfig().limited_info_message


def test_domain_search_joins_top_chunks_with_blank_lines() -> None:
    texts = [f"Apple fact number {i} about the company and its products." for i in range(6)]
    registry = _registry_with_chunks(texts)

    result = registry.execute(ToolName.DOMAIN_SEARCH, {"query": "Apple company products"})

    parts = result.split("\n\n")
    assert len(parts) == 4
    assert all(part in texts for part in parts)


def test_builtin_tool_descriptions_name_the_source() -> None:
    registry = _registry_with_chunks(["Apple Inc. is an American company based in Cupertino."])

    names = {spec.name: spec.description for spec in registry.specs()}

    assert set(names) == {ToolName.WEB_SEARCH, ToolName.DOMAIN_SEARCH}
    assert "Apple Inc." in names[ToolName.DOMAIN_SEARCH]
    assert "wikipedia.org" in names[ToolName.DOMAIN_SEARCH]

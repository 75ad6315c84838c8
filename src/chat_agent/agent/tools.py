"""Built-in tool implementations for the chat assistant."""

from __future__ import annotations

import logging
from typing import Any

import requests

from chat_agent.agent.registry import QueryInput, ToolName, ToolRegistry, ToolSpec
from chat_agent.config import RetrievalConfig, SearchConfig
from chat_agent.retrieval.retriever import VectorRetriever

log = logging.getLogger(__name__)

WEB_SEARCH_DESCRIPTION = "Search the web for current information"


class TavilySearchClient:
    """Client for the Tavily search REST API."""

    def __init__(
        self,
        config: SearchConfig | None = None,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config or SearchConfig()
        self._session = session or requests.Session()

    def search(self, query: str) -> list[dict[str, Any]]:
        """Run one search and return ``title``/``content`` pairs.

        Raises:
            requests.RequestException: on network or HTTP status failures.
            ValueError: when the provider response is not valid JSON.
        """
        resp = self._session.post(
            self.config.endpoint,
            json={
                "api_key": self.config.api_key,
                "query": query,
                "max_results": self.config.max_results,
            },
            timeout=self.config.timeout_seconds,
        )
        resp.raise_for_status()

        data = resp.json()
        results = data.get("results") or []
        return [
            {"title": r.get("title", ""), "content": r.get("content", "")}
            for r in results[: self.config.max_results]
        ]

    def search_text(self, query: str) -> str:
        """Search and format results as text; failures become error text."""
        try:
            results = self.search(query)
        except (requests.RequestException, ValueError, AttributeError) as exc:
            log.warning("Web search failed for %r: %s", query, exc)
            return f"Error: web search failed: {exc}"

        if not results:
            return f"No results found for: {query}"
        return "\n\n".join(f"{r['title']}: {r['content']}" for r in results)


def domain_search_description(topic: str, source: str) -> str:
    return f"Search for information about {topic} from the source {source}"


def register_builtin_tools(
    registry: ToolRegistry,
    retriever: VectorRetriever,
    search_client: TavilySearchClient,
    *,
    topic: str,
    source: str,
    config: RetrievalConfig | None = None,
) -> None:
    """Register the two assistant tools.

    Tools:
    - `web_search`: third-party web search, returns titles and snippets.
    - `domain_search`: nearest chunks from the in-memory document index.
    """

    retrieval = config or RetrievalConfig()

    def _web_search(input_data: QueryInput) -> str:
        return search_client.search_text(input_data.query)

    def _domain_search(input_data: QueryInput) -> str:
        hits = retriever.retrieve(input_data.query, top_k=retrieval.top_k)
        content = "\n\n".join(hit.chunk.text for hit in hits)
        if len(content) < retrieval.min_content_length:
            return retrieval.limited_info_message
        return content

    registry.register(
        ToolSpec(
            name=ToolName.WEB_SEARCH,
            description=WEB_SEARCH_DESCRIPTION,
            handler=_web_search,
        )
    )
    registry.register(
        ToolSpec(
            name=ToolName.DOMAIN_SEARCH,
            description=domain_search_description(topic, source),
            handler=_domain_search,
        )
    )

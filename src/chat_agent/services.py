"""Builds the long-lived components shared by the API and the CLI."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from chat_agent.agent.fallback import DeterministicAgent
from chat_agent.agent.history import ConversationStore
from chat_agent.agent.planner import AgentLoop, AgentResult
from chat_agent.agent.registry import ToolRegistry
from chat_agent.agent.tools import TavilySearchClient, register_builtin_tools
from chat_agent.config import Settings
from chat_agent.ingest.chunker import TextChunker
from chat_agent.ingest.embedder import Embedder, create_embedder
from chat_agent.ingest.parser import ParserRegistry
from chat_agent.ingest.pipeline import IngestPipeline
from chat_agent.obs.tracing import preview
from chat_agent.retrieval.retriever import VectorRetriever
from chat_agent.retrieval.vector_store import InMemoryVectorStore
from chat_agent.types import ConversationTurn, ToolTrace

log = logging.getLogger(__name__)


class Agent(Protocol):
    def run(
        self,
        question: str,
        history: Sequence[ConversationTurn] | None = None,
    ) -> AgentResult: ...


@dataclass(slots=True)
class Services:
    settings: Settings
    agent: Agent
    history: ConversationStore
    retriever: VectorRetriever
    vector_store: InMemoryVectorStore
    tool_registry: ToolRegistry
    llm: Any | None = None

    @property
    def agent_mode(self) -> str:
        return "langchain" if isinstance(self.agent, AgentLoop) else "deterministic"


def create_llm(settings: Settings) -> Any:
    if not settings.llm_configured:
        return None

    from langchain_openai import ChatOpenAI

    return ChatOpenAI(
        model=settings.openai_model,
        temperature=settings.llm_temperature,
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
    )


def build_index(
    settings: Settings,
    *,
    embedder: Embedder | None = None,
    parser_registry: ParserRegistry | None = None,
    sources: Sequence[str | Path] | None = None,
) -> tuple[InMemoryVectorStore, VectorRetriever]:
    """Ingest ``sources`` into a fresh in-memory index and return it with its retriever."""

    embedder = embedder or create_embedder(settings.embedding_backend, settings.embedding_model)
    vector_store = InMemoryVectorStore()
    pipeline = IngestPipeline(
        parser_registry or ParserRegistry(),
        TextChunker(settings.chunking),
        embedder,
        vector_store,
    )

    to_ingest = [settings.knowledge_source] if sources is None else list(sources)
    log.info("Loading %d knowledge source(s)", len(to_ingest))
    pipeline.ingest_many(to_ingest)
    log.info("Vector index ready with %d chunks", len(vector_store))
    return vector_store, VectorRetriever(vector_store, embedder, settings.retrieval)


def build_services(
    settings: Settings,
    *,
    llm: Any | None = None,
    embedder: Embedder | None = None,
    search_client: TavilySearchClient | None = None,
    parser_registry: ParserRegistry | None = None,
    sources: Sequence[str | Path] | None = None,
) -> Services:
    """Wire the index, tools, agent and conversation store.

    Every source (the configured knowledge source by default) is ingested
    before this returns. Pass ``sources=[]`` to start with an empty index.
    """

    vector_store, retriever = build_index(
        settings,
        embedder=embedder,
        parser_registry=parser_registry,
        sources=sources,
    )
    registry = ToolRegistry()
    register_builtin_tools(
        registry,
        retriever,
        search_client or TavilySearchClient(settings.search_config()),
        topic=settings.knowledge_topic,
        source=settings.knowledge_source,
        config=settings.retrieval,
    )
    registry.set_observer(_log_tool_trace)

    llm = llm if llm is not None else create_llm(settings)
    agent: Agent
    if llm is not None:
        agent = AgentLoop(
            llm=llm,
            tool_registry=registry,
            config=settings.agent,
            topic=settings.knowledge_topic,
        )
    else:
        log.warning("OPENAI_API_KEY not set; answering from the document index only")
        agent = DeterministicAgent(tool_registry=registry)

    return Services(
        settings=settings,
        agent=agent,
        history=ConversationStore(
            settings.agent.max_history_turns,
            max_sessions=settings.agent.max_sessions,
        ),
        retriever=retriever,
        vector_store=vector_store,
        tool_registry=registry,
        llm=llm,
    )


def _log_tool_trace(trace: ToolTrace) -> None:
    log.info(
        "tool=%s latency_ms=%.1f input=%s output=%s",
        trace.name,
        trace.latency_ms,
        trace.input_payload,
        preview(trace.output_preview),
    )

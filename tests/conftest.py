from collections.abc import Callable
from pathlib import Path
from typing import Any

import fitz
import pytest
from langchain_core.messages import AIMessage, BaseMessage, ToolMessage

from chat_agent.ingest.embedder import HashingEmbedder
from chat_agent.retrieval.retriever import VectorRetriever
from chat_agent.retrieval.vector_store import InMemoryVectorStore
from chat_agent.types import DocumentChunk

APPLE_TEXT = (
    "Apple Inc. is an American multinational technology company headquartered "
    "in Cupertino, California. Apple Inc. designs the iPhone, the Mac and the iPad."
)

Reply = AIMessage | Callable[[list[BaseMessage]], AIMessage]


class ScriptedChatModel:
    """Chat model double replaying canned replies and recording every prompt."""

    def __init__(self, replies: list[Reply]) -> None:
        self.replies = list(replies)
        self.calls: list[list[BaseMessage]] = []
        self.bound_tools: list[Any] | None = None

    def bind_tools(self, tools: list[Any]) -> "ScriptedChatModel":
        self.bound_tools = tools
        return self

    def invoke(self, messages: list[BaseMessage]) -> AIMessage:
        self.calls.append(list(messages))
        if not self.replies:
            raise AssertionError("chat model called more often than scripted")
        reply = self.replies.pop(0)
        return reply(messages) if callable(reply) else reply


class EchoChatModel:
    """Answers every question with a fixed prefix and the last user message."""

    def __init__(self, fail_with: Exception | None = None) -> None:
        self.fail_with = fail_with

    def bind_tools(self, tools: list[Any]) -> "EchoChatModel":
        return self

    def invoke(self, messages: list[BaseMessage]) -> AIMessage:
        if self.fail_with is not None:
            raise self.fail_with
        return AIMessage(content=f"answer: {messages[-1].content}")


def write_pdf(path: Path, *pages: str) -> Path:
    """Write a PDF with one text line per page."""
    with fitz.open() as pdf:
        for text in pages:
            page = pdf.new_page()
            page.insert_text((72, 72), text)
        pdf.save(str(path))
    return path


def tool_call(name: str, query: str, call_id: str) -> dict[str, Any]:
    return {"name": name, "args": {"query": query}, "id": call_id}


def tool_messages(messages: list[BaseMessage]) -> list[ToolMessage]:
    return [m for m in messages if isinstance(m, ToolMessage)]


@pytest.fixture
def apple_retriever() -> VectorRetriever:
    embedder = HashingEmbedder()
    store = InMemoryVectorStore()
    chunks = [
        DocumentChunk(
            chunk_id="apple-chunk-0000",
            doc_id="apple",
            text=APPLE_TEXT,
            metadata={"source": "wiki"},
        )
    ]
    store.upsert(chunks, embedder.embed_documents([c.text for c in chunks]))
    return VectorRetriever(store, embedder)

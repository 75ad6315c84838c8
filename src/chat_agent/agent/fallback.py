"""Deterministic fallback agent when no chat model is configured."""

from __future__ import annotations

from collections.abc import Sequence

from chat_agent.agent.planner import AgentResult
from chat_agent.agent.registry import ToolName, ToolRegistry
from chat_agent.types import ConversationTurn, ToolTrace


class DeterministicAgent:
    """Answers straight from the document index without an LLM.

    Keeps the same `run` contract as `AgentLoop` so the HTTP endpoint and the
    CLI work in local/offline environments where `OPENAI_API_KEY` is not set.
    The answer is the domain lookup output for the question itself.
    """

    def __init__(self, *, tool_registry: ToolRegistry) -> None:
        self.tool_registry = tool_registry

    def run(
        self,
        question: str,
        history: Sequence[ConversationTurn] | None = None,
    ) -> AgentResult:
        del history  # stateless: every answer is a fresh lookup.
        traces: list[ToolTrace] = []
        answer = self.tool_registry.execute(
            ToolName.DOMAIN_SEARCH,
            {"query": question},
            observer=traces.append,
        )
        return AgentResult(answer=answer, rounds=1, tool_traces=traces)

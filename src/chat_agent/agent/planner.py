"""Bounded tool-calling agent loop on top of a LangChain chat model."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)

from chat_agent.agent.registry import ToolName, ToolRegistry
from chat_agent.config import AgentConfig
from chat_agent.obs.tracing import preview
from chat_agent.types import ConversationTurn, Role, ToolCallResult, ToolTrace

log = logging.getLogger(__name__)


def build_system_prompt(topic: str) -> str:
    return (
        "You are a helpful assistant. Use the available tools when needed. "
        f"Use {ToolName.WEB_SEARCH.value} for general web searches and current information. "
        f"Use {ToolName.DOMAIN_SEARCH.value} for questions about {topic}. "
        "IMPORTANT: Only call each tool ONCE per user query. After getting tool results, "
        "provide your answer based on the information received. "
        "If the information is limited, say so and provide what you have."
    )


CONTINUATION_PROMPT = (
    "You are a helpful assistant. Based on the tool results you received, "
    "provide a clear answer to the user. "
    "Do NOT call tools again - use the information you already have."
)


@dataclass(slots=True)
class AgentResult:
    """Outcome of answering one question."""

    answer: str
    rounds: int = 0
    tool_traces: list[ToolTrace] = field(default_factory=list)
    exhausted: bool = False


class AgentLoop:
    """Answers one question with at most ``max_rounds`` tool rounds.

    Each round executes the tool calls requested by the model, feeds the
    results back and asks again. Within one ``run`` every (tool, query) pair
    executes at most once; repeated requests are dropped without a result.
    Tool failures never escape the loop: they are returned to the model as
    ``"Error: ..."`` tool results. Errors raised by the chat model itself
    propagate to the caller.
    """

    def __init__(
        self,
        *,
        llm: Any,
        tool_registry: ToolRegistry,
        config: AgentConfig | None = None,
        topic: str = "the indexed document",
    ) -> None:
        self.llm = llm
        self.tool_registry = tool_registry
        self.config = config or AgentConfig()
        self.system_prompt = build_system_prompt(topic)
        self._llm_with_tools = llm.bind_tools(tool_registry.as_langchain_tools())

    def run(
        self,
        question: str,
        history: Sequence[ConversationTurn] | None = None,
    ) -> AgentResult:
        """Answer ``question`` given the prior turns; ``history`` is not mutated."""

        used_calls: set[str] = set()
        traces: list[ToolTrace] = []
        prior = to_messages(history or [])

        response = self._llm_with_tools.invoke(
            [SystemMessage(content=self.system_prompt), *prior, HumanMessage(content=question)]
        )

        rounds = 0
        stopped_early = False
        while _tool_calls(response) and rounds < self.config.max_rounds:
            rounds += 1
            results = self._execute_round(_tool_calls(response), used_calls, traces)
            if not results:
                log.info("Round %d produced no new tool results; stopping", rounds)
                stopped_early = True
                break

            continuation: list[BaseMessage] = [
                SystemMessage(content=CONTINUATION_PROMPT),
                *prior,
                HumanMessage(content=question),
                response,
                *(
                    ToolMessage(content=r.content, tool_call_id=r.call_id, name=r.name)
                    for r in results
                ),
            ]
            response = self._llm_with_tools.invoke(continuation)

        answer = message_text(response)
        exhausted = (
            not stopped_early
            and bool(_tool_calls(response))
            and rounds >= self.config.max_rounds
        )
        if exhausted:
            log.warning("Round cap of %d reached with tool calls pending", self.config.max_rounds)
            if self.config.exhausted_answer is not None and not answer.strip():
                answer = self.config.exhausted_answer

        return AgentResult(answer=answer, rounds=rounds, tool_traces=traces, exhausted=exhausted)

    def _execute_round(
        self,
        tool_calls: list[dict[str, Any]],
        used_calls: set[str],
        traces: list[ToolTrace],
    ) -> list[ToolCallResult]:
        results: list[ToolCallResult] = []
        for call in tool_calls:
            name = str(call.get("name", ""))
            args = call.get("args") or {}
            key = f"{name}:{args.get('query')}"

            if key in used_calls:
                log.info("Skipping duplicate tool call: %s", key)
                continue
            used_calls.add(key)

            if name not in self.tool_registry:
                log.warning("Model requested unknown tool %r", name)
                continue

            log.info("Using tool %s with query %r", name, args.get("query"))
            try:
                output = self.tool_registry.execute(name, args, observer=traces.append)
            except Exception as exc:
                log.warning("Tool %s failed: %s", name, exc)
                output = f"Error: {exc}"
            log.info("Tool %s result: %s", name, preview(output))

            results.append(
                ToolCallResult(call_id=str(call.get("id") or ""), name=name, content=output)
            )
        return results


def to_messages(history: Sequence[ConversationTurn]) -> list[BaseMessage]:
    messages: list[BaseMessage] = []
    for turn in history:
        if turn.role is Role.USER:
            messages.append(HumanMessage(content=turn.content))
        else:
            messages.append(AIMessage(content=turn.content))
    return messages


def message_text(message: Any) -> str:
    """Plain text of a chat model response, joining multi-part content."""
    content = getattr(message, "content", message)
    if content is None:
        return ""
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict):
                if item.get("type", "text") == "text" and "text" in item:
                    parts.append(str(item["text"]))
            else:
                parts.append(str(item))
        return "".join(parts)
    return str(content)


def _tool_calls(message: Any) -> list[dict[str, Any]]:
    return list(getattr(message, "tool_calls", None) or [])

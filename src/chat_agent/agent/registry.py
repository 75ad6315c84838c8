"""Tool registry built on Pydantic v2 models."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, ConfigDict, Field

from chat_agent.obs.tracing import Timer
from chat_agent.types import ToolTrace


class ToolName(str, Enum):
    """The closed set of tools the assistant can call."""

    WEB_SEARCH = "web_search"
    DOMAIN_SEARCH = "domain_search"


class QueryInput(BaseModel):
    query: str = Field(min_length=1, description="The search query")


class ToolSpec(BaseModel):
    """Declarative tool specification for registration and validation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: ToolName
    description: str
    args_schema: type[BaseModel] = QueryInput
    handler: Callable[[BaseModel], str]

    def invoke(self, payload: dict[str, Any]) -> str:
        data = self.args_schema.model_validate(payload)
        return self.handler(data)


class ToolRegistry:
    """Stores tool specs and exports LangChain-compatible tool objects."""

    def __init__(self) -> None:
        self._tools: dict[ToolName, ToolSpec] = {}
        self._observer: Callable[[ToolTrace], None] | None = None

    def __contains__(self, name: object) -> bool:
        try:
            return ToolName(name) in self._tools
        except ValueError:
            return False

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name.value}")
        self._tools[spec.name] = spec

    def set_observer(self, observer: Callable[[ToolTrace], None] | None) -> None:
        """Set an optional callback invoked after each tool execution."""
        self._observer = observer

    def execute(
        self,
        name: ToolName | str,
        payload: dict[str, Any],
        *,
        observer: Callable[[ToolTrace], None] | None = None,
    ) -> str:
        """Run one tool; ``observer`` receives this call's trace only.

        A trace is emitted for failed executions too, with an ``Error:``
        preview, before the exception propagates.
        """
        try:
            tool_name = ToolName(name)
        except ValueError as exc:
            raise KeyError(f"Unknown tool: {name}") from exc
        spec = self._tools.get(tool_name)
        if spec is None:
            raise KeyError(f"Tool not registered: {tool_name.value}")
        return self._execute_spec(spec, payload, observer)

    def as_langchain_tools(self) -> list[StructuredTool]:
        tools: list[StructuredTool] = []
        for spec in self._tools.values():
            tools.append(
                StructuredTool.from_function(
                    name=spec.name.value,
                    description=spec.description,
                    args_schema=spec.args_schema,
                    func=self._build_function(spec),
                )
            )
        return tools

    def specs(self) -> list[ToolSpec]:
        return list(self._tools.values())

    def _build_function(self, spec: ToolSpec) -> Callable[..., str]:
        def _callable(**kwargs: Any) -> str:
            return self._execute_spec(spec, kwargs)

        return _callable

    def _execute_spec(
        self,
        spec: ToolSpec,
        payload: dict[str, Any],
        observer: Callable[[ToolTrace], None] | None = None,
    ) -> str:
        try:
            with Timer() as timer:
                output = spec.invoke(payload)
        except Exception as exc:
            self._notify(spec, payload, f"Error: {exc}", timer.elapsed_ms, observer)
            raise
        self._notify(spec, payload, output, timer.elapsed_ms, observer)
        return output

    def _notify(
        self,
        spec: ToolSpec,
        payload: dict[str, Any],
        output: str,
        latency_ms: float,
        observer: Callable[[ToolTrace], None] | None,
    ) -> None:
        trace = ToolTrace(
            name=spec.name.value,
            input_payload=dict(payload),
            output_preview=output[:320],
            latency_ms=latency_ms,
        )
        for callback in (self._observer, observer):
            if callback is not None:
                callback(trace)

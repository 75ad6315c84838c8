"""Configuration models for the chat assistant."""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

DEFAULT_KNOWLEDGE_SOURCE = "https://en.wikipedia.org/wiki/Apple_Inc."
DEFAULT_KNOWLEDGE_TOPIC = "Apple Inc."


class ChunkingConfig(BaseModel):
    """Configures character-window chunking of ingested documents."""

    chunk_size: int = Field(default=500, ge=50)
    chunk_overlap: int = Field(default=50, ge=0)

    @model_validator(mode="after")
    def _check_overlap(self) -> "ChunkingConfig":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be less than chunk_size")
        return self


class RetrievalConfig(BaseModel):
    """Configures the domain knowledge lookup."""

    top_k: int = Field(default=4, ge=1)
    min_content_length: int = Field(default=50, ge=0)
    limited_info_message: str = (
        "Limited information available from the indexed source. "
        "It does not contain enough detail to answer this query."
    )


class SearchConfig(BaseModel):
    """Configures the third-party web search provider."""

    endpoint: str = "https://api.tavily.com/search"
    api_key: str | None = None
    max_results: int = Field(default=5, ge=1, le=20)
    timeout_seconds: float = Field(default=30.0, gt=0.0)


class AgentConfig(BaseModel):
    """Configures the tool-calling loop and conversation memory."""

    max_rounds: int = Field(default=3, ge=1)
    # Returned when the round cap is hit while the model still only emits
    # tool calls. None keeps whatever (possibly empty) text the model produced.
    exhausted_answer: str | None = None
    max_history_turns: int | None = Field(default=20, ge=2)
    # Least recently used sessions are evicted beyond this count.
    max_sessions: int = Field(default=1000, ge=1)


class Settings(BaseModel):
    """Process settings resolved from the environment."""

    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str | None = None
    llm_temperature: float = Field(default=0.2, ge=0.0, le=2.0)

    tavily_api_key: str | None = None

    knowledge_source: str = DEFAULT_KNOWLEDGE_SOURCE
    knowledge_topic: str = DEFAULT_KNOWLEDGE_TOPIC
    embedding_backend: str = "sentence-transformers"
    embedding_model: str = "all-MiniLM-L6-v2"

    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)

    host: str = "127.0.0.1"
    port: int = 5000
    log_level: str = "INFO"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    @property
    def llm_configured(self) -> bool:
        return bool(self.openai_api_key)

    def search_config(self) -> SearchConfig:
        return SearchConfig(api_key=self.tavily_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        max_history = os.getenv("MAX_HISTORY_TURNS", "20")
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            llm_temperature=float(os.getenv("LLM_TEMPERATURE", "0.2")),
            tavily_api_key=os.getenv("TAVILY_API_KEY") or None,
            knowledge_source=os.getenv("KNOWLEDGE_SOURCE", DEFAULT_KNOWLEDGE_SOURCE),
            knowledge_topic=os.getenv("KNOWLEDGE_TOPIC", DEFAULT_KNOWLEDGE_TOPIC),
            embedding_backend=os.getenv("EMBEDDING_BACKEND", "sentence-transformers").lower(),
            embedding_model=os.getenv("EMBEDDING_MODEL", "all-MiniLM-L6-v2"),
            chunking=ChunkingConfig(
                chunk_size=int(os.getenv("CHUNK_SIZE", "500")),
                chunk_overlap=int(os.getenv("CHUNK_OVERLAP", "50")),
            ),
            agent=AgentConfig(
                max_rounds=int(os.getenv("AGENT_MAX_ROUNDS", "3")),
                exhausted_answer=os.getenv("AGENT_EXHAUSTED_ANSWER") or None,
                # "0" or "none" disables trimming.
                max_history_turns=(
                    None
                    if max_history.strip().lower() in {"", "0", "none"}
                    else int(max_history)
                ),
                max_sessions=int(os.getenv("MAX_SESSIONS", "1000")),
            ),
            host=os.getenv("HOST", "127.0.0.1"),
            port=int(os.getenv("PORT", "5000")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            cors_origins=[
                origin.strip()
                for origin in os.getenv("CORS_ORIGINS", "*").split(",")
                if origin.strip()
            ],
        )

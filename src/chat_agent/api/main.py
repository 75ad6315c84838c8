"""FastAPI entrypoint for the chat assistant."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from chat_agent.agent.history import DEFAULT_SESSION_ID
from chat_agent.config import Settings
from chat_agent.obs.logsetup import configure_logging
from chat_agent.services import Services, build_services

log = logging.getLogger(__name__)

EMPTY_QUESTION_ERROR = "No question provided."
SESSION_ENDED_ANSWER = "Session ended."
EXIT_COMMAND = "exit"
INVALID_REQUEST_ERROR = "Invalid request body"


class AskRequest(BaseModel):
    question: str | None = None
    session_id: str | None = None


class SourceSearchRequest(BaseModel):
    query: str = Field(min_length=1)
    top_k: int = Field(default=4, ge=1, le=20)


def create_app(
    services: Services | None = None,
    *,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the application.

    With ``services`` given the app is ready immediately (tests, embedding).
    Otherwise the index and agent are built from ``settings`` (or the
    environment) when the server starts up.
    """

    settings = services.settings if services is not None else settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.services is None:
            configure_logging(settings.log_level)
            app.state.services = build_services(settings)
        log.info("Chat assistant ready (mode=%s)", app.state.services.agent_mode)
        try:
            yield
        finally:
            app.state.services.history.clear_all()
            log.info("Chat assistant shut down; conversation state discarded")

    app = FastAPI(title="Chat Assistant", version="0.1.0", lifespan=lifespan)
    app.state.services = services
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        log.info("Rejected request to %s: %s", request.url.path, problems)
        return JSONResponse(
            status_code=400,
            content={"error": f"{INVALID_REQUEST_ERROR}: {problems}"},
        )

    def _services(request: Request) -> Services:
        current = request.app.state.services
        if current is None:
            raise HTTPException(status_code=503, detail="Service is still starting up.")
        return current

    @app.get("/health")
    def health(request: Request) -> dict[str, Any]:
        current = _services(request)
        return {
            "status": "ok",
            "llm_configured": current.llm is not None,
            "agent_mode": current.agent_mode,
            "indexed_chunks": len(current.vector_store),
            "active_sessions": len(current.history),
        }

    @app.post("/ask")
    def ask(
        body: AskRequest,
        request: Request,
        x_session_id: str | None = Header(default=None),
    ) -> Any:
        current = _services(request)
        question = body.question or ""
        session_id = body.session_id or x_session_id or DEFAULT_SESSION_ID

        if not question.strip():
            return JSONResponse(status_code=400, content={"error": EMPTY_QUESTION_ERROR})

        if question == EXIT_COMMAND:
            current.history.clear(session_id)
            log.info("Session %s ended by user", session_id)
            return {"answer": SESSION_ENDED_ANSWER}

        try:
            result = current.agent.run(question, current.history.get(session_id))
        except Exception as exc:
            log.exception("Failed to answer question for session %s", session_id)
            return JSONResponse(status_code=500, content={"error": str(exc)})

        current.history.append_exchange(session_id, question, result.answer)
        log.info(
            "Answered session=%s rounds=%d tools=%d",
            session_id,
            result.rounds,
            len(result.tool_traces),
        )
        return {"answer": result.answer}

    @app.delete("/sessions/{session_id}")
    def clear_session(session_id: str, request: Request) -> dict[str, Any]:
        cleared = _services(request).history.clear(session_id)
        return {"session_id": session_id, "cleared": cleared}

    @app.post("/sources/search")
    def source_search(body: SourceSearchRequest, request: Request) -> dict[str, Any]:
        hits = _services(request).retriever.retrieve(body.query, top_k=body.top_k)
        return {
            "items": [
                {
                    "chunk_id": hit.chunk.chunk_id,
                    "doc_id": hit.chunk.doc_id,
                    "score": hit.score,
                    "text": hit.chunk.text,
                    "metadata": hit.chunk.metadata,
                }
                for hit in hits
            ]
        }

    return app


app = create_app()

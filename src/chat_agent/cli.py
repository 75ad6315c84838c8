"""Command line entrypoint: serve the API, chat in a terminal, or ask a document."""

from __future__ import annotations

import argparse
import logging
import sys

from chat_agent.agent.history import ConversationStore
from chat_agent.agent.qa_chain import ContextQAChain
from chat_agent.config import Settings
from chat_agent.obs.logsetup import configure_logging
from chat_agent.services import Services, build_index, build_services, create_llm

log = logging.getLogger(__name__)

CLI_SESSION_ID = "cli"


def _serve(settings: Settings, args: argparse.Namespace) -> int:
    import uvicorn

    from chat_agent.api.main import create_app

    host = args.host or settings.host
    port = args.port or settings.port
    app = create_app(settings=settings)
    log.info("API running on http://%s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())
    return 0


def chat_loop(services: Services, *, stdin=sys.stdin, stdout=sys.stdout) -> None:
    """Read questions line by line until ``exit`` or end of input."""
    history: ConversationStore = services.history
    stdout.write("\nAgent ready! Type 'exit' to quit.\n\n")
    while True:
        stdout.write("User: ")
        stdout.flush()
        line = stdin.readline()
        if not line:
            break
        question = line.strip()
        if question.lower() == "exit":
            break
        if not question:
            continue
        try:
            result = services.agent.run(question, history.get(CLI_SESSION_ID))
        except Exception as exc:
            log.exception("Agent failed")
            stdout.write(f"Error: {exc}\n")
            continue
        history.append_exchange(CLI_SESSION_ID, question, result.answer)
        stdout.write(f"\nAgent: {result.answer}\n\n")


def _chat(settings: Settings, args: argparse.Namespace) -> int:
    del args
    chat_loop(build_services(settings))
    return 0


def _ask_doc(settings: Settings, args: argparse.Namespace) -> int:
    llm = create_llm(settings)
    if llm is None:
        print("OPENAI_API_KEY is required for ask-doc.", file=sys.stderr)
        return 2
    doc_settings = settings.model_copy(
        update={"chunking": settings.chunking.model_copy(update={"chunk_size": 1000, "chunk_overlap": 200})}
    )
    vector_store, retriever = build_index(doc_settings, sources=[args.source])
    if len(vector_store) == 0:
        print("No documents found.", file=sys.stderr)
        return 1
    chain = ContextQAChain(
        llm=llm,
        retriever=retriever,
        top_k=settings.retrieval.top_k,
    )
    print(f"\nQuestion: {args.question}")
    print(f"\nAnswer: {chain.ask(args.question)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chat-agent", description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.set_defaults(handler=_serve)

    chat = sub.add_parser("chat", help="Interactive chat in the terminal")
    chat.set_defaults(handler=_chat)

    ask_doc = sub.add_parser("ask-doc", help="Answer one question from a single document")
    ask_doc.add_argument("source", help="PDF, text file or web page URL")
    ask_doc.add_argument("question", nargs="?", default="name this company")
    ask_doc.set_defaults(handler=_ask_doc)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    return args.handler(settings, args)


if __name__ == "__main__":
    sys.exit(main())

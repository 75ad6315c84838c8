"""Single-shot question answering grounded on retrieved context."""

from __future__ import annotations

from typing import Any

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate

from chat_agent.retrieval.retriever import VectorRetriever

_QA_TEMPLATE = """Answer ONLY using this context:

{context}

QUESTION: {question}

ANSWER:"""


class ContextQAChain:
    """Retrieves the top chunks for a question and answers from them only."""

    def __init__(self, *, llm: Any, retriever: VectorRetriever, top_k: int = 4) -> None:
        self.retriever = retriever
        self.top_k = top_k
        self._chain = ChatPromptTemplate.from_template(_QA_TEMPLATE) | llm | StrOutputParser()

    def build_context(self, question: str) -> str:
        hits = self.retriever.retrieve(question, top_k=self.top_k)
        return "\n\n".join(hit.chunk.text for hit in hits)

    def ask(self, question: str) -> str:
        return self._chain.invoke(
            {"question": question, "context": self.build_context(question)}
        )

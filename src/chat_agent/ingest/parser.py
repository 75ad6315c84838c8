"""Parsing interfaces and concrete parsers for web pages and files."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import urlparse

import fitz
import requests
from bs4 import BeautifulSoup

from chat_agent.types import ParsedDocument

log = logging.getLogger(__name__)

_USER_AGENT = "Mozilla/5.0 (compatible; chat-agent/0.1)"


class Parser(ABC):
    """Base parser interface used by the ingest pipeline."""

    extensions: tuple[str, ...] = ()

    @abstractmethod
    def parse(self, path: Path, *, doc_id: str | None = None) -> ParsedDocument:
        """Parse a file into normalized text + metadata."""


class TextParser(Parser):
    """Parser for plain text documents."""

    extensions = (".txt", ".log")

    def parse(self, path: Path, *, doc_id: str | None = None) -> ParsedDocument:
        return ParsedDocument(
            doc_id=doc_id or path.stem,
            text=path.read_text(encoding="utf-8"),
            metadata={"source": str(path), "format": "text"},
        )


class MarkdownParser(Parser):
    """Parser for markdown documents."""

    extensions = (".md", ".markdown")

    def parse(self, path: Path, *, doc_id: str | None = None) -> ParsedDocument:
        return ParsedDocument(
            doc_id=doc_id or path.stem,
            text=path.read_text(encoding="utf-8"),
            metadata={"source": str(path), "format": "markdown"},
        )


class PdfParser(Parser):
    """Parser for PDF files, one text block per page."""

    extensions = (".pdf",)

    def parse(self, path: Path, *, doc_id: str | None = None) -> ParsedDocument:
        pages: list[str] = []
        with fitz.open(path) as pdf:
            for page in pdf:
                pages.append(page.get_text())
        return ParsedDocument(
            doc_id=doc_id or path.stem,
            text="\n".join(pages),
            metadata={"source": str(path), "format": "pdf", "pages": len(pages)},
        )


class WebPageParser:
    """Fetches an HTML page and extracts its readable text."""

    def __init__(self, *, timeout_seconds: float = 30.0) -> None:
        self.timeout_seconds = timeout_seconds

    def parse_url(self, url: str, *, doc_id: str | None = None) -> ParsedDocument:
        response = requests.get(
            url,
            timeout=self.timeout_seconds,
            headers={"User-Agent": _USER_AGENT},
        )
        response.raise_for_status()

        soup = BeautifulSoup(response.text, "html.parser")
        title = soup.title.string.strip() if soup.title and soup.title.string else url
        root = soup.body or soup
        for tag in root(["script", "style", "nav", "footer", "header"]):
            tag.decompose()
        text = root.get_text(separator="\n", strip=True)

        return ParsedDocument(
            doc_id=doc_id or _doc_id_from_url(url),
            text=text,
            metadata={"source": url, "format": "html", "title": title},
        )


class ParserRegistry:
    """Routes a source (URL or file path) to the matching parser."""

    def __init__(
        self,
        parsers: list[Parser] | None = None,
        *,
        web_parser: WebPageParser | None = None,
    ) -> None:
        self._parsers: dict[str, Parser] = {}
        self._web_parser = web_parser or WebPageParser()
        for parser in parsers or [TextParser(), MarkdownParser(), PdfParser()]:
            self.register(parser)

    def register(self, parser: Parser) -> None:
        for extension in parser.extensions:
            self._parsers[extension.lower()] = parser

    def parse_source(self, source: str | Path, *, doc_id: str | None = None) -> ParsedDocument:
        if isinstance(source, str) and _is_url(source):
            log.info("Fetching web page %s", source)
            return self._web_parser.parse_url(source, doc_id=doc_id)
        return self.parse_path(source, doc_id=doc_id)

    def parse_path(self, path: str | Path, *, doc_id: str | None = None) -> ParsedDocument:
        file_path = Path(path)
        parser = self._parsers.get(file_path.suffix.lower())
        if parser is None:
            raise ValueError(f"No parser registered for extension: {file_path.suffix}")
        log.info("Parsing %s", file_path)
        return parser.parse(file_path, doc_id=doc_id)


def _is_url(source: str) -> bool:
    return urlparse(source).scheme in {"http", "https"}


def _doc_id_from_url(url: str) -> str:
    parsed = urlparse(url)
    tail = parsed.path.rstrip("/").rsplit("/", 1)[-1]
    return tail or parsed.netloc

"""Timing helpers for agent and tool observability."""

from __future__ import annotations

import time


class Timer:
    """Simple context timer used by the agent loop."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0


def preview(text: str, limit: int = 100) -> str:
    """Single-line prefix of ``text`` for log output."""
    flat = " ".join(text.split())
    if len(flat) <= limit:
        return flat
    return flat[:limit] + "..."

"""In-memory fake similarity analyzer for testing and embedding.

Dict-backed implementation of the SimilarityAnalyzer protocol.
No I/O: canned results per path and optional artificial latency.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from continuity.analysis.schemas import (
    AnalysisOptions,
    FileInfo,
    SimilarityResult,
)


class StaticSimilarityAnalyzer:
    """Returns canned similarity results keyed by file path."""

    def __init__(
        self,
        results: dict[str, Sequence[SimilarityResult]] | None = None,
        *,
        default: Sequence[SimilarityResult] = (),
        delay_seconds: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        self._results: dict[str, list[SimilarityResult]] = {
            path: list(items) for path, items in (results or {}).items()
        }
        self._default = list(default)
        self.delay_seconds = delay_seconds
        self.error = error
        self.calls: list[tuple[FileInfo, AnalysisOptions]] = []

    def set_results(
        self, path: str, results: Sequence[SimilarityResult]
    ) -> None:
        self._results[path] = list(results)

    async def analyze(
        self, file_info: FileInfo, options: AnalysisOptions
    ) -> list[SimilarityResult]:
        self.calls.append((file_info, options))
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        return list(self._results.get(file_info.path, self._default))

    @property
    def call_count(self) -> int:
        return len(self.calls)

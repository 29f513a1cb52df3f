"""Tests for the circuit-breaker + retry analyzer wrapper."""

from __future__ import annotations

from collections.abc import Callable

import pytest
from circuitbreaker import CircuitBreakerError
from tenacity import wait_none

from continuity.analysis.guarded import GuardedSimilarityAnalyzer
from continuity.analysis.schemas import (
    AnalysisOptions,
    FileInfo,
    SimilarityResult,
)

FileFactory = Callable[..., FileInfo]


class FlakyAnalyzer:
    """Raises the queued errors first, then returns an empty result."""

    def __init__(self, *errors: Exception) -> None:
        self._errors = list(errors)
        self.calls = 0

    async def analyze(
        self, file_info: FileInfo, options: AnalysisOptions
    ) -> list[SimilarityResult]:
        self.calls += 1
        if self._errors:
            raise self._errors.pop(0)
        return []


class TestRetry:
    @pytest.mark.asyncio
    async def test_transient_errors_retried(
        self, make_file: FileFactory
    ) -> None:
        inner = FlakyAnalyzer(ConnectionError("reset"), TimeoutError())
        guarded = GuardedSimilarityAnalyzer(inner, wait=wait_none())

        result = await guarded.analyze(make_file(), AnalysisOptions())

        assert list(result) == []
        assert inner.calls == 3

    @pytest.mark.asyncio
    async def test_client_errors_not_retried(
        self, make_file: FileFactory
    ) -> None:
        inner = FlakyAnalyzer(ValueError("bad request"))
        guarded = GuardedSimilarityAnalyzer(inner, wait=wait_none())

        with pytest.raises(ValueError, match="bad request"):
            await guarded.analyze(make_file(), AnalysisOptions())

        assert inner.calls == 1

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(
        self, make_file: FileFactory
    ) -> None:
        inner = FlakyAnalyzer(*(ConnectionError() for _ in range(5)))
        guarded = GuardedSimilarityAnalyzer(
            inner, max_attempts=2, wait=wait_none()
        )

        with pytest.raises(ConnectionError):
            await guarded.analyze(make_file(), AnalysisOptions())

        assert inner.calls == 2


class TestCircuitBreaker:
    @pytest.mark.asyncio
    async def test_opens_after_threshold(self, make_file: FileFactory) -> None:
        inner = FlakyAnalyzer(*(ConnectionError() for _ in range(10)))
        guarded = GuardedSimilarityAnalyzer(
            inner,
            name="opens",
            failure_threshold=2,
            max_attempts=1,
            wait=wait_none(),
        )

        for _ in range(2):
            with pytest.raises(ConnectionError):
                await guarded.analyze(make_file(), AnalysisOptions())

        assert guarded.circuit_open is True
        with pytest.raises(CircuitBreakerError):
            await guarded.analyze(make_file(), AnalysisOptions())
        assert inner.calls == 2

    @pytest.mark.asyncio
    async def test_client_errors_do_not_trip_breaker(
        self, make_file: FileFactory
    ) -> None:
        inner = FlakyAnalyzer(*(ValueError() for _ in range(3)))
        guarded = GuardedSimilarityAnalyzer(
            inner, name="client", failure_threshold=2, wait=wait_none()
        )

        for _ in range(3):
            with pytest.raises(ValueError):
                await guarded.analyze(make_file(), AnalysisOptions())

        assert guarded.circuit_open is False

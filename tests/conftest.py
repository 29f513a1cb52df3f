"""Shared test fixtures: factories, in-memory collaborators and a fake clock."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import pytest

from continuity.analysis.fakes import StaticSimilarityAnalyzer
from continuity.analysis.schemas import (
    FileInfo,
    FileMetadata,
    LayerSimilarityScore,
    SimilarityMetadata,
    SimilarityResult,
)
from continuity.constants import (
    LAYER_CONTENT,
    LAYER_FILENAME,
    LAYER_SEMANTIC,
    LAYER_STRUCTURE,
)
from continuity.interception.fakes import ManualInterceptor

_FIXED_MTIME = datetime(2024, 1, 1, tzinfo=UTC)


class FakeClock:
    """Monotonic clock that only moves when told to (or by ``step``)."""

    def __init__(self, start: float = 0.0, step: float = 0.0) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> float:
        current = self.now
        self.now += self.step
        return current

    def advance(self, seconds: float) -> None:
        self.now += seconds


def build_file(
    path: str = "src/services/user_service.py",
    content: str | None = "class UserService:\n    pass\n",
    **metadata: Any,
) -> FileInfo:
    meta: dict[str, Any] = {
        "size": len(content or ""),
        "extension": "",
        "last_modified": _FIXED_MTIME,
    }
    meta.update(metadata)
    return FileInfo(
        path=path,
        content=content,
        metadata=FileMetadata(**meta),
    )


def build_similarity(
    score: float,
    confidence: float = 0.8,
    *,
    target: str = "src/services/account_service.py",
    source: str = "src/services/user_service.py",
    layers: dict[str, float] | None = None,
) -> SimilarityResult:
    """Similarity whose layers all equal *score* unless overridden."""
    layer_scores = {
        LAYER_FILENAME: score,
        LAYER_STRUCTURE: score,
        LAYER_SEMANTIC: score,
        LAYER_CONTENT: score,
    }
    layer_scores.update(layers or {})
    return SimilarityResult(
        overall_score=score,
        overall_confidence=confidence,
        layers={
            name: LayerSimilarityScore(score=value, confidence=confidence)
            for name, value in layer_scores.items()
        },
        metadata=SimilarityMetadata(source_file=source, target_file=target),
    )


@pytest.fixture
def make_file() -> Callable[..., FileInfo]:
    return build_file


@pytest.fixture
def make_similarity() -> Callable[..., SimilarityResult]:
    return build_similarity


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def analyzer() -> StaticSimilarityAnalyzer:
    return StaticSimilarityAnalyzer()


@pytest.fixture
def interceptor() -> ManualInterceptor:
    return ManualInterceptor()

"""Tests for the pure decision-rule helpers."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from continuity.analysis.schemas import SimilarityResult
from continuity.constants import LAYER_FILENAME, LAYER_SEMANTIC, Action
from continuity.engine.rules import (
    adjust_confidence,
    classify,
    conflicting_signals,
    weighted_score,
)
from continuity.engine.schemas import DecisionThresholds, DecisionWeights

SimilarityFactory = Callable[..., SimilarityResult]


@pytest.mark.parametrize(
    ("score", "expected"),
    [
        (0.85, Action.MERGE),
        (0.8499, Action.UPDATE),
        (0.7, Action.UPDATE),
        (0.6999, Action.WARN),
        (0.3, Action.WARN),
        (0.2999, Action.CREATE),
        (0.0, Action.CREATE),
    ],
)
def test_classify_boundaries_are_inclusive(
    score: float, expected: Action
) -> None:
    assert classify(score, DecisionThresholds()) == expected


def test_merge_confidence_boost_capped() -> None:
    assert adjust_confidence(Action.MERGE, 0.5) == pytest.approx(0.55)
    assert adjust_confidence(Action.MERGE, 0.95) == 1.0
    assert adjust_confidence(Action.UPDATE, 0.5) == 0.5


def test_weighted_score_uses_layer_weights(
    make_similarity: SimilarityFactory,
) -> None:
    sim = make_similarity(0.5, layers={LAYER_FILENAME: 1.0})
    # 1.0 * 0.2 + 0.5 * (0.3 + 0.3 + 0.2)
    assert weighted_score(sim, DecisionWeights()) == pytest.approx(0.6)


def test_conflicting_signals_needs_both_layers(
    make_similarity: SimilarityFactory,
) -> None:
    sim = make_similarity(0.9, layers={LAYER_FILENAME: 0.95, LAYER_SEMANTIC: 0.2})
    assert conflicting_signals(sim) == (0.95, 0.2)

    partial = sim.model_copy(
        update={"layers": {LAYER_FILENAME: sim.layers[LAYER_FILENAME]}}  # type: ignore[index]
    )
    assert conflicting_signals(partial) is None

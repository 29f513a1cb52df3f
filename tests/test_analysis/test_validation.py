"""Tests for similarity result validation."""

from __future__ import annotations

import math
from collections.abc import Callable

import pytest

from continuity.analysis.schemas import SimilarityResult
from continuity.analysis.validation import validate_similarities
from continuity.errors import InvalidSimilarityDataError

SimilarityFactory = Callable[..., SimilarityResult]


def test_valid_results_pass_through_in_order(
    make_similarity: SimilarityFactory,
) -> None:
    items = [make_similarity(0.2, target="a"), make_similarity(0.9, target="b")]

    validated = validate_similarities(items)

    assert [v.target_file for v in validated] == ["a", "b"]


def test_nan_score_rejected(make_similarity: SimilarityFactory) -> None:
    bad = make_similarity(0.5).model_copy(update={"overall_score": math.nan})
    with pytest.raises(InvalidSimilarityDataError, match="finite"):
        validate_similarities([bad])


def test_confidence_out_of_range_rejected(
    make_similarity: SimilarityFactory,
) -> None:
    bad = make_similarity(0.5).model_copy(
        update={"overall_confidence": 1.2}
    )
    with pytest.raises(InvalidSimilarityDataError, match="index 0"):
        validate_similarities([bad])


def test_error_reports_index(make_similarity: SimilarityFactory) -> None:
    bad = make_similarity(0.5).model_copy(update={"metadata": None})
    with pytest.raises(InvalidSimilarityDataError, match="index 1"):
        validate_similarities([make_similarity(0.4), bad])


def test_unparseable_mapping_rejected() -> None:
    with pytest.raises(InvalidSimilarityDataError):
        validate_similarities([{"overall_score": "high"}])


def test_layer_out_of_range_rejected(
    make_similarity: SimilarityFactory,
) -> None:
    bad = make_similarity(0.5, layers={"filename": 1.5})
    with pytest.raises(InvalidSimilarityDataError, match="filename"):
        validate_similarities([bad])

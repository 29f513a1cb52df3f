"""Reject malformed similarity results before they reach the engine."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

import pydantic

from continuity.analysis.schemas import SimilarityResult
from continuity.errors import InvalidSimilarityDataError


def _in_unit_range(value: float) -> bool:
    return math.isfinite(value) and 0.0 <= value <= 1.0


def validate_similarity(
    similarity: SimilarityResult, index: int = 0
) -> SimilarityResult:
    """Raise InvalidSimilarityDataError if *similarity* is unusable."""
    if not math.isfinite(similarity.overall_score):
        msg = (
            f"Invalid similarity data at index {index}: "
            "overall_score must be a finite number"
        )
        raise InvalidSimilarityDataError(msg)
    if not _in_unit_range(similarity.overall_score):
        msg = (
            f"Invalid similarity data at index {index}: "
            f"overall_score must be between 0 and 1, "
            f"got {similarity.overall_score}"
        )
        raise InvalidSimilarityDataError(msg)
    if not _in_unit_range(similarity.overall_confidence):
        msg = (
            f"Invalid similarity data at index {index}: "
            f"overall_confidence must be between 0 and 1, "
            f"got {similarity.overall_confidence}"
        )
        raise InvalidSimilarityDataError(msg)
    if similarity.layers is None:
        msg = f"Invalid similarity data at index {index}: layers is required"
        raise InvalidSimilarityDataError(msg)
    if similarity.metadata is None:
        msg = (
            f"Invalid similarity data at index {index}: "
            "metadata is required"
        )
        raise InvalidSimilarityDataError(msg)
    for name, layer in similarity.layers.items():
        if not (_in_unit_range(layer.score) and _in_unit_range(layer.confidence)):
            msg = (
                f"Invalid similarity data at index {index}: "
                f"layer '{name}' score/confidence must be between 0 and 1"
            )
            raise InvalidSimilarityDataError(msg)
    return similarity


def validate_similarities(
    items: Iterable[SimilarityResult | Mapping[str, Any]],
) -> list[SimilarityResult]:
    """Coerce and validate collaborator output, preserving order.

    Mappings are parsed into :class:`SimilarityResult`; parse failures
    surface as :class:`InvalidSimilarityDataError`.
    """
    validated: list[SimilarityResult] = []
    for i, item in enumerate(items):
        if isinstance(item, SimilarityResult):
            result = item
        else:
            try:
                result = SimilarityResult.model_validate(item)
            except pydantic.ValidationError as exc:
                msg = f"Invalid similarity data at index {i}: {exc}"
                raise InvalidSimilarityDataError(msg) from exc
        validated.append(validate_similarity(result, i))
    return validated

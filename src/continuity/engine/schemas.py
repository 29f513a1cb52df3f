"""Pydantic models for decision configuration and recommendations."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from continuity.analysis.schemas import SimilarityResult
from continuity.constants import Action, AlternativeAction


class DecisionThresholds(BaseModel):
    """Score cut-offs for one file type. create <= update <= merge."""

    model_config = ConfigDict(frozen=True)

    merge_threshold: float = 0.85
    update_threshold: float = 0.7
    create_threshold: float = 0.3
    auto_apply_threshold: float = 0.9


class DecisionWeights(BaseModel):
    """Per-layer weights used for the weighted layer score. Sum to 1.0."""

    model_config = ConfigDict(frozen=True)

    filename_weight: float = 0.2
    structure_weight: float = 0.3
    semantic_weight: float = 0.3
    content_weight: float = 0.2

    @property
    def total(self) -> float:
        return (
            self.filename_weight
            + self.structure_weight
            + self.semantic_weight
            + self.content_weight
        )


def _default_file_type_rules() -> dict[str, DecisionThresholds]:
    return {
        ".ts": DecisionThresholds(
            merge_threshold=0.9,
            update_threshold=0.75,
            create_threshold=0.25,
            auto_apply_threshold=0.95,
        ),
        ".md": DecisionThresholds(
            merge_threshold=0.8,
            update_threshold=0.6,
            create_threshold=0.4,
            auto_apply_threshold=0.85,
        ),
    }


class DecisionRules(BaseModel):
    """Per-extension threshold overrides with an explicit default."""

    model_config = ConfigDict(frozen=True)

    file_type_rules: dict[str, DecisionThresholds] = Field(
        default_factory=_default_file_type_rules
    )
    default_rules: DecisionThresholds = Field(
        default_factory=DecisionThresholds
    )
    weights: DecisionWeights = Field(default_factory=DecisionWeights)


class DecisionPerformance(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_decision_time_ms: int = 1000
    enable_explanations: bool = True
    max_alternatives: int = 3


class DecisionEngineConfig(BaseModel):
    """Full engine configuration.

    ``thresholds`` is the default rule set; it is the same object as
    ``rules.default_rules`` and is exposed for readability.
    """

    model_config = ConfigDict(frozen=True)

    rules: DecisionRules = Field(default_factory=DecisionRules)
    performance: DecisionPerformance = Field(
        default_factory=DecisionPerformance
    )

    @property
    def thresholds(self) -> DecisionThresholds:
        return self.rules.default_rules


class Alternative(BaseModel):
    """A secondary action the user could choose instead."""

    model_config = ConfigDict(frozen=True)

    action: AlternativeAction
    target_file: str | None = None
    confidence: float
    reason: str


class RecommendationMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    processing_time_ms: float = 0.0
    applied_rules: list[str] = Field(default_factory=lambda: list[str]())
    similarity_inputs: list[SimilarityResult] = Field(
        default_factory=lambda: list[SimilarityResult]()
    )


class Recommendation(BaseModel):
    """Engine output: primary action, ranked alternatives, auto-apply flag."""

    model_config = ConfigDict(frozen=True)

    action: Action
    target_file: str | None = None
    confidence: float
    reasoning: str
    alternatives: list[Alternative] = Field(
        default_factory=lambda: list[Alternative]()
    )
    auto_apply: bool = False
    metadata: RecommendationMetadata = Field(
        default_factory=RecommendationMetadata
    )

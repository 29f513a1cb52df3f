"""Decision engine: per-file-type rules over similarity comparisons."""

from continuity.engine.config_store import DecisionConfigStore
from continuity.engine.decision_engine import FileDecisionEngine
from continuity.engine.schemas import (
    Alternative,
    DecisionEngineConfig,
    DecisionPerformance,
    DecisionRules,
    DecisionThresholds,
    DecisionWeights,
    Recommendation,
    RecommendationMetadata,
)

__all__ = [
    "Alternative",
    "DecisionConfigStore",
    "DecisionEngineConfig",
    "DecisionPerformance",
    "DecisionRules",
    "DecisionThresholds",
    "DecisionWeights",
    "FileDecisionEngine",
    "Recommendation",
    "RecommendationMetadata",
]

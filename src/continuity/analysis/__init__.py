"""Similarity-side data model and the analyzer collaborator contract."""

from continuity.analysis.protocols import SimilarityAnalyzer
from continuity.analysis.schemas import (
    AnalysisOptions,
    FileInfo,
    FileMetadata,
    LayerSimilarityScore,
    SimilarityMetadata,
    SimilarityResult,
)
from continuity.analysis.validation import validate_similarities

__all__ = [
    "AnalysisOptions",
    "FileInfo",
    "FileMetadata",
    "LayerSimilarityScore",
    "SimilarityAnalyzer",
    "SimilarityMetadata",
    "SimilarityResult",
    "validate_similarities",
]

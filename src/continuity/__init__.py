"""continuity-cortex: create / update / merge / warn decisions for file changes."""

from continuity.analysis import FileInfo, SimilarityResult
from continuity.cortex import ContinuityCortex, CortexConfig
from continuity.engine import FileDecisionEngine, Recommendation

__all__ = [
    "ContinuityCortex",
    "CortexConfig",
    "FileDecisionEngine",
    "FileInfo",
    "Recommendation",
    "SimilarityResult",
]

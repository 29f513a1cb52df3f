"""Protocol for the external similarity collaborator.

Implementations satisfy this protocol structurally (no inheritance).
Test doubles can be plain classes matching the same signature.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from continuity.analysis.schemas import (
    AnalysisOptions,
    FileInfo,
    SimilarityResult,
)


class SimilarityAnalyzer(Protocol):
    async def analyze(
        self, file_info: FileInfo, options: AnalysisOptions
    ) -> Sequence[SimilarityResult | Mapping[str, Any]]: ...

"""Pydantic models for files under analysis and similarity results."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import PurePath

from pydantic import BaseModel, ConfigDict, Field

from continuity.constants import DEFAULT_MIME_TYPE


class FileMetadata(BaseModel):
    """Filesystem facts captured when the file was observed."""

    model_config = ConfigDict(frozen=True)

    size: int = 0
    extension: str = ""
    mime_type: str = DEFAULT_MIME_TYPE
    last_modified: datetime = Field(
        default_factory=lambda: datetime.now(UTC)
    )
    encoding: str | None = None


class FileInfo(BaseModel):
    """Immutable snapshot of a file, borrowed by the engine per decision."""

    model_config = ConfigDict(frozen=True)

    path: str
    content: str | None = None
    content_hash: str | None = None
    metadata: FileMetadata = Field(default_factory=FileMetadata)

    @property
    def extension(self) -> str:
        """Lowercase suffix of ``path`` including the dot, or ``""``."""
        return PurePath(self.path).suffix.lower()

    @property
    def name(self) -> str:
        return PurePath(self.path).name


class LayerSimilarityScore(BaseModel):
    """Score for one comparison dimension (filename, structure, ...)."""

    model_config = ConfigDict(frozen=True)

    score: float
    confidence: float
    explanation: str = ""


class SimilarityMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_file: str
    target_file: str
    processing_time_ms: float = 0.0
    algorithms_used: list[str] = Field(
        default_factory=lambda: list[str]()
    )


class SimilarityResult(BaseModel):
    """Comparison of a candidate file against one existing file.

    ``layers`` and ``metadata`` are optional at the type level so that
    malformed collaborator output can be represented and rejected by
    :func:`continuity.analysis.validation.validate_similarities`.
    """

    model_config = ConfigDict(frozen=True)

    overall_score: float
    overall_confidence: float
    layers: dict[str, LayerSimilarityScore] | None = None
    metadata: SimilarityMetadata | None = None

    @property
    def target_file(self) -> str | None:
        return self.metadata.target_file if self.metadata else None

    def layer_score(self, name: str) -> float | None:
        """Score of layer *name*, or None when the layer is absent."""
        if not self.layers or name not in self.layers:
            return None
        return self.layers[name].score


class AnalysisOptions(BaseModel):
    """Limits passed to the similarity collaborator for one analysis."""

    model_config = ConfigDict(frozen=True)

    max_comparison_files: int = 100
    similarity_threshold: float = 0.7
    confidence_threshold: float = 0.6

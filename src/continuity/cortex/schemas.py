"""Result and status payloads produced by the orchestrator."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from continuity.analysis.schemas import FileInfo, SimilarityResult
from continuity.constants import RunState
from continuity.engine.schemas import Recommendation
from continuity.interception.schemas import FileOperationEvent


class AnalysisRunMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_time: datetime
    end_time: datetime
    processing_time_ms: float
    components_used: list[str] = Field(
        default_factory=lambda: list[str]()
    )
    from_cache: bool = False


class CortexAnalysisResult(BaseModel):
    """Everything one analysis produced for one file."""

    model_config = ConfigDict(frozen=True)

    target_file: FileInfo
    similarities: list[SimilarityResult] = Field(
        default_factory=lambda: list[SimilarityResult]()
    )
    recommendation: Recommendation
    triggering_event: FileOperationEvent | None = None
    metadata: AnalysisRunMetadata


class ComponentStatuses(BaseModel):
    model_config = ConfigDict(frozen=True)

    interceptor: RunState
    analyzer: RunState
    decision_engine: RunState


class CortexStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: RunState
    components: ComponentStatuses
    monitored_paths: list[str] = Field(default_factory=lambda: list[str]())
    uptime_ms: float = 0.0
    active_analyses: int = 0

"""Orchestrator: admission control, caching, metrics and event fan-out."""

from continuity.cortex.config import (
    AnalysisConfig,
    CortexConfig,
    CortexConfigStore,
    DecisionsConfig,
    MonitoringConfig,
    PerformanceConfig,
)
from continuity.cortex.events import CortexEventListener, EventDispatcher
from continuity.cortex.metrics import CortexMetrics
from continuity.cortex.orchestrator import ContinuityCortex
from continuity.cortex.schemas import (
    AnalysisRunMetadata,
    ComponentStatuses,
    CortexAnalysisResult,
    CortexStatus,
)

__all__ = [
    "AnalysisConfig",
    "AnalysisRunMetadata",
    "ComponentStatuses",
    "ContinuityCortex",
    "CortexAnalysisResult",
    "CortexConfig",
    "CortexConfigStore",
    "CortexEventListener",
    "CortexMetrics",
    "CortexStatus",
    "DecisionsConfig",
    "EventDispatcher",
    "MonitoringConfig",
    "PerformanceConfig",
]

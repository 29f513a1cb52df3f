"""In-process counters for the orchestrator.

Averages are running means over the recorded samples. Counters are only
touched from the event loop thread.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field


@dataclass
class InterceptionMetrics:
    events_processed: int = 0
    events_ignored: int = 0
    avg_event_processing_time_ms: float = 0.0


@dataclass
class AnalysisMetrics:
    analyses_performed: int = 0
    avg_analysis_time_ms: float = 0.0
    cache_hits: int = 0
    cache_misses: int = 0
    timeouts: int = 0
    failures: int = 0
    rejections: int = 0

    @property
    def cache_hit_rate(self) -> float:
        lookups = self.cache_hits + self.cache_misses
        return self.cache_hits / lookups if lookups else 0.0


@dataclass
class DecisionMetrics:
    recommendations_generated: int = 0
    avg_decision_time_ms: float = 0.0
    auto_applied: int = 0
    user_interventions: int = 0


@dataclass
class ListenerMetrics:
    failures: int = 0


def _running_mean(current: float, count: int, sample: float) -> float:
    """Mean after adding *sample* as the *count*-th observation."""
    return current + (sample - current) / count


@dataclass
class CortexMetrics:
    interception: InterceptionMetrics = field(
        default_factory=InterceptionMetrics
    )
    analysis: AnalysisMetrics = field(default_factory=AnalysisMetrics)
    decisions: DecisionMetrics = field(default_factory=DecisionMetrics)
    listeners: ListenerMetrics = field(default_factory=ListenerMetrics)

    def record_event(self, elapsed_ms: float, *, ignored: bool) -> None:
        self.interception.events_processed += 1
        if ignored:
            self.interception.events_ignored += 1
        self.interception.avg_event_processing_time_ms = _running_mean(
            self.interception.avg_event_processing_time_ms,
            self.interception.events_processed,
            elapsed_ms,
        )

    def record_analysis(self, elapsed_ms: float) -> None:
        self.analysis.analyses_performed += 1
        self.analysis.avg_analysis_time_ms = _running_mean(
            self.analysis.avg_analysis_time_ms,
            self.analysis.analyses_performed,
            elapsed_ms,
        )

    def record_decision(self, elapsed_ms: float, *, auto_apply: bool) -> None:
        self.decisions.recommendations_generated += 1
        self.decisions.avg_decision_time_ms = _running_mean(
            self.decisions.avg_decision_time_ms,
            self.decisions.recommendations_generated,
            elapsed_ms,
        )
        if auto_apply:
            self.decisions.auto_applied += 1
        else:
            self.decisions.user_interventions += 1

    def snapshot(self) -> CortexMetrics:
        return copy.deepcopy(self)

    def reset(self) -> None:
        self.interception = InterceptionMetrics()
        self.analysis = AnalysisMetrics()
        self.decisions = DecisionMetrics()
        self.listeners = ListenerMetrics()

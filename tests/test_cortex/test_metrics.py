"""Tests for orchestrator counters."""

from __future__ import annotations

import pytest

from continuity.cortex.metrics import CortexMetrics


def test_running_averages() -> None:
    metrics = CortexMetrics()
    metrics.record_analysis(10.0)
    metrics.record_analysis(30.0)

    assert metrics.analysis.analyses_performed == 2
    assert metrics.analysis.avg_analysis_time_ms == pytest.approx(20.0)


def test_decisions_split_auto_applied_and_interventions() -> None:
    metrics = CortexMetrics()
    metrics.record_decision(1.0, auto_apply=True)
    metrics.record_decision(3.0, auto_apply=False)
    metrics.record_decision(5.0, auto_apply=False)

    assert metrics.decisions.auto_applied == 1
    assert metrics.decisions.user_interventions == 2
    assert metrics.decisions.avg_decision_time_ms == pytest.approx(3.0)


def test_cache_hit_rate() -> None:
    metrics = CortexMetrics()
    assert metrics.analysis.cache_hit_rate == 0.0

    metrics.analysis.cache_hits = 3
    metrics.analysis.cache_misses = 1

    assert metrics.analysis.cache_hit_rate == pytest.approx(0.75)


def test_snapshot_is_independent() -> None:
    metrics = CortexMetrics()
    metrics.record_event(2.0, ignored=True)

    snapshot = metrics.snapshot()
    metrics.record_event(4.0, ignored=False)

    assert snapshot.interception.events_processed == 1
    assert snapshot.interception.events_ignored == 1
    assert metrics.interception.events_processed == 2


def test_reset_zeroes_everything() -> None:
    metrics = CortexMetrics()
    metrics.record_analysis(5.0)
    metrics.listeners.failures = 2

    metrics.reset()

    assert metrics == CortexMetrics()

"""Tests for CortexConfig validation and merging."""

from __future__ import annotations

from typing import Any

import pytest

from continuity.constants import FileOperation
from continuity.cortex import CortexConfig, CortexConfigStore
from continuity.errors import ConfigValidationError


def test_defaults() -> None:
    config = CortexConfig()

    assert config.monitoring.debounce_ms == 300
    assert config.monitoring.max_file_size == 1024 * 1024
    assert config.monitoring.enabled_operations == list(FileOperation)
    assert config.analysis.similarity_threshold == 0.7
    assert config.analysis.analysis_timeout_ms == 5000
    assert config.decisions.auto_apply_threshold == 0.9
    assert config.performance.cache_ttl_ms == 300_000
    assert config.performance.max_concurrent_analyses == 3


@pytest.mark.parametrize(
    ("partial", "field"),
    [
        ({"monitoring": {"watch_paths": []}}, "watch_paths"),
        ({"monitoring": {"watch_paths": ["  "]}}, "watch_paths"),
        ({"monitoring": {"debounce_ms": -1}}, "debounce_ms"),
        ({"monitoring": {"enabled_operations": ["rename"]}}, "enabled_operations"),
        ({"analysis": {"similarity_threshold": 1.5}}, "similarity_threshold"),
        ({"analysis": {"confidence_threshold": -0.1}}, "confidence_threshold"),
        ({"analysis": {"max_comparison_files": 0}}, "max_comparison_files"),
        ({"analysis": {"analysis_timeout_ms": 0}}, "analysis_timeout_ms"),
        ({"analysis": {"enabled": "yes"}}, "enabled"),
        ({"decisions": {"auto_apply_threshold": 2}}, "auto_apply_threshold"),
        ({"decisions": {"max_alternatives": -1}}, "max_alternatives"),
        ({"performance": {"cache_ttl_ms": -5}}, "cache_ttl_ms"),
        ({"performance": {"max_concurrent_analyses": 0}}, "max_concurrent_analyses"),
        ({"performance": {"max_concurrent_analyses": True}}, "max_concurrent_analyses"),
    ],
)
def test_invalid_fields_rejected(partial: dict[str, Any], field: str) -> None:
    store = CortexConfigStore()
    with pytest.raises(ConfigValidationError, match=field) as exc_info:
        store.merged(partial)
    assert exc_info.value.code == "CONFIG_ERROR"


def test_unknown_section_and_field_rejected() -> None:
    store = CortexConfigStore()
    with pytest.raises(ConfigValidationError, match="Unknown config section"):
        store.merged({"telemetry": {}})
    with pytest.raises(ConfigValidationError, match="Unknown analysis field"):
        store.merged({"analysis": {"depth": 3}})


def test_merge_keeps_untouched_fields() -> None:
    store = CortexConfigStore({"analysis": {"max_comparison_files": 10}})

    merged = store.merged({"analysis": {"similarity_threshold": 0.5}})

    assert merged.analysis.max_comparison_files == 10
    assert merged.analysis.similarity_threshold == 0.5
    # merged() never commits
    assert store.snapshot().analysis.similarity_threshold == 0.7


def test_invalid_initial_config_rejected() -> None:
    with pytest.raises(ConfigValidationError):
        CortexConfigStore({"performance": {"max_concurrent_analyses": -2}})


def test_analysis_options_reflect_config() -> None:
    config = CortexConfigStore(
        {"analysis": {"max_comparison_files": 12, "confidence_threshold": 0.4}}
    ).snapshot()

    options = config.analysis_options()

    assert options.max_comparison_files == 12
    assert options.confidence_threshold == 0.4
    assert options.similarity_threshold == 0.7

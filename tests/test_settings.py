"""Tests for environment-based Settings."""

from __future__ import annotations

import logging

import pytest

from continuity.config import Settings
from continuity.constants import FileOperation
from continuity.errors import ConfigValidationError


class TestListParsing:
    def test_comma_separated_string_parsed_to_list(self) -> None:
        s = Settings(watch_paths="src, lib")  # type: ignore[arg-type]
        assert s.watch_paths == ["src", "lib"]

    def test_json_array_string_parsed(self) -> None:
        s = Settings(ignore_patterns='["*.tmp", "cache/"]')  # type: ignore[arg-type]
        assert s.ignore_patterns == ["*.tmp", "cache/"]

    def test_list_passthrough(self) -> None:
        s = Settings(watch_paths=["a", "b"])
        assert s.watch_paths == ["a", "b"]

    def test_operations_parsed_to_enum(self) -> None:
        s = Settings(enabled_operations="create,write")  # type: ignore[arg-type]
        assert s.enabled_operations == [
            FileOperation.CREATE,
            FileOperation.WRITE,
        ]

    def test_reads_prefixed_environment(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CONTINUITY_WATCH_PATHS", "app,tests")
        monkeypatch.setenv("CONTINUITY_MAX_CONCURRENT_ANALYSES", "7")

        s = Settings()

        assert s.watch_paths == ["app", "tests"]
        assert s.max_concurrent_analyses == 7


class TestWatchPathValidation:
    def test_empty_string_raises(self) -> None:
        with pytest.raises(ValueError, match="at least one path"):
            Settings(watch_paths="")  # type: ignore[arg-type]

    def test_duplicate_paths_warn(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="continuity.config"):
            s = Settings(watch_paths=["src", "src"])
        assert "Duplicate paths in CONTINUITY_WATCH_PATHS" in caplog.text
        assert s.watch_paths == ["src", "src"]


class TestToCortexConfig:
    def test_builds_matching_config(self) -> None:
        s = Settings(
            watch_paths=["src"],
            debounce_ms=50,
            analysis_timeout_ms=250,
            auto_apply_threshold=0.8,
            cache_ttl_ms=0,
        )

        config = s.to_cortex_config()

        assert config.monitoring.watch_paths == ["src"]
        assert config.monitoring.debounce_ms == 50
        assert config.analysis.analysis_timeout_ms == 250
        assert config.decisions.auto_apply_threshold == 0.8
        assert config.performance.cache_ttl_ms == 0

    def test_out_of_range_value_rejected(self) -> None:
        s = Settings(similarity_threshold=1.7)

        with pytest.raises(ConfigValidationError, match="similarity_threshold"):
            s.to_cortex_config()

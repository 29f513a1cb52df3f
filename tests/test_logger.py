"""Tests for the structured JSON cortex log."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from continuity.analysis.fakes import StaticSimilarityAnalyzer
from continuity.cortex import ContinuityCortex
from continuity.errors import AnalysisError
from continuity.interception.fakes import ManualInterceptor
from continuity.logger import AUDIT_LOGGER_NAME, CortexLogger


@pytest.fixture
def cortex_logger(tmp_path: Path) -> Iterator[CortexLogger]:
    audit = CortexLogger(tmp_path / "logs")
    yield audit
    audit.close()


def _lines(path: Path) -> list[dict[str, Any]]:
    return [json.loads(line) for line in path.read_text().splitlines()]


@pytest.mark.asyncio
async def test_analysis_and_recommendation_logged(
    cortex_logger: CortexLogger, make_file: Any
) -> None:
    cortex = ContinuityCortex(ManualInterceptor(), StaticSimilarityAnalyzer())
    cortex.add_event_listener(cortex_logger)

    await cortex.analyze_file_operation(make_file("src/a.py"))

    entries = _lines(cortex_logger.log_path)
    assert [e["type"] for e in entries] == ["analysis", "recommendation"]
    assert entries[0]["path"] == "src/a.py"
    assert entries[1]["action"] == "create"
    assert entries[1]["auto_apply"] is True


@pytest.mark.asyncio
async def test_error_logged_with_code(
    cortex_logger: CortexLogger, make_file: Any
) -> None:
    analyzer = StaticSimilarityAnalyzer(error=RuntimeError("x" * 2000))
    cortex = ContinuityCortex(ManualInterceptor(), analyzer)
    cortex.add_event_listener(cortex_logger)

    with pytest.raises(AnalysisError):
        await cortex.analyze_file_operation(make_file("src/a.py"))

    entries = _lines(cortex_logger.log_path)
    error = entries[-1]
    assert error["type"] == "error"
    assert error["code"] == "ANALYSIS_ERROR"
    assert error["path"] == "src/a.py"
    assert len(error["error"]) == 500


def test_existing_handlers_do_not_block_log_file(tmp_path: Path) -> None:
    parent = logging.getLogger(AUDIT_LOGGER_NAME)
    stray = logging.NullHandler()
    parent.addHandler(stray)
    try:
        audit = CortexLogger(tmp_path / "logs")
        audit.on_error(RuntimeError("boom"))
        audit.close()
    finally:
        parent.removeHandler(stray)

    entries = _lines(tmp_path / "logs" / "cortex.log")
    assert entries[0]["type"] == "error"
    assert entries[0]["code"] == "RuntimeError"


def test_each_directory_gets_its_own_file(tmp_path: Path) -> None:
    first = CortexLogger(tmp_path / "one")
    second = CortexLogger(tmp_path / "two")

    first.on_error(RuntimeError("first"))
    second.on_error(RuntimeError("second"))
    first.close()
    second.close()

    one = _lines(tmp_path / "one" / "cortex.log")
    two = _lines(tmp_path / "two" / "cortex.log")
    assert [e["error"] for e in one] == ["first"]
    assert [e["error"] for e in two] == ["second"]


def test_same_directory_shares_one_handler(tmp_path: Path) -> None:
    first = CortexLogger(tmp_path / "logs")
    second = CortexLogger(tmp_path / "logs")

    first.on_error(RuntimeError("once"))
    first.close()
    second.close()

    entries = _lines(tmp_path / "logs" / "cortex.log")
    assert len(entries) == 1

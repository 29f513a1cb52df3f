"""Structured JSON log of completed analyses, recommendations and errors.

CortexLogger is an event listener: register it with
``ContinuityCortex.add_event_listener`` and every completed analysis,
recommendation and error becomes one JSON line in ``cortex.log``.
"""

import hashlib
import json
import logging
import os
from datetime import UTC, datetime
from pathlib import Path

from continuity.constants import ERROR_TRUNCATION_CHARS
from continuity.cortex.events import CortexEventListener
from continuity.cortex.schemas import CortexAnalysisResult
from continuity.engine.schemas import Recommendation
from continuity.errors import ContinuityError
from continuity.logging_config import LOG_DATEFMT, LOG_FORMAT

__all__ = ["CortexLogger", "LOG_FORMAT", "LOG_DATEFMT"]

LOG_FILE_NAME = "cortex.log"
AUDIT_LOGGER_NAME = "continuity.cortex.audit"


class CortexLogger(CortexEventListener):
    """Structured JSON logger keyed by file path."""

    def __init__(self, log_dir: Path, level: str = "INFO") -> None:
        self._log_dir = log_dir
        self._log_dir.mkdir(parents=True, exist_ok=True)
        target = os.path.abspath(self.log_path)
        # One child logger per log file.
        suffix = hashlib.sha256(target.encode("utf-8")).hexdigest()[:12]
        self._logger = logging.getLogger(f"{AUDIT_LOGGER_NAME}.{suffix}")
        self._logger.setLevel(getattr(logging, level.upper()))
        self._logger.propagate = False

        has_file_handler = any(
            isinstance(h, logging.FileHandler) and h.baseFilename == target
            for h in self._logger.handlers
        )
        if not has_file_handler:
            handler = logging.FileHandler(target)
            handler.setFormatter(logging.Formatter("%(message)s"))
            self._logger.addHandler(handler)

    @property
    def log_path(self) -> Path:
        return self._log_dir / LOG_FILE_NAME

    def close(self) -> None:
        """Detach and close the file handlers for this log file."""
        for handler in list(self._logger.handlers):
            if isinstance(handler, logging.FileHandler):
                handler.close()
                self._logger.removeHandler(handler)

    def on_analysis_complete(self, result: CortexAnalysisResult) -> None:
        self._logger.info(
            json.dumps({
                "type": "analysis",
                "timestamp": datetime.now(UTC).isoformat(),
                "path": result.target_file.path,
                "similarities": len(result.similarities),
                "processing_time_ms": result.metadata.processing_time_ms,
                "from_cache": result.metadata.from_cache,
            })
        )

    def on_recommendation(self, recommendation: Recommendation) -> None:
        self._logger.info(
            json.dumps({
                "type": "recommendation",
                "timestamp": datetime.now(UTC).isoformat(),
                "action": str(recommendation.action),
                "target_file": recommendation.target_file,
                "confidence": recommendation.confidence,
                "auto_apply": recommendation.auto_apply,
                "applied_rules": recommendation.metadata.applied_rules,
            })
        )

    def on_error(self, error: Exception) -> None:
        code = (
            str(error.code)
            if isinstance(error, ContinuityError)
            else type(error).__name__
        )
        self._logger.error(
            json.dumps({
                "type": "error",
                "timestamp": datetime.now(UTC).isoformat(),
                "code": code,
                "component": getattr(error, "component", None),
                "path": getattr(error, "file_path", None),
                "error": str(error)[:ERROR_TRUNCATION_CHARS],
            })
        )

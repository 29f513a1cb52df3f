"""Exception taxonomy for the decision engine and orchestrator.

Every error carries a stable ``code`` (see :class:`ErrorCode`) and the
name of the ``component`` that raised it, so listeners receiving errors
through ``on_error`` can branch without string matching.
"""

from __future__ import annotations

from continuity.constants import ErrorCode


class ContinuityError(Exception):
    """Base class for all errors raised by this package."""

    code: ErrorCode = ErrorCode.UNKNOWN
    component: str = "cortex"

    def __init__(
        self,
        message: str,
        *,
        component: str | None = None,
        file_path: str | None = None,
    ) -> None:
        super().__init__(message)
        if component is not None:
            self.component = component
        self.file_path = file_path


# ── Validation ───────────────────────────────────────────


class ValidationError(ContinuityError):
    """A threshold, weight or config field failed validation."""

    code = ErrorCode.VALIDATION
    component = "decision_engine"


class ThresholdRangeError(ValidationError):
    """A threshold value lies outside [0.0, 1.0]."""


class ThresholdOrderError(ValidationError):
    """Thresholds violate create <= update <= merge."""


class WeightSumError(ValidationError):
    """Similarity weights do not sum to 1.0."""


class ConfigValidationError(ValidationError):
    """An orchestrator config section failed validation."""

    code = ErrorCode.CONFIG
    component = "cortex"


# ── Call arguments ───────────────────────────────────────


class InvalidInputError(ContinuityError):
    """Malformed call argument (e.g. empty file path)."""

    code = ErrorCode.INVALID_INPUT
    component = "decision_engine"


class InvalidSimilarityDataError(InvalidInputError):
    """A similarity result is malformed or out of range."""

    code = ErrorCode.INVALID_SIMILARITY_DATA


# ── Runtime ──────────────────────────────────────────────


class ConcurrencyRejectedError(ContinuityError):
    """Admission control denied a new analysis."""

    code = ErrorCode.CONCURRENCY_REJECTED

    def __init__(
        self, message: str, *, limit: int, file_path: str | None = None
    ) -> None:
        super().__init__(message, file_path=file_path)
        self.limit = limit


class AnalysisTimeoutError(ContinuityError):
    """The similarity step overran ``analysis_timeout_ms``."""

    code = ErrorCode.TIMEOUT

    def __init__(
        self, message: str, *, timeout_ms: int, file_path: str | None = None
    ) -> None:
        super().__init__(message, file_path=file_path)
        self.timeout_ms = timeout_ms


class DecisionTimeoutError(ContinuityError):
    """The decision step overran ``max_decision_time_ms``."""

    code = ErrorCode.TIMEOUT
    component = "decision_engine"

    def __init__(
        self, message: str, *, timeout_ms: int, file_path: str | None = None
    ) -> None:
        super().__init__(message, file_path=file_path)
        self.timeout_ms = timeout_ms


class AnalysisError(ContinuityError):
    """The similarity collaborator failed for a file."""

    code = ErrorCode.ANALYSIS
    component = "analyzer"

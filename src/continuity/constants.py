"""Shared constants, the single source of truth for cross-module values.

StrEnum members are str-compatible, so JSON log lines and status
payloads carry plain strings.
"""

from __future__ import annotations

from enum import StrEnum

# ── String Enums ─────────────────────────────────────────


class Action(StrEnum):
    """Primary actions a recommendation can carry."""

    CREATE = "create"
    UPDATE = "update"
    MERGE = "merge"
    WARN = "warn"


class AlternativeAction(StrEnum):
    """Actions allowed for alternatives (superset of Action)."""

    CREATE = "create"
    UPDATE = "update"
    MERGE = "merge"
    WARN = "warn"
    IGNORE = "ignore"


class FileOperation(StrEnum):
    """Operations reported by the file interceptor."""

    CREATE = "create"
    WRITE = "write"
    MOVE = "move"
    DELETE = "delete"


class RunState(StrEnum):
    """Lifecycle state of the orchestrator and its components."""

    RUNNING = "running"
    STOPPED = "stopped"
    ERROR = "error"


class CortexEventType(StrEnum):
    """Listener callbacks, named after the handler they invoke."""

    FILE_OPERATION = "on_file_operation"
    ANALYSIS_START = "on_analysis_start"
    ANALYSIS_COMPLETE = "on_analysis_complete"
    RECOMMENDATION = "on_recommendation"
    ERROR = "on_error"
    STATUS_CHANGE = "on_status_change"


class ErrorCode(StrEnum):
    """Stable machine-readable error codes."""

    UNKNOWN = "CONTINUITY_ERROR"
    VALIDATION = "VALIDATION_ERROR"
    CONFIG = "CONFIG_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_SIMILARITY_DATA = "INVALID_SIMILARITY_DATA"
    CONCURRENCY_REJECTED = "CONCURRENCY_REJECTED"
    TIMEOUT = "TIMEOUT_ERROR"
    ANALYSIS = "ANALYSIS_ERROR"


# ── Component Names ──────────────────────────────────────

COMPONENT_INTERCEPTOR = "FileOperationInterceptor"
COMPONENT_ANALYZER = "SimilarityAnalyzer"
COMPONENT_DECISION_ENGINE = "FileDecisionEngine"

# ── Similarity Layers ────────────────────────────────────

LAYER_FILENAME = "filename"
LAYER_STRUCTURE = "structure"
LAYER_SEMANTIC = "semantic"
LAYER_CONTENT = "content"

# ── Decision Engine ──────────────────────────────────────

EMPTY_INPUT_CONFIDENCE = 0.9
MERGE_CONFIDENCE_BOOST = 1.1
CONFLICTING_SIGNAL_GAP = 0.4
WEIGHT_SUM_TOLERANCE = 1e-6
NEAR_IDENTICAL_SCORE = 0.95
MAX_DECISION_TIME_MS_CEILING = 600_000  # 10 minutes
DEFAULT_RULE_TAG = "default"
CONFLICT_RULE_TAG = "conflicting-signals"

# ── Cortex ───────────────────────────────────────────────

CACHE_MAX_ENTRIES = 1000
DEFAULT_MAX_FILE_SIZE = 1024 * 1024  # 1 MiB
BINARY_DETECTION_BUFFER = 1024
DEFAULT_MIME_TYPE = "application/octet-stream"

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    "node_modules/",
    ".git/",
    "*.log",
    ".DS_Store",
    "dist/",
    "build/",
    "__pycache__/",
)

# ── Circuit Breaker / Retry (similarity collaborator) ────

CB_SIMILARITY_FAILURE_THRESHOLD = 5
CB_SIMILARITY_RECOVERY_TIMEOUT = 30  # seconds
RETRY_MAX_ATTEMPTS = 3
RETRY_INITIAL_WAIT = 0.1  # seconds
RETRY_MAX_WAIT = 1.0  # seconds

# ── Logging ──────────────────────────────────────────────

ERROR_TRUNCATION_CHARS = 500

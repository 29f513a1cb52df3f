"""Environment-based configuration."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode

from continuity.constants import (
    DEFAULT_IGNORE_PATTERNS,
    DEFAULT_MAX_FILE_SIZE,
    FileOperation,
)
from continuity.cortex.config import CortexConfig, CortexConfigStore

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Reads from .env file and CONTINUITY_* environment variables."""

    # Logging
    log_level: str = "INFO"
    log_dir: Path = Path("logs")

    # Monitoring
    watch_paths: Annotated[list[str], NoDecode] = ["."]
    ignore_patterns: Annotated[list[str], NoDecode] = list(
        DEFAULT_IGNORE_PATTERNS
    )
    enabled_operations: Annotated[list[FileOperation], NoDecode] = list(
        FileOperation
    )
    debounce_ms: int = 300
    max_file_size: int = DEFAULT_MAX_FILE_SIZE

    # Analysis
    analysis_enabled: bool = True
    similarity_threshold: float = 0.7
    confidence_threshold: float = 0.6
    max_comparison_files: int = 100
    analysis_timeout_ms: int = 5000

    # Decisions
    decisions_enabled: bool = True
    auto_apply_threshold: float = 0.9
    max_alternatives: int = 3
    enable_explanations: bool = True

    # Performance
    enable_cache: bool = True
    cache_ttl_ms: int = 300_000
    max_concurrent_analyses: int = 3
    enable_metrics: bool = True

    @field_validator(
        "watch_paths", "ignore_patterns", "enabled_operations", mode="before"
    )
    @classmethod
    def _parse_list(cls, v: Any) -> Any:
        """Accept comma-separated string or JSON array."""
        if isinstance(v, str):
            stripped = v.strip()
            if stripped.startswith("["):
                return json.loads(stripped)
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("watch_paths")
    @classmethod
    def _validate_watch_paths(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("watch_paths must contain at least one path")
        seen: set[str] = set()
        dupes: list[str] = []
        for p in v:
            if p in seen:
                dupes.append(p)
            seen.add(p)
        if dupes:
            logger.warning(
                "Duplicate paths in CONTINUITY_WATCH_PATHS: %s",
                ", ".join(dupes),
            )
        return v

    def to_cortex_config(self) -> CortexConfig:
        """Build a validated CortexConfig from these settings.

        Raises ConfigValidationError on the first out-of-range value.
        """
        store = CortexConfigStore(
            {
                "monitoring": {
                    "watch_paths": self.watch_paths,
                    "ignore_patterns": self.ignore_patterns,
                    "debounce_ms": self.debounce_ms,
                    "max_file_size": self.max_file_size,
                    "enabled_operations": [
                        str(op) for op in self.enabled_operations
                    ],
                },
                "analysis": {
                    "enabled": self.analysis_enabled,
                    "similarity_threshold": self.similarity_threshold,
                    "confidence_threshold": self.confidence_threshold,
                    "max_comparison_files": self.max_comparison_files,
                    "analysis_timeout_ms": self.analysis_timeout_ms,
                },
                "decisions": {
                    "enabled": self.decisions_enabled,
                    "auto_apply_threshold": self.auto_apply_threshold,
                    "max_alternatives": self.max_alternatives,
                    "enable_explanations": self.enable_explanations,
                },
                "performance": {
                    "enable_cache": self.enable_cache,
                    "cache_ttl_ms": self.cache_ttl_ms,
                    "max_concurrent_analyses": self.max_concurrent_analyses,
                    "enable_metrics": self.enable_metrics,
                },
            }
        )
        return store.get_config()

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "CONTINUITY_",
        "extra": "ignore",
    }

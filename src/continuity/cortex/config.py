"""Orchestrator configuration: sections, defaults and validation.

``CortexConfig`` is immutable; updates build a new instance. An
analysis keeps a reference to the instance current when it began, so
concurrent ``update_config`` calls never affect work in flight.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeAlias

from pydantic import BaseModel, ConfigDict, Field

from continuity.analysis.schemas import AnalysisOptions
from continuity.constants import FileOperation
from continuity.errors import ConfigValidationError
from continuity.interception.schemas import MonitoringConfig


class AnalysisConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    similarity_threshold: float = 0.7
    confidence_threshold: float = 0.6
    max_comparison_files: int = 100
    analysis_timeout_ms: int = 5000


class DecisionsConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    auto_apply_threshold: float = 0.9
    max_alternatives: int = 3
    enable_explanations: bool = True


class PerformanceConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    enable_cache: bool = True
    cache_ttl_ms: int = 300_000  # 5 minutes
    max_concurrent_analyses: int = 3
    enable_metrics: bool = True


class CortexConfig(BaseModel):
    """Process-wide orchestrator configuration."""

    model_config = ConfigDict(frozen=True)

    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    decisions: DecisionsConfig = Field(default_factory=DecisionsConfig)
    performance: PerformanceConfig = Field(
        default_factory=PerformanceConfig
    )

    def analysis_options(self) -> AnalysisOptions:
        return AnalysisOptions(
            max_comparison_files=self.analysis.max_comparison_files,
            similarity_threshold=self.analysis.similarity_threshold,
            confidence_threshold=self.analysis.confidence_threshold,
        )

    def decision_overrides(
        self, file_types: Iterable[str] = ()
    ) -> dict[str, Any]:
        """The decision-engine settings this config controls.

        ``auto_apply_threshold`` applies to the default rules and to every
        extension in *file_types*.
        """
        auto_apply = {
            "auto_apply_threshold": self.decisions.auto_apply_threshold,
        }
        return {
            "thresholds": auto_apply,
            "rules": {
                "file_type_rules": {ext: auto_apply for ext in file_types},
            },
            "performance": {
                "max_alternatives": self.decisions.max_alternatives,
                "enable_explanations": self.decisions.enable_explanations,
            },
        }


# ── validation ───────────────────────────────────────────

_Check: TypeAlias = Callable[[Any], bool]


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _unit_interval(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and 0.0 <= value <= 1.0
    )


def _positive_int(value: Any) -> bool:
    return _is_int(value) and value >= 1


def _non_negative_int(value: Any) -> bool:
    return _is_int(value) and value >= 0


def _string_list(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(
        isinstance(v, str) for v in value  # pyright: ignore[reportUnknownVariableType]
    )


def _non_empty_path_list(value: Any) -> bool:
    return (
        _string_list(value)
        and len(value) > 0
        and all(v.strip() for v in value)
    )


def _operation_list(value: Any) -> bool:
    valid = {op.value for op in FileOperation}
    return (
        isinstance(value, (list, tuple))
        and len(value) > 0  # pyright: ignore[reportUnknownArgumentType]
        and all(str(v) in valid for v in value)  # pyright: ignore[reportUnknownVariableType]
    )


_RULES: dict[str, dict[str, tuple[_Check, str]]] = {
    "monitoring": {
        "watch_paths": (
            _non_empty_path_list,
            "must be a non-empty list of non-empty strings",
        ),
        "ignore_patterns": (_string_list, "must be a list of strings"),
        "debounce_ms": (_non_negative_int, "must be a non-negative integer"),
        "max_file_size": (_positive_int, "must be a positive integer"),
        "enabled_operations": (
            _operation_list,
            "must be a non-empty list of create/write/move/delete",
        ),
    },
    "analysis": {
        "enabled": (_is_bool, "must be a boolean"),
        "similarity_threshold": (_unit_interval, "must be between 0 and 1"),
        "confidence_threshold": (_unit_interval, "must be between 0 and 1"),
        "max_comparison_files": (_positive_int, "must be a positive integer"),
        "analysis_timeout_ms": (_positive_int, "must be a positive integer"),
    },
    "decisions": {
        "enabled": (_is_bool, "must be a boolean"),
        "auto_apply_threshold": (_unit_interval, "must be between 0 and 1"),
        "max_alternatives": (
            _non_negative_int,
            "must be a non-negative integer",
        ),
        "enable_explanations": (_is_bool, "must be a boolean"),
    },
    "performance": {
        "enable_cache": (_is_bool, "must be a boolean"),
        "cache_ttl_ms": (_non_negative_int, "must be a non-negative integer"),
        "max_concurrent_analyses": (
            _positive_int,
            "must be a positive integer",
        ),
        "enable_metrics": (_is_bool, "must be a boolean"),
    },
}


def _section_dict(value: Any, section: str) -> dict[str, Any]:
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, Mapping):
        return dict(value)  # pyright: ignore[reportUnknownArgumentType]
    msg = f"{section} must be a mapping, got {type(value).__name__}"
    raise ConfigValidationError(msg)


def validate_section(section: str, values: Mapping[str, Any]) -> None:
    """Raise ConfigValidationError on the first invalid field."""
    rules = _RULES.get(section)
    if rules is None:
        msg = f"Unknown config section: {section}"
        raise ConfigValidationError(msg)
    for field, value in values.items():
        rule = rules.get(field)
        if rule is None:
            msg = f"Unknown {section} field: {field}"
            raise ConfigValidationError(msg)
        check, message = rule
        if not check(value):
            msg = f"{section}.{field} {message}, got {value!r}"
            raise ConfigValidationError(msg)


def merge_cortex_config(
    base: CortexConfig, partial: Mapping[str, Any]
) -> CortexConfig:
    """Validate every section of *partial*, then merge onto *base*."""
    updates: dict[str, Any] = {}
    for section, raw in partial.items():
        values = _section_dict(raw, section)
        validate_section(section, values)
        current: BaseModel = getattr(base, section)
        updates[section] = type(current).model_validate(
            current.model_dump() | values
        )
    return base.model_copy(update=updates)


class CortexConfigStore:
    """Holds the current CortexConfig; every replacement is validated."""

    def __init__(
        self, initial: CortexConfig | Mapping[str, Any] | None = None
    ) -> None:
        if isinstance(initial, CortexConfig):
            self._config = merge_cortex_config(
                CortexConfig(), initial.model_dump()
            )
        elif initial is not None:
            self._config = merge_cortex_config(CortexConfig(), initial)
        else:
            self._config = CortexConfig()

    def snapshot(self) -> CortexConfig:
        """The live immutable config; updates swap in a new instance."""
        return self._config

    def get_config(self) -> CortexConfig:
        return self._config.model_copy(deep=True)

    def merged(self, partial: Mapping[str, Any]) -> CortexConfig:
        """Validated result of applying *partial*, without committing it."""
        return merge_cortex_config(self._config, partial)

    def replace(self, config: CortexConfig) -> None:
        self._config = config

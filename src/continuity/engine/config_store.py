"""Validated configuration store for the decision engine.

Every mutation builds a complete candidate config, validates it, and
only then replaces the current one, so a rejected update never leaves
a partially applied state behind.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from pathlib import PurePath
from typing import Any

import pydantic
from pydantic import BaseModel

from continuity.constants import (
    DEFAULT_RULE_TAG,
    MAX_DECISION_TIME_MS_CEILING,
    WEIGHT_SUM_TOLERANCE,
)
from continuity.engine.schemas import (
    DecisionEngineConfig,
    DecisionPerformance,
    DecisionRules,
    DecisionThresholds,
    DecisionWeights,
)
from continuity.errors import (
    ThresholdOrderError,
    ThresholdRangeError,
    ValidationError,
    WeightSumError,
)

logger = logging.getLogger(__name__)

_THRESHOLD_FIELDS = frozenset(DecisionThresholds.model_fields)
_WEIGHT_FIELDS = frozenset(DecisionWeights.model_fields)
_PERFORMANCE_FIELDS = frozenset(DecisionPerformance.model_fields)
_RULE_FIELDS = frozenset(DecisionRules.model_fields)
_CONFIG_FIELDS = frozenset({"rules", "thresholds", "performance"})


def _as_dict(value: Any, section: str) -> dict[str, Any]:
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, Mapping):
        return dict(value)  # pyright: ignore[reportUnknownArgumentType]
    msg = f"{section} must be a mapping, got {type(value).__name__}"
    raise ValidationError(msg)


def _reject_unknown(
    values: Mapping[str, Any], allowed: frozenset[str], section: str
) -> None:
    unknown = sorted(set(values) - allowed)
    if unknown:
        msg = f"Unknown {section} field(s): {', '.join(unknown)}"
        raise ValidationError(msg)


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def normalize_extension(extension: str) -> str:
    """Normalize an extension token: lowercase with a leading dot."""
    token = extension.strip().lower()
    if not token or token == ".":
        msg = "File type rule keys must be non-empty extensions"
        raise ValidationError(msg)
    return token if token.startswith(".") else f".{token}"


def validate_thresholds(values: Mapping[str, Any]) -> DecisionThresholds:
    """Range- and order-check a full threshold mapping."""
    _reject_unknown(values, _THRESHOLD_FIELDS, "threshold")
    for key, value in values.items():
        if not _is_number(value) or not 0.0 <= value <= 1.0:
            msg = f"{key} must be between 0.0 and 1.0, got {value!r}"
            raise ThresholdRangeError(msg)
    try:
        thresholds = DecisionThresholds.model_validate(values)
    except pydantic.ValidationError as exc:
        raise ValidationError(str(exc)) from exc

    if thresholds.update_threshold < thresholds.create_threshold:
        msg = (
            "Configuration conflict: update threshold must be "
            ">= create threshold"
        )
        raise ThresholdOrderError(msg)
    if thresholds.merge_threshold < thresholds.update_threshold:
        msg = (
            "Configuration conflict: merge threshold must be "
            ">= update threshold"
        )
        raise ThresholdOrderError(msg)
    return thresholds


def validate_weights(values: Mapping[str, Any]) -> DecisionWeights:
    _reject_unknown(values, _WEIGHT_FIELDS, "weight")
    for key, value in values.items():
        if not _is_number(value) or not 0.0 <= value <= 1.0:
            msg = f"Weight {key} must be between 0.0 and 1.0, got {value!r}"
            raise ValidationError(msg)
    weights = DecisionWeights.model_validate(values)
    if abs(weights.total - 1.0) > WEIGHT_SUM_TOLERANCE:
        msg = f"Weights must sum to 1.0, got {weights.total:.6f}"
        raise WeightSumError(msg)
    return weights


def validate_performance(values: Mapping[str, Any]) -> DecisionPerformance:
    _reject_unknown(values, _PERFORMANCE_FIELDS, "performance")
    max_time = values.get("max_decision_time_ms")
    if not _is_number(max_time) or max_time <= 0:
        msg = "max_decision_time_ms must be positive"
        raise ValidationError(msg)
    if max_time > MAX_DECISION_TIME_MS_CEILING:
        msg = (
            "max_decision_time_ms should not exceed "
            f"{MAX_DECISION_TIME_MS_CEILING}ms"
        )
        raise ValidationError(msg)
    max_alternatives = values.get("max_alternatives")
    if (
        not isinstance(max_alternatives, int)
        or isinstance(max_alternatives, bool)
        or max_alternatives < 0
    ):
        msg = "max_alternatives must be a non-negative integer"
        raise ValidationError(msg)
    if not isinstance(values.get("enable_explanations"), bool):
        msg = "enable_explanations must be a boolean"
        raise ValidationError(msg)
    return DecisionPerformance.model_validate(values)


def merge_rules(
    base: DecisionRules, partial: Mapping[str, Any]
) -> DecisionRules:
    """Merge *partial* into *base* and validate the result.

    ``file_type_rules`` merge per extension: extensions not mentioned
    keep their rules; a new extension starts from the default rules.
    """
    _reject_unknown(partial, _RULE_FIELDS, "rules")

    default_rules = base.default_rules
    if "default_rules" in partial:
        default_rules = validate_thresholds(
            default_rules.model_dump()
            | _as_dict(partial["default_rules"], "default_rules")
        )

    file_type_rules = dict(base.file_type_rules)
    if "file_type_rules" in partial:
        overrides = _as_dict(partial["file_type_rules"], "file_type_rules")
        for raw_ext, raw_thresholds in overrides.items():
            ext = normalize_extension(str(raw_ext))
            start = file_type_rules.get(ext, default_rules)
            file_type_rules[ext] = validate_thresholds(
                start.model_dump()
                | _as_dict(raw_thresholds, f"file_type_rules[{ext}]")
            )

    weights = base.weights
    if "weights" in partial:
        weights = validate_weights(
            weights.model_dump() | _as_dict(partial["weights"], "weights")
        )

    return DecisionRules(
        file_type_rules=file_type_rules,
        default_rules=default_rules,
        weights=weights,
    )


def merge_config(
    base: DecisionEngineConfig, partial: Mapping[str, Any]
) -> DecisionEngineConfig:
    _reject_unknown(partial, _CONFIG_FIELDS, "config")
    rules = base.rules
    if "rules" in partial:
        rules = merge_rules(rules, _as_dict(partial["rules"], "rules"))
    if "thresholds" in partial:
        rules = merge_rules(
            rules,
            {"default_rules": _as_dict(partial["thresholds"], "thresholds")},
        )
    performance = base.performance
    if "performance" in partial:
        performance = validate_performance(
            performance.model_dump()
            | _as_dict(partial["performance"], "performance")
        )
    return DecisionEngineConfig(rules=rules, performance=performance)


def resolve_thresholds(
    rules: DecisionRules, path: str
) -> tuple[DecisionThresholds, str]:
    """Return the thresholds for *path* and the applied-rule tag."""
    ext = PurePath(path).suffix.lower()
    if ext and ext in rules.file_type_rules:
        return rules.file_type_rules[ext], f"{ext}-rules"
    return rules.default_rules, DEFAULT_RULE_TAG


class DecisionConfigStore:
    """Holds the engine config and validates every mutation."""

    def __init__(
        self,
        initial: DecisionEngineConfig | Mapping[str, Any] | None = None,
    ) -> None:
        if isinstance(initial, DecisionEngineConfig):
            self._config = merge_config(
                DecisionEngineConfig(), initial.model_dump()
            )
        elif initial is not None:
            self._config = merge_config(DecisionEngineConfig(), initial)
        else:
            self._config = DecisionEngineConfig()

    def get_config(self) -> DecisionEngineConfig:
        """Deep copy of the current config, safe to hold across updates."""
        return self._config.model_copy(deep=True)

    def update_config(self, partial: Mapping[str, Any]) -> None:
        self._config = merge_config(self._config, partial)
        logger.debug("event=decision_config_updated keys=%s", sorted(partial))

    def update_thresholds(self, partial: Mapping[str, Any]) -> None:
        """Merge *partial* into the default thresholds."""
        rules = merge_rules(self._config.rules, {"default_rules": partial})
        self._config = self._config.model_copy(update={"rules": rules})

    def update_rules(self, partial: Mapping[str, Any]) -> None:
        rules = merge_rules(self._config.rules, partial)
        self._config = self._config.model_copy(update={"rules": rules})

    def thresholds_for(self, path: str) -> tuple[DecisionThresholds, str]:
        return resolve_thresholds(self._config.rules, path)

"""FileDecisionEngine: similarity comparisons in, ranked recommendation out."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from continuity.analysis.schemas import FileInfo, SimilarityResult
from continuity.analysis.validation import validate_similarities
from continuity.constants import (
    CONFLICT_RULE_TAG,
    EMPTY_INPUT_CONFIDENCE,
    Action,
)
from continuity.engine.config_store import (
    DecisionConfigStore,
    resolve_thresholds,
)
from continuity.engine.rules import (
    adjust_confidence,
    build_alternatives,
    build_reasoning,
    classify,
    conflicting_signals,
    rank_similarities,
)
from continuity.engine.schemas import (
    DecisionEngineConfig,
    DecisionThresholds,
    Recommendation,
    RecommendationMetadata,
)
from continuity.errors import DecisionTimeoutError, InvalidInputError

logger = logging.getLogger(__name__)


class FileDecisionEngine:
    """Turns a similarity comparison set into a Recommendation.

    Pure computation: no I/O and no awaits. The time budget
    (``performance.max_decision_time_ms``) is soft and checked between
    steps, since synchronous work cannot be interrupted midway.
    """

    def __init__(
        self,
        config: DecisionEngineConfig | Mapping[str, Any] | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = DecisionConfigStore(config)
        self._clock = clock

    # ── configuration ──────────────────────────────────────

    def get_config(self) -> DecisionEngineConfig:
        return self._store.get_config()

    def update_config(self, partial: Mapping[str, Any]) -> None:
        self._store.update_config(partial)

    def update_thresholds(self, partial: Mapping[str, Any]) -> None:
        self._store.update_thresholds(partial)

    def update_rules(self, partial: Mapping[str, Any]) -> None:
        self._store.update_rules(partial)

    def thresholds_for(self, path: str) -> tuple[DecisionThresholds, str]:
        return self._store.thresholds_for(path)

    # ── decisions ──────────────────────────────────────────

    def generate_recommendation(
        self,
        file: FileInfo,
        similarities: Sequence[SimilarityResult | Mapping[str, Any]],
        config: DecisionEngineConfig | None = None,
    ) -> Recommendation:
        """Recommend create / update / merge / warn for *file*.

        *config* pins a snapshot (the orchestrator passes the one taken
        when its analysis began); otherwise the current config is read
        once here.

        Raises:
            InvalidInputError: ``file.path`` is empty.
            InvalidSimilarityDataError: a similarity entry is malformed.
            DecisionTimeoutError: the time budget was exceeded.
        """
        start = self._clock()
        cfg = config if config is not None else self._store.get_config()
        budget_ms = cfg.performance.max_decision_time_ms

        if not file.path or not file.path.strip():
            msg = "File path cannot be empty"
            raise InvalidInputError(msg)
        validated = validate_similarities(similarities)
        ranked = rank_similarities(validated)
        self._check_budget(start, budget_ms, file.path)

        thresholds, rule_tag = resolve_thresholds(cfg.rules, file.path)
        applied_rules = [rule_tag]
        best = ranked[0] if ranked else None

        conflict: tuple[float, float] | None = None
        score_action: Action | None = None
        if best is None:
            action = Action.CREATE
            confidence = EMPTY_INPUT_CONFIDENCE
            target_file = None
        else:
            score_action = classify(best.overall_score, thresholds)
            action = score_action
            confidence = adjust_confidence(action, best.overall_confidence)
            conflict = conflicting_signals(best)
            if conflict is not None:
                action = Action.WARN
                applied_rules.append(CONFLICT_RULE_TAG)
            target_file = (
                None if action == Action.CREATE else best.target_file
            )

        alternatives = build_alternatives(
            action,
            best,
            confidence,
            cfg.performance.max_alternatives,
            score_action=score_action,
        )
        reasoning = build_reasoning(
            action,
            file,
            best,
            weights=cfg.rules.weights,
            applied_rules=applied_rules,
            conflict=conflict,
            explanations=cfg.performance.enable_explanations,
        )
        auto_apply = (
            confidence >= thresholds.auto_apply_threshold
            and action != Action.WARN
        )
        elapsed_ms = self._check_budget(start, budget_ms, file.path)

        logger.debug(
            "event=recommendation path=%s action=%s confidence=%.3f"
            " auto_apply=%s rules=%s",
            file.path,
            action,
            confidence,
            auto_apply,
            ",".join(applied_rules),
        )
        return Recommendation(
            action=action,
            target_file=target_file,
            confidence=confidence,
            reasoning=reasoning,
            alternatives=alternatives,
            auto_apply=auto_apply,
            metadata=RecommendationMetadata(
                processing_time_ms=elapsed_ms,
                applied_rules=applied_rules,
                similarity_inputs=ranked,
            ),
        )

    def _check_budget(
        self, start: float, budget_ms: int, path: str
    ) -> float:
        elapsed_ms = (self._clock() - start) * 1000
        if elapsed_ms > budget_ms:
            logger.warning(
                "event=decision_timeout path=%s elapsed_ms=%.1f"
                " budget_ms=%d",
                path,
                elapsed_ms,
                budget_ms,
            )
            msg = f"Decision timeout: exceeded {budget_ms}ms limit"
            raise DecisionTimeoutError(
                msg, timeout_ms=budget_ms, file_path=path
            )
        return elapsed_ms

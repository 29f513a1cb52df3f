"""Decision rules: best-match ranking, classification, alternatives.

Pure functions over validated inputs. The engine composes them; they
hold no state and perform no I/O.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import PurePath

from continuity.analysis.schemas import FileInfo, SimilarityResult
from continuity.constants import (
    CONFLICTING_SIGNAL_GAP,
    LAYER_CONTENT,
    LAYER_FILENAME,
    LAYER_SEMANTIC,
    LAYER_STRUCTURE,
    MERGE_CONFIDENCE_BOOST,
    NEAR_IDENTICAL_SCORE,
    Action,
    AlternativeAction,
)
from continuity.engine.schemas import (
    Alternative,
    DecisionThresholds,
    DecisionWeights,
)

LIMITED_CONTENT_NOTE = " (analysis with limited content available)"

# Higher rank = stronger action; used to reason about monotonicity.
ACTION_RANK: dict[Action, int] = {
    Action.CREATE: 0,
    Action.WARN: 1,
    Action.UPDATE: 2,
    Action.MERGE: 3,
}


def rank_similarities(
    similarities: Sequence[SimilarityResult],
) -> list[SimilarityResult]:
    """Sort by score, then confidence, both descending.

    ``sorted`` is stable, so exact ties keep their input order and the
    first-seen result wins.
    """
    return sorted(
        similarities,
        key=lambda s: (-s.overall_score, -s.overall_confidence),
    )


def classify(score: float, thresholds: DecisionThresholds) -> Action:
    """Map a best-match score onto the threshold zones."""
    if score >= thresholds.merge_threshold:
        return Action.MERGE
    if score >= thresholds.update_threshold:
        return Action.UPDATE
    if score >= thresholds.create_threshold:
        return Action.WARN
    return Action.CREATE


def adjust_confidence(action: Action, confidence: float) -> float:
    if action == Action.MERGE:
        confidence = confidence * MERGE_CONFIDENCE_BOOST
    return max(0.0, min(confidence, 1.0))


def conflicting_signals(
    best: SimilarityResult,
) -> tuple[float, float] | None:
    """Return (filename, semantic) scores when they disagree by > 0.4."""
    filename = best.layer_score(LAYER_FILENAME)
    semantic = best.layer_score(LAYER_SEMANTIC)
    if filename is None or semantic is None:
        return None
    if abs(filename - semantic) > CONFLICTING_SIGNAL_GAP:
        return filename, semantic
    return None


def weighted_score(
    similarity: SimilarityResult, weights: DecisionWeights
) -> float:
    """Weighted sum of layer scores; missing layers contribute 0."""
    pairs = (
        (LAYER_FILENAME, weights.filename_weight),
        (LAYER_STRUCTURE, weights.structure_weight),
        (LAYER_SEMANTIC, weights.semantic_weight),
        (LAYER_CONTENT, weights.content_weight),
    )
    return sum(
        (similarity.layer_score(name) or 0.0) * weight
        for name, weight in pairs
    )


def _capped(value: float) -> float:
    return max(0.0, min(value, 1.0))


def build_alternatives(
    action: Action,
    best: SimilarityResult | None,
    confidence: float,
    max_alternatives: int,
    *,
    score_action: Action | None = None,
) -> list[Alternative]:
    """Alternatives for *action*, sorted by confidence and truncated.

    *score_action* is the action the score alone implied; it differs
    from *action* when conflicting signals forced a ``warn``.
    """
    if best is None:
        return []
    target = best.target_file
    alternatives: list[Alternative] = []

    match action:
        case Action.MERGE:
            alternatives = [
                Alternative(
                    action=AlternativeAction.UPDATE,
                    target_file=target,
                    confidence=_capped(confidence * 0.8),
                    reason="Update instead of merge to preserve both files",
                ),
                Alternative(
                    action=AlternativeAction.CREATE,
                    confidence=_capped(confidence * 0.6),
                    reason="Create new file if merge is too risky",
                ),
            ]
        case Action.UPDATE:
            alternatives = [
                Alternative(
                    action=AlternativeAction.MERGE,
                    target_file=target,
                    confidence=_capped(confidence * 1.2),
                    reason="Consider merge if confident about compatibility",
                ),
                Alternative(
                    action=AlternativeAction.CREATE,
                    confidence=_capped(confidence * 0.7),
                    reason="Create new file if updates are complex",
                ),
            ]
        case Action.CREATE:
            alternatives = [
                Alternative(
                    action=AlternativeAction.UPDATE,
                    target_file=target,
                    confidence=_capped(confidence * 0.9),
                    reason="Update most similar file instead of creating new",
                ),
            ]
        case Action.WARN:
            alternatives = [
                Alternative(
                    action=AlternativeAction.UPDATE,
                    target_file=target,
                    confidence=_capped(confidence * 1.1),
                    reason="Update similar file if appropriate",
                ),
                Alternative(
                    action=AlternativeAction.CREATE,
                    confidence=_capped(confidence * 0.9),
                    reason="Create new file to avoid conflicts",
                ),
            ]
            if score_action in (Action.UPDATE, Action.MERGE):
                alternatives = [
                    a
                    for a in alternatives
                    if a.action != AlternativeAction(score_action)
                ]
                alternatives.append(
                    Alternative(
                        action=AlternativeAction(score_action),
                        target_file=target,
                        confidence=_capped(confidence),
                        reason=(
                            f"Score alone suggests {score_action}; "
                            "review the conflicting signals first"
                        ),
                    )
                )

    alternatives.sort(key=lambda a: a.confidence, reverse=True)
    return alternatives[:max_alternatives]


_ACTION_SENTENCES: dict[Action, str] = {
    Action.MERGE: (
        ". High similarity suggests merging files would be appropriate"
    ),
    Action.UPDATE: ". Medium similarity suggests updating existing file",
    Action.WARN: (
        ". Some similarity detected - review for potential conflicts"
    ),
    Action.CREATE: (
        ". Low similarity suggests creating new file is appropriate"
    ),
}


def build_reasoning(
    action: Action,
    file: FileInfo,
    best: SimilarityResult | None,
    *,
    weights: DecisionWeights,
    applied_rules: Sequence[str],
    conflict: tuple[float, float] | None = None,
    explanations: bool = True,
) -> str:
    """Human-readable explanation for a recommendation."""
    if best is None:
        reasoning = "No similar files found. Safe to create new file"
    elif not explanations:
        reasoning = (
            f"Recommended {action} "
            f"(similarity score {best.overall_score:.2f})"
        )
    else:
        reasoning = f"Based on similarity score {best.overall_score:.2f}"
        if best.target_file:
            reasoning += f" with {PurePath(best.target_file).name}"
        reasoning += (
            f" (weighted layer score {weighted_score(best, weights):.2f})"
        )
        reasoning += _ACTION_SENTENCES[action]
        if (
            action == Action.MERGE
            and best.overall_score >= NEAR_IDENTICAL_SCORE
        ):
            reasoning += ". Files appear nearly identical"
        ext = file.extension
        if ext and f"{ext}-rules" in applied_rules:
            reasoning += f" (applied {ext} specific rules)"

    if conflict is not None:
        filename_score, semantic_score = conflict
        reasoning += (
            f". Conflicting signals: filename similarity "
            f"{filename_score:.2f} vs semantic similarity "
            f"{semantic_score:.2f}, flagged for review"
        )
    if not file.content:
        reasoning += LIMITED_CONTENT_NOTE
    return reasoning

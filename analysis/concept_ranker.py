# analysis/concept_ranker.py
# SQI Engine — Review-priority ranking of (topic, concept) groups.
# Feeds the summarization agent: which concepts to revisit first, and why.
# Imports from: analysis/models.py, utils/constants.py, utils/logger.py

from dataclasses import dataclass
from typing import Mapping, Sequence

from analysis.models import ConceptScore, QuestionScore, RankedConcept
from utils.constants import (
    IMPORTANCE_WEIGHTS,
    RANK_DIAGNOSTIC_WEIGHT,
    RANK_IMPORTANCE_WEIGHT,
    RANK_READING_WEIGHT,
    RANK_WEIGHT_DECIMALS,
    RANK_WRONG_WEIGHT,
    REASON_FAST_READING,
    REASON_FAST_READING_MIN,
    REASON_HIGH_IMPORTANCE,
    REASON_HIGH_IMPORTANCE_MIN,
    REASON_LOW_DIAGNOSTIC,
    REASON_LOW_DIAGNOSTIC_MAX,
    REASON_LOW_IMPORTANCE,
    REASON_MEDIUM_DIAGNOSTIC,
    REASON_MEDIUM_DIAGNOSTIC_MAX,
    REASON_MEDIUM_IMPORTANCE,
    REASON_MEDIUM_IMPORTANCE_MIN,
    REASON_SLOW_READING,
    REASON_SLOW_READING_MAX,
    REASON_WRONG,
)
from utils.logger import get_logger

log = get_logger("analysis.concept_ranker")


@dataclass
class _Candidate:
    topic:          str
    concept:        str
    raw_weight:     float
    reasons:        list[str]


# ─────────────────────────────────────────────
# Reasons
# ─────────────────────────────────────────────

def generate_reasons(
    concept_sqi:         float,
    wrong_at_least_once: bool,
    avg_importance:      float,
    avg_reading:         float,
) -> list[str]:
    """
    Human-readable justifications, in fixed order:
        wrong flag → one importance tier → diagnostic band (< 75 only)
        → reading speed (extremes only)
    """
    reasons: list[str] = []

    if wrong_at_least_once:
        reasons.append(REASON_WRONG)

    if avg_importance >= REASON_HIGH_IMPORTANCE_MIN:
        reasons.append(REASON_HIGH_IMPORTANCE)
    elif avg_importance >= REASON_MEDIUM_IMPORTANCE_MIN:
        reasons.append(REASON_MEDIUM_IMPORTANCE)
    else:
        reasons.append(REASON_LOW_IMPORTANCE)

    if concept_sqi < REASON_LOW_DIAGNOSTIC_MAX:
        reasons.append(REASON_LOW_DIAGNOSTIC)
    elif concept_sqi < REASON_MEDIUM_DIAGNOSTIC_MAX:
        reasons.append(REASON_MEDIUM_DIAGNOSTIC)

    if avg_reading >= REASON_FAST_READING_MIN:
        reasons.append(REASON_FAST_READING)
    elif avg_reading < REASON_SLOW_READING_MAX:
        reasons.append(REASON_SLOW_READING)

    return reasons


# ─────────────────────────────────────────────
# Raw weight
# ─────────────────────────────────────────────

def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _score_group(concept_score: ConceptScore, group: Sequence[QuestionScore]) -> _Candidate:
    """
    raw = 0.40 x wrong_at_least_once
        + 0.25 x mean(importance weight)
        + 0.20 x mean(reading-time proxy)
        + 0.15 x (1 - concept_sqi / 100)
    """
    wrong_at_least_once = any(not q.correct for q in group)
    avg_importance      = _mean([IMPORTANCE_WEIGHTS[q.importance] for q in group])
    avg_reading         = _mean([q.reading_time_proxy for q in group])

    raw_weight = (
        (RANK_WRONG_WEIGHT if wrong_at_least_once else 0.0)
        + RANK_IMPORTANCE_WEIGHT * avg_importance
        + RANK_READING_WEIGHT * avg_reading
        + RANK_DIAGNOSTIC_WEIGHT * (1.0 - concept_score.sqi / 100.0)
    )

    return _Candidate(
        topic=concept_score.topic,
        concept=concept_score.concept,
        raw_weight=raw_weight,
        reasons=generate_reasons(
            concept_sqi=concept_score.sqi,
            wrong_at_least_once=wrong_at_least_once,
            avg_importance=avg_importance,
            avg_reading=avg_reading,
        ),
    )


# ─────────────────────────────────────────────
# Public interface
# ─────────────────────────────────────────────

def rank_concepts_for_summary(
    concept_scores: Sequence[ConceptScore],
    groups:         Mapping[tuple[str, str], Sequence[QuestionScore]],
) -> list[RankedConcept]:
    """
    Ranks every (topic, concept) in `concept_scores` by need for review.

    Sorted by raw weight descending (stable: ties keep first-seen order),
    then normalised so the top concept has weight 1.0, rounded to 2 dp.
    """
    candidates = [
        _score_group(cs, groups[(cs.topic, cs.concept)])
        for cs in concept_scores
    ]
    candidates.sort(key=lambda c: c.raw_weight, reverse=True)

    if not candidates:
        return []

    max_weight = candidates[0].raw_weight or 1.0

    ranked = [
        RankedConcept(
            topic=c.topic,
            concept=c.concept,
            weight=round(c.raw_weight / max_weight, RANK_WEIGHT_DECIMALS),
            reasons=c.reasons,
        )
        for c in candidates
    ]

    log.debug(
        "concepts_ranked",
        count=len(ranked),
        max_raw_weight=round(max_weight, 4),
        top=[f"{r.topic}::{r.concept}" for r in ranked[:3]],
    )

    return ranked

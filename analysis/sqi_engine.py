# analysis/sqi_engine.py
# SQI Engine — Study Quality Index from raw question attempts.
# No I/O, no shared state. Pure deterministic math (apart from computed_at).
# Imports from: analysis/models.py, analysis/concept_ranker.py,
#               utils/constants.py, utils/logger.py

import math
from datetime import datetime, timezone
from typing import Any, Callable, Hashable, Iterable, Mapping, Optional, Union

from analysis.concept_ranker import rank_concepts_for_summary
from analysis.models import (
    Attempt,
    ConceptScore,
    QuestionScore,
    SQIMetadata,
    StudentData,
    SummaryCustomizerOutput,
    TopicScore,
    ValidationError,
)
from utils.constants import (
    COMPUTED_AT_FORMAT,
    CONCEPT_SQI_DECIMALS,
    DEFAULT_PROMPT_VERSION,
    DIFFICULTY_WEIGHTS,
    ENGINE_TAG,
    IMPORTANCE_WEIGHTS,
    OVERALL_SQI_DECIMALS,
    READING_FAST_MAX_RATIO,
    READING_NORMAL_MAX_RATIO,
    READING_PROXY_FAST,
    READING_PROXY_NORMAL,
    READING_PROXY_SLOW,
    REVIEW_WRONG_FACTOR,
    REVISIT_BONUS_RATIO,
    SLOW_FACTOR,
    SLOW_TIME_RATIO,
    SQI_MAX,
    SQI_MIN,
    TOPIC_SQI_DECIMALS,
    TYPE_WEIGHTS,
    VERY_SLOW_FACTOR,
    VERY_SLOW_TIME_RATIO,
)
from utils.logger import get_logger

log = get_logger("analysis.sqi_engine")

__all__ = [
    "Attempt",
    "StudentData",
    "ValidationError",
    "compute_sqi",
    "validate_attempt",
    "weighted_score",
]


# ─────────────────────────────────────────────
# Weight lookup — unknown tags are a contract violation, never defaulted
# ─────────────────────────────────────────────

def _weight(table: Mapping[str, float], tag: Any, field: str, index: Optional[int] = None) -> float:
    try:
        return table[tag]
    except (KeyError, TypeError):
        allowed = ", ".join(table)
        raise ValidationError(
            f"unknown value {tag!r} (expected one of: {allowed})",
            index=index,
            field=field,
        ) from None


# ─────────────────────────────────────────────
# Input validation
# ─────────────────────────────────────────────

def _check_number(value: Any, field: str, index: Optional[int], positive: bool) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError("must be a number", index=index, field=field)
    if not math.isfinite(value):
        raise ValidationError("must be finite", index=index, field=field)
    if positive and value <= 0:
        raise ValidationError("must be greater than 0", index=index, field=field)
    if not positive and value < 0:
        raise ValidationError("must not be negative", index=index, field=field)


def validate_attempt(attempt: Attempt, index: Optional[int] = None) -> None:
    """
    Raises ValidationError on the first contract violation in `attempt`.

    marks and expected_time_sec are divisors further down the pipeline,
    so both must be strictly positive.
    """
    for name in ("topic", "concept"):
        if not isinstance(getattr(attempt, name), str):
            raise ValidationError("must be a string", index=index, field=name)

    _weight(IMPORTANCE_WEIGHTS, attempt.importance, "importance", index)
    _weight(DIFFICULTY_WEIGHTS, attempt.difficulty, "difficulty", index)
    _weight(TYPE_WEIGHTS, attempt.type, "type", index)

    for name in ("correct", "marked_review", "case_based"):
        if not isinstance(getattr(attempt, name), bool):
            raise ValidationError("must be a boolean", index=index, field=name)

    _check_number(attempt.marks, "marks", index, positive=True)
    _check_number(attempt.expected_time_sec, "expected_time_sec", index, positive=True)
    _check_number(attempt.neg_marks, "neg_marks", index, positive=False)
    _check_number(attempt.time_spent_sec, "time_spent_sec", index, positive=False)

    if isinstance(attempt.revisits, bool) or not isinstance(attempt.revisits, int):
        raise ValidationError("must be an integer", index=index, field="revisits")
    if attempt.revisits < 0:
        raise ValidationError("must not be negative", index=index, field="revisits")

    # Finite inputs can still overflow once weighted (e.g. marks near float max)
    if not math.isfinite(max_possible_score(attempt)):
        raise ValidationError("weighted score overflows", index=index, field="marks")

    adjusted = apply_behavior_adjustments(attempt, weighted_score(attempt, base_score(attempt)))
    if not math.isfinite(adjusted):
        raise ValidationError(
            "weighted score overflows",
            index=index,
            field="marks" if attempt.correct else "neg_marks",
        )


def _coerce_student_data(student_data: Union[StudentData, Mapping[str, Any]]) -> StudentData:
    if isinstance(student_data, StudentData):
        if not isinstance(student_data.student_id, str) or not student_data.student_id.strip():
            raise ValidationError("must be a non-empty string", field="student_id")
        if not isinstance(student_data.attempts, (list, tuple)):
            raise ValidationError("must be a list", field="attempts")
        for i, attempt in enumerate(student_data.attempts):
            if not isinstance(attempt, Attempt):
                raise ValidationError("attempt must be an Attempt", index=i)
        return student_data
    return StudentData.from_dict(student_data)


# ─────────────────────────────────────────────
# Per-question scoring
# ─────────────────────────────────────────────

def base_score(attempt: Attempt) -> float:
    """marks when correct, otherwise the negative-marking penalty."""
    return attempt.marks if attempt.correct else -attempt.neg_marks


def weighted_score(attempt: Attempt, base: float) -> float:
    """
    base x importance x difficulty x type.

    Shared by the actual score and the maximum possible score
    (called with base = marks) so the two never drift apart.
    """
    return (
        base
        * _weight(IMPORTANCE_WEIGHTS, attempt.importance, "importance")
        * _weight(DIFFICULTY_WEIGHTS, attempt.difficulty, "difficulty")
        * _weight(TYPE_WEIGHTS, attempt.type, "type")
    )


def max_possible_score(attempt: Attempt) -> float:
    """Best achievable weighted score for this attempt's weight combination."""
    return weighted_score(attempt, attempt.marks)


def apply_behavior_adjustments(attempt: Attempt, weighted: float) -> float:
    """
    Applied in order:
        time > 1.5x expected      → x0.9
        time > 2x expected        → x0.8 (stacks with the above)
        marked review and wrong   → x0.9
        revisited and correct     → + 0.2 x marks (additive, can exceed max)
    """
    adjusted = weighted

    if attempt.time_spent_sec > attempt.expected_time_sec * SLOW_TIME_RATIO:
        adjusted *= SLOW_FACTOR

    if attempt.time_spent_sec > attempt.expected_time_sec * VERY_SLOW_TIME_RATIO:
        adjusted *= VERY_SLOW_FACTOR

    if attempt.marked_review and not attempt.correct:
        adjusted *= REVIEW_WRONG_FACTOR

    if attempt.revisits > 0 and attempt.correct:
        adjusted += REVISIT_BONUS_RATIO * attempt.marks

    return adjusted


def reading_time_proxy(attempt: Attempt) -> float:
    ratio = attempt.time_spent_sec / attempt.expected_time_sec
    if ratio <= READING_FAST_MAX_RATIO:
        return READING_PROXY_FAST
    if ratio <= READING_NORMAL_MAX_RATIO:
        return READING_PROXY_NORMAL
    return READING_PROXY_SLOW


def score_attempt(attempt: Attempt) -> QuestionScore:
    base     = base_score(attempt)
    weighted = weighted_score(attempt, base)

    return QuestionScore(
        topic=attempt.topic,
        concept=attempt.concept,
        importance=attempt.importance,
        difficulty=attempt.difficulty,
        correct=attempt.correct,
        base=base,
        weighted=apply_behavior_adjustments(attempt, weighted),
        max_possible=max_possible_score(attempt),
        reading_time_proxy=reading_time_proxy(attempt),
    )


# ─────────────────────────────────────────────
# Aggregation
# ─────────────────────────────────────────────

def normalise_sqi(scores: Iterable[QuestionScore]) -> float:
    """
    clamp(100 x Σweighted / Σmax, 0, 100), unrounded.
    An empty group has no maximum to divide by and scores 0.
    """
    total_weighted = 0.0
    total_max      = 0.0
    for q in scores:
        total_weighted += q.weighted
        total_max      += q.max_possible

    if not (math.isfinite(total_weighted) and math.isfinite(total_max)):
        raise ValidationError("aggregate score overflows")

    if total_max <= 0:
        return SQI_MIN

    raw = total_weighted / total_max * 100.0
    if not math.isfinite(raw):
        raise ValidationError("aggregate score ratio is not finite")
    return max(SQI_MIN, min(SQI_MAX, raw))


def group_scores(
    scores: Iterable[QuestionScore],
    key:    Callable[[QuestionScore], Hashable],
) -> dict[Hashable, list[QuestionScore]]:
    """Buckets scores by key. dict preserves first-seen key order."""
    groups: dict[Hashable, list[QuestionScore]] = {}
    for q in scores:
        groups.setdefault(key(q), []).append(q)
    return groups


def _topic_key(q: QuestionScore) -> str:
    return q.topic


def _concept_key(q: QuestionScore) -> tuple[str, str]:
    return (q.topic, q.concept)


def _aggregate(
    question_scores: list[QuestionScore],
) -> tuple[float, list[TopicScore], list[ConceptScore], dict[Hashable, list[QuestionScore]]]:
    """Overall, per-topic and per-(topic, concept) SQI, rounded for output."""
    overall_sqi = round(normalise_sqi(question_scores), OVERALL_SQI_DECIMALS)

    topic_scores = [
        TopicScore(topic=topic, sqi=round(normalise_sqi(group), TOPIC_SQI_DECIMALS))
        for topic, group in group_scores(question_scores, _topic_key).items()
    ]

    concept_groups = group_scores(question_scores, _concept_key)
    concept_scores = [
        ConceptScore(
            topic=topic,
            concept=concept,
            sqi=round(normalise_sqi(group), CONCEPT_SQI_DECIMALS),
        )
        for (topic, concept), group in concept_groups.items()
    ]

    return overall_sqi, topic_scores, concept_scores, concept_groups


# ─────────────────────────────────────────────
# Public interface
# ─────────────────────────────────────────────

def compute_sqi(
    student_data:   Union[StudentData, Mapping[str, Any]],
    prompt_version: str = DEFAULT_PROMPT_VERSION,
    now:            Optional[datetime] = None,
) -> SummaryCustomizerOutput:
    """
    Turns a student's attempts into the Summary Customizer record.

    Pipeline:
        1. Validate every attempt (fail fast, never emit NaN/Infinity)
        2. Score each attempt: base → weighted → behaviour-adjusted,
           plus max possible and reading-time proxy
        3. Normalise overall / per topic / per (topic, concept) to 0-100
        4. Rank (topic, concept) groups by need for review, with reasons
        5. Stamp metadata

    `student_data` may be a StudentData or the raw JSON-like dict.
    `now` overrides the computed_at clock.
    """
    try:
        data = _coerce_student_data(student_data)
        for i, attempt in enumerate(data.attempts):
            validate_attempt(attempt, index=i)

        question_scores = [score_attempt(a) for a in data.attempts]
        overall_sqi, topic_scores, concept_scores, concept_groups = _aggregate(question_scores)
    except ValidationError as exc:
        log.warning(
            "sqi_validation_failed",
            error=exc.message,
            attempt_index=exc.index,
            field_name=exc.field,
        )
        raise

    log.debug(
        "sqi_attempts_scored",
        student_id=data.student_id,
        attempts=len(data.attempts),
        prompt_version=prompt_version,
    )

    ranked = rank_concepts_for_summary(concept_scores, concept_groups)

    computed_at = (now or datetime.now(timezone.utc)).strftime(COMPUTED_AT_FORMAT)

    log.info(
        "sqi_computed",
        student_id=data.student_id,
        attempts=len(data.attempts),
        overall_sqi=overall_sqi,
        topics=len(topic_scores),
        concepts=len(concept_scores),
        top_concept=ranked[0].concept if ranked else None,
    )

    return SummaryCustomizerOutput(
        student_id=data.student_id,
        overall_sqi=overall_sqi,
        topic_scores=topic_scores,
        concept_scores=concept_scores,
        ranked_concepts_for_summary=ranked,
        metadata=SQIMetadata(
            diagnostic_prompt_version=prompt_version,
            computed_at=computed_at,
            engine=ENGINE_TAG,
        ),
    )

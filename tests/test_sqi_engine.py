"""Unit tests for the SQI scoring pipeline."""

import itertools
import math

import pytest

from analysis.models import Attempt, StudentData
from analysis.sqi_engine import (
    ValidationError,
    apply_behavior_adjustments,
    base_score,
    compute_sqi,
    max_possible_score,
    reading_time_proxy,
    weighted_score,
)


# ── Per-question scoring ───────────────────────────────────────────────────────


class TestQuestionScoring:
    def test_base_score_correct_is_marks(self, make_attempt):
        a = Attempt.from_dict(make_attempt(correct=True, marks=4))
        assert base_score(a) == 4

    def test_base_score_wrong_is_negative_penalty(self, make_attempt):
        a = Attempt.from_dict(make_attempt(correct=False, neg_marks=1.5))
        assert base_score(a) == -1.5

    @pytest.mark.parametrize(
        "importance,difficulty,kind,expected",
        [
            ("A", "M", "Theory", 2.0),
            ("B", "H", "Theory", 2 * 0.7 * 1.4),
            ("C", "E", "Practical", 2 * 0.5 * 0.5 * 1.1),
            ("A", "H", "Practical", 2 * 1.4 * 1.1),
        ],
    )
    def test_weighted_score_multiplies_all_weights(
        self, make_attempt, importance, difficulty, kind, expected
    ):
        a = Attempt.from_dict(
            make_attempt(importance=importance, difficulty=difficulty, type=kind)
        )
        assert weighted_score(a, 2) == pytest.approx(expected)

    def test_max_possible_assumes_correct(self, make_attempt):
        a = Attempt.from_dict(
            make_attempt(correct=False, marks=3, importance="B", difficulty="H")
        )
        assert max_possible_score(a) == pytest.approx(3 * 0.7 * 1.4)

    def test_on_time_attempt_is_not_adjusted(self, make_attempt):
        a = Attempt.from_dict(make_attempt(time_spent_sec=60))
        assert apply_behavior_adjustments(a, 2.0) == 2.0

    def test_slow_attempt_scaled_once(self, make_attempt):
        a = Attempt.from_dict(make_attempt(expected_time_sec=60, time_spent_sec=100))
        assert apply_behavior_adjustments(a, 2.0) == pytest.approx(1.8)

    def test_very_slow_attempt_stacks_both_factors(self, make_attempt):
        a = Attempt.from_dict(make_attempt(expected_time_sec=60, time_spent_sec=121))
        assert apply_behavior_adjustments(a, 2.0) == pytest.approx(2.0 * 0.9 * 0.8)

    def test_exactly_double_time_is_only_slow(self, make_attempt):
        a = Attempt.from_dict(make_attempt(expected_time_sec=100, time_spent_sec=200))
        assert apply_behavior_adjustments(a, 2.0) == pytest.approx(1.8)

    def test_marked_review_and_wrong_penalised(self, make_attempt):
        a = Attempt.from_dict(make_attempt(correct=False, marked_review=True))
        assert apply_behavior_adjustments(a, -1.0) == pytest.approx(-0.9)

    def test_marked_review_but_correct_not_penalised(self, make_attempt):
        a = Attempt.from_dict(make_attempt(correct=True, marked_review=True))
        assert apply_behavior_adjustments(a, 2.0) == 2.0

    def test_revisit_bonus_is_additive_after_multipliers(self, make_attempt):
        a = Attempt.from_dict(
            make_attempt(marks=2, revisits=1, expected_time_sec=60, time_spent_sec=100)
        )
        assert apply_behavior_adjustments(a, 2.0) == pytest.approx(2.0 * 0.9 + 0.4)

    def test_revisit_without_correct_answer_gets_no_bonus(self, make_attempt):
        a = Attempt.from_dict(make_attempt(correct=False, revisits=3))
        assert apply_behavior_adjustments(a, -0.5) == -0.5

    @pytest.mark.parametrize(
        "spent,expected",
        [(0, 1.0), (60, 1.0), (61, 0.7), (90, 0.7), (91, 0.4), (600, 0.4)],
    )
    def test_reading_time_proxy_bands(self, make_attempt, spent, expected):
        a = Attempt.from_dict(make_attempt(expected_time_sec=60, time_spent_sec=spent))
        assert reading_time_proxy(a) == expected


# ── Aggregation ────────────────────────────────────────────────────────────────


class TestComputeSQI:
    def test_sample_scores(self, sample_data):
        result = compute_sqi(sample_data)

        # (2.2 + 0.4 - 0.98 * 0.9) / (2.2 + 2.94)
        assert result.student_id == "S123"
        assert result.overall_sqi == 33.4
        assert [(t.topic, t.sqi) for t in result.topic_scores] == [("Borrowing Costs", 33.4)]
        assert [(c.topic, c.concept, c.sqi) for c in result.concept_scores] == [
            ("Borrowing Costs", "Definitions", 33.42)
        ]

    def test_perfect_score(self, make_attempt):
        data = {
            "student_id": "S456",
            "attempts": [
                make_attempt(
                    topic="Test", concept="Perfect", importance="A", difficulty="E",
                    type="Practical", correct=True, marks=5, neg_marks=0,
                    expected_time_sec=60, time_spent_sec=50,
                )
            ],
        }
        result = compute_sqi(data)
        assert result.overall_sqi == 100.0
        assert result.overall_sqi > 90

    def test_all_wrong_clamps_to_zero(self, make_attempt):
        data = {
            "student_id": "S789",
            "attempts": [
                make_attempt(
                    topic="Test", concept="Wrong", importance="C", difficulty="H",
                    type="Theory", correct=False, marks=2, neg_marks=0.5,
                    expected_time_sec=100, time_spent_sec=201, marked_review=True,
                    revisits=2,
                )
            ],
        }
        result = compute_sqi(data)
        assert result.overall_sqi == 0.0
        assert result.topic_scores[0].sqi == 0.0
        assert result.concept_scores[0].sqi == 0.0

    def test_revisit_bonus_above_max_is_clamped_to_100(self, make_attempt):
        # 2.0 weighted + 0.4 bonus over a max of 2.0 → 120% before the clamp
        data = {"student_id": "S1", "attempts": [make_attempt(revisits=1)]}
        result = compute_sqi(data)
        assert result.overall_sqi == 100.0
        assert result.topic_scores[0].sqi == 100.0
        assert result.concept_scores[0].sqi == 100.0

    def test_empty_attempts_score_zero(self):
        result = compute_sqi({"student_id": "S0", "attempts": []})
        assert result.overall_sqi == 0.0
        assert result.topic_scores == []
        assert result.concept_scores == []
        assert result.ranked_concepts_for_summary == []

    def test_groups_keep_first_seen_order(self, make_attempt):
        data = {
            "student_id": "S1",
            "attempts": [
                make_attempt(topic="Leases", concept="Scope"),
                make_attempt(topic="Borrowing", concept="Definitions"),
                make_attempt(topic="Leases", concept="Measurement"),
                make_attempt(topic="Borrowing", concept="Definitions"),
                make_attempt(topic="Leases", concept="Scope"),
            ],
        }
        result = compute_sqi(data)
        assert [t.topic for t in result.topic_scores] == ["Leases", "Borrowing"]
        assert [(c.topic, c.concept) for c in result.concept_scores] == [
            ("Leases", "Scope"),
            ("Borrowing", "Definitions"),
            ("Leases", "Measurement"),
        ]

    def test_same_concept_name_under_two_topics_is_two_groups(self, make_attempt):
        data = {
            "student_id": "S1",
            "attempts": [
                make_attempt(topic="Leases", concept="Definitions"),
                make_attempt(topic="Borrowing", concept="Definitions", correct=False),
            ],
        }
        result = compute_sqi(data)
        scores = {(c.topic, c.concept): c.sqi for c in result.concept_scores}
        assert scores == {("Leases", "Definitions"): 100.0, ("Borrowing", "Definitions"): 0.0}
        assert len(result.ranked_concepts_for_summary) == 2

    def test_topic_score_uses_only_that_topic(self, make_attempt):
        data = {
            "student_id": "S1",
            "attempts": [
                make_attempt(topic="Good", marks=2),
                make_attempt(topic="Mixed", marks=2),
                make_attempt(topic="Mixed", marks=2, correct=False, neg_marks=0),
            ],
        }
        result = compute_sqi(data)
        assert {t.topic: t.sqi for t in result.topic_scores} == {"Good": 100.0, "Mixed": 50.0}
        assert result.overall_sqi == pytest.approx(66.7)

    def test_blank_topic_and_concept_are_valid_keys(self, make_attempt):
        data = {"student_id": "S1", "attempts": [make_attempt(topic="", concept="  ")]}
        result = compute_sqi(data)
        assert result.topic_scores[0].topic == ""
        assert result.concept_scores[0].concept == "  "

    def test_accepts_student_data_instance(self, make_attempt):
        data = StudentData(
            student_id="S1",
            attempts=(Attempt.from_dict(make_attempt()),),
        )
        assert compute_sqi(data).overall_sqi == 100.0

    def test_all_scores_within_bounds(self, make_attempt):
        attempts = []
        combos = itertools.product(
            "ABC", "EMH", ("Practical", "Theory"), (True, False), (30, 100, 200), (0, 1)
        )
        for i, (imp, diff, kind, correct, spent, revisits) in enumerate(combos):
            attempts.append(
                make_attempt(
                    topic=f"T{i % 4}", concept=f"C{i % 7}", importance=imp,
                    difficulty=diff, type=kind, correct=correct, marks=1 + i % 3,
                    neg_marks=(i % 4) * 0.5, expected_time_sec=60,
                    time_spent_sec=spent, marked_review=bool(i % 2), revisits=revisits,
                )
            )
        result = compute_sqi({"student_id": "S1", "attempts": attempts})

        assert 0.0 <= result.overall_sqi <= 100.0
        for t in result.topic_scores:
            assert 0.0 <= t.sqi <= 100.0
        for c in result.concept_scores:
            assert 0.0 <= c.sqi <= 100.0
            assert not math.isnan(c.sqi)

        pairs = [(c.topic, c.concept) for c in result.concept_scores]
        assert len(pairs) == len(set(pairs))
        ranked_pairs = [(r.topic, r.concept) for r in result.ranked_concepts_for_summary]
        assert sorted(ranked_pairs) == sorted(pairs)


# ── Metadata & determinism ─────────────────────────────────────────────────────


class TestMetadata:
    def test_metadata_defaults(self, sample_data):
        meta = compute_sqi(sample_data).metadata
        assert meta.diagnostic_prompt_version == "v1"
        assert meta.engine == "sqi-v0.1"
        assert len(meta.computed_at) == 19

    def test_prompt_version_and_clock(self, sample_data, fixed_now):
        meta = compute_sqi(sample_data, prompt_version="v7", now=fixed_now).metadata
        assert meta.diagnostic_prompt_version == "v7"
        assert meta.computed_at == "2024-05-01 09:30:15"

    def test_idempotent_with_fixed_clock(self, sample_data, fixed_now):
        first = compute_sqi(sample_data, now=fixed_now).to_dict()
        second = compute_sqi(sample_data, now=fixed_now).to_dict()
        assert first == second

    def test_idempotent_apart_from_timestamp(self, sample_data):
        first = compute_sqi(sample_data).to_dict()
        second = compute_sqi(sample_data).to_dict()
        first["metadata"].pop("computed_at")
        second["metadata"].pop("computed_at")
        assert first == second

    def test_wire_shape(self, sample_data, fixed_now):
        out = compute_sqi(sample_data, now=fixed_now).to_dict()
        assert list(out) == [
            "student_id",
            "overall_sqi",
            "topic_scores",
            "concept_scores",
            "ranked_concepts_for_summary",
            "metadata",
        ]
        assert set(out["ranked_concepts_for_summary"][0]) == {"topic", "concept", "weight", "reasons"}
        assert set(out["metadata"]) == {"diagnostic_prompt_version", "computed_at", "engine"}


# ── Validation ─────────────────────────────────────────────────────────────────


class TestValidation:
    @pytest.mark.parametrize("student_id", [None, "", "   ", 42])
    def test_bad_student_id(self, student_id):
        with pytest.raises(ValidationError) as exc:
            compute_sqi({"student_id": student_id, "attempts": []})
        assert exc.value.field == "student_id"

    @pytest.mark.parametrize("attempts", [None, "nope", {"a": 1}])
    def test_attempts_must_be_a_list(self, attempts):
        with pytest.raises(ValidationError) as exc:
            compute_sqi({"student_id": "S1", "attempts": attempts})
        assert exc.value.field == "attempts"

    def test_payload_must_be_a_mapping(self):
        with pytest.raises(ValidationError):
            compute_sqi(["S1"])

    def test_attempt_must_be_a_mapping(self, make_attempt):
        with pytest.raises(ValidationError) as exc:
            compute_sqi({"student_id": "S1", "attempts": [make_attempt(), "bad"]})
        assert exc.value.index == 1

    def test_missing_field_is_reported(self, make_attempt):
        attempt = make_attempt()
        del attempt["expected_time_sec"]
        with pytest.raises(ValidationError) as exc:
            compute_sqi({"student_id": "S1", "attempts": [attempt]})
        assert exc.value.index == 0
        assert exc.value.field == "expected_time_sec"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("importance", "D"),
            ("difficulty", "X"),
            ("type", "Lab"),
            ("marks", 0),
            ("marks", -1),
            ("expected_time_sec", 0),
            ("neg_marks", -0.5),
            ("time_spent_sec", -1),
            ("revisits", -1),
            ("revisits", 1.5),
            ("marks", float("nan")),
            ("expected_time_sec", float("inf")),
            ("marks", True),
            ("marks", "2"),
            ("correct", "yes"),
            ("marked_review", 1),
            ("topic", None),
        ],
    )
    def test_contract_violations(self, make_attempt, field, value):
        attempts = [make_attempt(), make_attempt(**{field: value})]
        with pytest.raises(ValidationError) as exc:
            compute_sqi({"student_id": "S1", "attempts": attempts})
        assert exc.value.index == 1
        assert exc.value.field == field
        assert f"attempts[1].{field}" in str(exc.value)

    def test_validation_error_is_a_value_error(self):
        assert issubclass(ValidationError, ValueError)

    def test_weighted_score_rejects_unknown_tag(self, make_attempt):
        a = Attempt(**{**make_attempt(), "type": "Essay"})
        with pytest.raises(ValidationError):
            weighted_score(a, 1.0)

    def test_overflowing_max_score_rejected(self, make_attempt):
        attempt = make_attempt(
            correct=False, marks=1.7e308, neg_marks=1.7e308,
            importance="A", difficulty="H", type="Practical",
        )
        with pytest.raises(ValidationError) as exc:
            compute_sqi({"student_id": "S1", "attempts": [attempt]})
        assert exc.value.index == 0
        assert exc.value.field == "marks"

    def test_overflowing_penalty_rejected(self, make_attempt):
        attempt = make_attempt(
            correct=False, marks=1, neg_marks=1.7e308,
            importance="A", difficulty="H", type="Practical",
        )
        with pytest.raises(ValidationError) as exc:
            compute_sqi({"student_id": "S1", "attempts": [attempt]})
        assert exc.value.field == "neg_marks"

    def test_overflowing_revisit_bonus_rejected(self, make_attempt):
        attempt = make_attempt(marks=1.7e308, revisits=1)
        with pytest.raises(ValidationError) as exc:
            compute_sqi({"student_id": "S1", "attempts": [attempt]})
        assert exc.value.field == "marks"

    def test_overflowing_aggregate_rejected(self, make_attempt):
        attempts = [make_attempt(marks=1e308), make_attempt(marks=1e308)]
        with pytest.raises(ValidationError, match="overflows"):
            compute_sqi({"student_id": "S1", "attempts": attempts})

    def test_large_but_safe_marks_still_score(self, make_attempt):
        data = {"student_id": "S1", "attempts": [make_attempt(marks=1e300, correct=False, neg_marks=1e300)]}
        assert compute_sqi(data).overall_sqi == 0.0

    def test_student_data_with_raw_attempts_rejected(self, make_attempt):
        data = StudentData(student_id="S1", attempts=(Attempt.from_dict(make_attempt()), make_attempt()))
        with pytest.raises(ValidationError) as exc:
            compute_sqi(data)
        assert exc.value.index == 1

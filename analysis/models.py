# analysis/models.py
# SQI Engine — Input and output contracts shared by the scoring pipeline.
# Plain dataclasses; the pydantic wire models live in schemas/.
# Imports from: nothing internal.

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping, Optional


# ─────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────

class ValidationError(ValueError):
    """
    Raised when student data violates the engine's input contract.

    `index` is the position of the offending attempt (None for top-level
    problems such as a missing student_id). `field` names the attribute.
    """

    def __init__(
        self,
        message: str,
        index:   Optional[int] = None,
        field:   Optional[str] = None,
    ) -> None:
        self.message = message
        self.index   = index
        self.field   = field
        super().__init__(self._render())

    def _render(self) -> str:
        location = []
        if self.index is not None:
            location.append(f"attempts[{self.index}]")
        if self.field is not None:
            location.append(self.field)
        if location:
            return f"{'.'.join(location)}: {self.message}"
        return self.message


# ─────────────────────────────────────────────
# Input contract
# ─────────────────────────────────────────────

_REQUIRED_ATTEMPT_FIELDS: tuple[str, ...] = (
    "topic",
    "concept",
    "importance",
    "difficulty",
    "type",
    "correct",
    "marks",
    "neg_marks",
    "expected_time_sec",
    "time_spent_sec",
    "marked_review",
    "revisits",
)


@dataclass(frozen=True)
class Attempt:
    """One answered question, exactly as recorded by the test player."""
    topic:              str
    concept:            str
    importance:         str     # A | B | C
    difficulty:         str     # E | M | H
    type:               str     # Practical | Theory
    correct:            bool
    marks:              float   # > 0
    neg_marks:          float   # >= 0, penalty when wrong
    expected_time_sec:  float   # > 0
    time_spent_sec:     float   # >= 0
    marked_review:      bool
    revisits:           int     # >= 0
    case_based:         bool = False

    @classmethod
    def from_dict(cls, raw: Any, index: Optional[int] = None) -> "Attempt":
        """
        Builds an Attempt from a JSON-like mapping.
        Only presence is checked here; value checks run in the engine.
        """
        if not isinstance(raw, Mapping):
            raise ValidationError("attempt must be an object", index=index)

        for name in _REQUIRED_ATTEMPT_FIELDS:
            if name not in raw:
                raise ValidationError("field is required", index=index, field=name)

        return cls(
            topic=raw["topic"],
            concept=raw["concept"],
            importance=raw["importance"],
            difficulty=raw["difficulty"],
            type=raw["type"],
            correct=raw["correct"],
            marks=raw["marks"],
            neg_marks=raw["neg_marks"],
            expected_time_sec=raw["expected_time_sec"],
            time_spent_sec=raw["time_spent_sec"],
            marked_review=raw["marked_review"],
            revisits=raw["revisits"],
            case_based=raw.get("case_based", False),
        )


@dataclass(frozen=True)
class StudentData:
    student_id: str
    attempts:   tuple[Attempt, ...] = ()

    @classmethod
    def from_dict(cls, raw: Any) -> "StudentData":
        if not isinstance(raw, Mapping):
            raise ValidationError("student data must be an object")

        student_id = raw.get("student_id")
        if not isinstance(student_id, str) or not student_id.strip():
            raise ValidationError("must be a non-empty string", field="student_id")

        attempts = raw.get("attempts")
        if not isinstance(attempts, (list, tuple)):
            raise ValidationError("must be a list", field="attempts")

        return cls(
            student_id=student_id,
            attempts=tuple(Attempt.from_dict(a, index=i) for i, a in enumerate(attempts)),
        )


# ─────────────────────────────────────────────
# Intermediate — one per attempt, discarded after the call
# ─────────────────────────────────────────────

@dataclass
class QuestionScore:
    topic:              str
    concept:            str
    importance:         str
    difficulty:         str
    correct:            bool
    base:               float
    weighted:           float   # after importance/difficulty/type weights AND behaviour adjustments
    max_possible:       float   # weighted score had the attempt been correct, no adjustments
    reading_time_proxy: float   # 1.0 fast | 0.7 normal | 0.4 slow


# ─────────────────────────────────────────────
# Output contract — field names are the wire format
# ─────────────────────────────────────────────

@dataclass
class TopicScore:
    topic:  str
    sqi:    float


@dataclass
class ConceptScore:
    topic:   str
    concept: str
    sqi:     float


@dataclass
class RankedConcept:
    topic:   str
    concept: str
    weight:  float
    reasons: list[str] = field(default_factory=list)


@dataclass
class SQIMetadata:
    diagnostic_prompt_version: str
    computed_at:               str
    engine:                    str


@dataclass
class SummaryCustomizerOutput:
    student_id:                  str
    overall_sqi:                 float
    topic_scores:                list[TopicScore]
    concept_scores:              list[ConceptScore]
    ranked_concepts_for_summary: list[RankedConcept]
    metadata:                    SQIMetadata

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict in the exact shape the summarization agent reads."""
        return asdict(self)

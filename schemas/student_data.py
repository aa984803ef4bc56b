# schemas/student_data.py
# SQI Engine — Pydantic request model for POST /api/compute-sqi.
# Shape validation only; value-level contract checks run in the engine.
# Imports from: pydantic only.

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class AttemptSchema(BaseModel):
    """One answered question as sent by the test player."""
    topic:              str
    concept:            str
    importance:         Literal["A", "B", "C"]
    difficulty:         Literal["E", "M", "H"]
    type:               Literal["Practical", "Theory"]
    case_based:         bool = False
    correct:            bool
    marks:              float = Field(..., gt=0)
    neg_marks:          float = Field(default=0.0, ge=0)
    expected_time_sec:  float = Field(..., gt=0)
    time_spent_sec:     float = Field(..., ge=0)
    marked_review:      bool = False
    revisits:           int = Field(default=0, ge=0)

    model_config = {"extra": "ignore", "allow_inf_nan": False}


class StudentDataRequest(BaseModel):
    """
    POST /api/compute-sqi request body:

    {
        "student_id": "S123",
        "attempts":   [{topic, concept, importance, difficulty, type, ...}]
    }
    """
    student_id: str = Field(..., min_length=1, max_length=128,
                            description="Student identifier")
    attempts:   list[AttemptSchema]

    @field_validator("student_id")
    @classmethod
    def student_id_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("student_id must be non-empty after stripping whitespace.")
        return v

    def to_engine_payload(self) -> dict:
        """Plain dict in the shape StudentData.from_dict expects."""
        return self.model_dump()

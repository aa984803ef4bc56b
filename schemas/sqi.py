# schemas/sqi.py
# SQI Engine — Pydantic response models for the Summary Customizer record.
# Field names and nesting are the wire contract read by the summarization agent.
# Imports from: pydantic only.

from typing import Any, Optional

from pydantic import BaseModel, Field


# ─────────────────────────────────────────────
# Score rows
# ─────────────────────────────────────────────

class TopicScoreSchema(BaseModel):
    topic:  str
    sqi:    float = Field(..., ge=0.0, le=100.0)


class ConceptScoreSchema(BaseModel):
    topic:   str
    concept: str
    sqi:     float = Field(..., ge=0.0, le=100.0)


class RankedConceptSchema(BaseModel):
    """One concept flagged for review, with its normalised priority."""
    topic:   str
    concept: str
    weight:  float = Field(..., ge=0.0, le=1.0,
                           description="Review priority; the top concept is 1.0")
    reasons: list[str]


class MetadataSchema(BaseModel):
    diagnostic_prompt_version: str
    computed_at:               str     # UTC, "YYYY-MM-DD HH:MM:SS"
    engine:                    str


# ─────────────────────────────────────────────
# Full record
# ─────────────────────────────────────────────

class SummaryCustomizerResponse(BaseModel):
    """
    POST /api/compute-sqi response body:

    {
        "student_id":                  "S123",
        "overall_sqi":                 64.2,
        "topic_scores":                [{topic, sqi}],
        "concept_scores":              [{topic, concept, sqi}],
        "ranked_concepts_for_summary": [{topic, concept, weight, reasons}],
        "metadata":                    {diagnostic_prompt_version, computed_at, engine}
    }
    """
    student_id:                  str
    overall_sqi:                 float = Field(..., ge=0.0, le=100.0)
    topic_scores:                list[TopicScoreSchema]
    concept_scores:              list[ConceptScoreSchema]
    ranked_concepts_for_summary: list[RankedConceptSchema]   # weight DESC
    metadata:                    MetadataSchema


class ErrorResponse(BaseModel):
    """Body returned with HTTP 400 / 500 from the compute endpoint."""
    error:   str
    details: Optional[Any] = None    # message string, or the list of field errors

# schemas/prompt.py
# SQI Engine — Pydantic models for the diagnostic prompt store.
# Imports from: pydantic only.

from pydantic import BaseModel, Field


class PromptSaveRequest(BaseModel):
    """POST /api/prompt request body."""
    prompt: str = Field(..., max_length=100_000,
                        description="Diagnostic prompt text used by the summarization agent")


class PromptSaveResponse(BaseModel):
    success: bool = True
    message: str = "Prompt saved successfully"


class PromptResponse(BaseModel):
    """GET /api/prompt response body. Empty string until a prompt is saved."""
    prompt: str = ""

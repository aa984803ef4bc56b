# api/routes_prompt.py
# SQI Engine — GET/POST /api/prompt. In-memory diagnostic prompt store.
# The scoring engine never reads this; it is served to the summarization side.
# Imports from: schemas/prompt.py, utils/logger.py

import threading

from fastapi import APIRouter, Depends

from schemas.prompt import PromptResponse, PromptSaveRequest, PromptSaveResponse
from utils.logger import get_logger

router = APIRouter(prefix="/api", tags=["prompt"])
log    = get_logger("api.routes_prompt")


# ─────────────────────────────────────────────
# Store — process-wide, lost on restart
# ─────────────────────────────────────────────

class PromptStore:
    """Single prompt string guarded by a lock so concurrent saves serialise."""

    def __init__(self, initial: str = "") -> None:
        self._prompt = initial
        self._lock   = threading.Lock()

    def get(self) -> str:
        with self._lock:
            return self._prompt

    def set(self, prompt: str) -> None:
        with self._lock:
            self._prompt = prompt


_store = PromptStore()


def get_prompt_store() -> PromptStore:
    """FastAPI dependency. Tests override it with a fresh store."""
    return _store


# ─────────────────────────────────────────────
# POST /api/prompt
# ─────────────────────────────────────────────

@router.post(
    "/prompt",
    response_model=PromptSaveResponse,
    summary="Save the diagnostic prompt",
)
def save_prompt(
    body:  PromptSaveRequest,
    store: PromptStore = Depends(get_prompt_store),
) -> PromptSaveResponse:
    store.set(body.prompt)
    log.info("prompt_saved", length=len(body.prompt))
    return PromptSaveResponse()


# ─────────────────────────────────────────────
# GET /api/prompt
# ─────────────────────────────────────────────

@router.get(
    "/prompt",
    response_model=PromptResponse,
    summary="Get the stored diagnostic prompt",
)
def get_prompt(store: PromptStore = Depends(get_prompt_store)) -> PromptResponse:
    return PromptResponse(prompt=store.get())

# utils/config.py
# SQI Engine — Environment-driven service settings.
# Scoring constants are NOT configurable; they live in utils/constants.py.
# Imports from: utils/constants.py

import os

from dotenv import load_dotenv

from utils.constants import DEFAULT_PROMPT_VERSION as _ENGINE_PROMPT_VERSION

load_dotenv()


def _parse_origins(raw: str) -> list[str]:
    """Comma-separated list → cleaned list. Empty input falls back to ['*']."""
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


# ─────────────────────────────────────────────
# Server
# ─────────────────────────────────────────────

SERVER_HOST: str = os.getenv("SQI_HOST", "0.0.0.0")
SERVER_PORT: int = int(os.getenv("SQI_PORT", "3000"))

# ─────────────────────────────────────────────
# Logging
# ─────────────────────────────────────────────

LOG_LEVEL: str = os.getenv("SQI_LOG_LEVEL", "INFO").upper()

# ─────────────────────────────────────────────
# HTTP
# ─────────────────────────────────────────────

CORS_ORIGINS: list[str] = _parse_origins(os.getenv("SQI_CORS_ORIGINS", "*"))

# Tag stamped into metadata.diagnostic_prompt_version when the caller sends none
DEFAULT_PROMPT_VERSION: str = os.getenv("SQI_PROMPT_VERSION", _ENGINE_PROMPT_VERSION)

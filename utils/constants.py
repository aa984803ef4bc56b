# utils/constants.py
# SQI Engine — Single source of truth for all magic numbers.
# No other file defines scoring constants. Import from here only.

# ─────────────────────────────────────────────
# QUESTION WEIGHTS
# ─────────────────────────────────────────────

# Strategic value of the question (A = must-know)
IMPORTANCE_WEIGHTS: dict[str, float] = {
    "A": 1.0,
    "B": 0.7,
    "C": 0.5,
}

# Difficulty tier: Easy / Medium / Hard
DIFFICULTY_WEIGHTS: dict[str, float] = {
    "E": 0.5,
    "M": 1.0,
    "H": 1.4,
}

# Question style
TYPE_WEIGHTS: dict[str, float] = {
    "Practical": 1.1,
    "Theory":    1.0,
}

# ─────────────────────────────────────────────
# BEHAVIOUR ADJUSTMENTS (applied in this order)
# ─────────────────────────────────────────────

SLOW_TIME_RATIO: float       = 1.5   # time_spent > 1.5x expected → slow
SLOW_FACTOR: float           = 0.9
VERY_SLOW_TIME_RATIO: float  = 2.0   # time_spent > 2x expected → very slow (stacks with slow)
VERY_SLOW_FACTOR: float      = 0.8
REVIEW_WRONG_FACTOR: float   = 0.9   # marked for review and still wrong
REVISIT_BONUS_RATIO: float   = 0.2   # additive: + 0.2 * marks when revisited and correct

# ─────────────────────────────────────────────
# READING-TIME PROXY (ranking only, never in SQI)
# ─────────────────────────────────────────────

READING_FAST_MAX_RATIO: float   = 1.0   # ratio <= 1.0 → fast
READING_NORMAL_MAX_RATIO: float = 1.5   # ratio <= 1.5 → normal, else slow

READING_PROXY_FAST: float   = 1.0
READING_PROXY_NORMAL: float = 0.7
READING_PROXY_SLOW: float   = 0.4

# ─────────────────────────────────────────────
# SQI NORMALISATION
# ─────────────────────────────────────────────

SQI_MIN: float = 0.0
SQI_MAX: float = 100.0

OVERALL_SQI_DECIMALS: int = 1
TOPIC_SQI_DECIMALS: int   = 1
CONCEPT_SQI_DECIMALS: int = 2

# ─────────────────────────────────────────────
# REVIEW-PRIORITY RANKING
# ─────────────────────────────────────────────

RANK_WRONG_WEIGHT: float       = 0.40   # binary: wrong at least once
RANK_IMPORTANCE_WEIGHT: float  = 0.25   # x mean importance weight
RANK_READING_WEIGHT: float     = 0.20   # x mean reading-time proxy
RANK_DIAGNOSTIC_WEIGHT: float  = 0.15   # x (1 - concept_sqi / 100)

RANK_WEIGHT_DECIMALS: int = 2

# Reason thresholds
REASON_HIGH_IMPORTANCE_MIN: float   = 0.9
REASON_MEDIUM_IMPORTANCE_MIN: float = 0.6
REASON_LOW_DIAGNOSTIC_MAX: float    = 50.0   # sqi < 50 → low
REASON_MEDIUM_DIAGNOSTIC_MAX: float = 75.0   # sqi < 75 → medium, else silent
REASON_FAST_READING_MIN: float      = 0.8
REASON_SLOW_READING_MAX: float      = 0.5

# Reason strings — consumed verbatim by the summarization agent
REASON_WRONG: str              = "Wrong at least once"
REASON_HIGH_IMPORTANCE: str    = "High importance (A)"
REASON_MEDIUM_IMPORTANCE: str  = "Medium importance (B)"
REASON_LOW_IMPORTANCE: str     = "Low importance (C)"
REASON_LOW_DIAGNOSTIC: str     = "Low diagnostic score"
REASON_MEDIUM_DIAGNOSTIC: str  = "Medium diagnostic score"
REASON_FAST_READING: str       = "Fast reading/response time"
REASON_SLOW_READING: str       = "Slow reading/response time"

# ─────────────────────────────────────────────
# OUTPUT METADATA
# ─────────────────────────────────────────────

ENGINE_TAG: str             = "sqi-v0.1"
DEFAULT_PROMPT_VERSION: str = "v1"
COMPUTED_AT_FORMAT: str     = "%Y-%m-%d %H:%M:%S"

# 400 body for rejected compute-sqi input; clients match on this text
INVALID_INPUT_MESSAGE: str = "Invalid input. Expected { student_id, attempts: [...] }"

# ─────────────────────────────────────────────
# SERVICE
# ─────────────────────────────────────────────

SERVICE_NAME: str    = "SQI Engine"
SERVICE_VERSION: str = "0.1.0"

# api/routes_sqi.py
# SQI Engine — POST /api/compute-sqi. Thin HTTP wrapper around compute_sqi().
# Imports from: analysis/sqi_engine.py, schemas/student_data.py,
#               schemas/sqi.py, utils/config.py, utils/logger.py

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from analysis.sqi_engine import ValidationError, compute_sqi
from schemas.sqi import ErrorResponse, SummaryCustomizerResponse
from schemas.student_data import StudentDataRequest
from utils.config import DEFAULT_PROMPT_VERSION
from utils.logger import get_logger

router = APIRouter(prefix="/api", tags=["sqi"])
log    = get_logger("api.routes_sqi")


@router.post(
    "/compute-sqi",
    response_model=SummaryCustomizerResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Compute the Study Quality Index for one student",
)
def compute_sqi_route(
    body: StudentDataRequest,
    prompt_version: str = Query(
        default=DEFAULT_PROMPT_VERSION,
        min_length=1,
        max_length=64,
        description="Diagnostic prompt version stamped into metadata",
    ),
) -> SummaryCustomizerResponse:
    """
    Scores the attempts and returns the Summary Customizer record:
    overall / topic / concept SQI plus concepts ranked for review.

    Malformed bodies and engine contract violations are returned as 400
    (see the handlers in main.py). Anything else is a 500.
    """
    req_log = log.bind(student_id=body.student_id)
    req_log.info(
        "compute_sqi_request",
        attempts=len(body.attempts),
        prompt_version=prompt_version,
    )

    try:
        result = compute_sqi(body.to_engine_payload(), prompt_version=prompt_version)
    except ValidationError:
        raise
    except Exception as exc:
        req_log.exception("compute_sqi_failed", error=str(exc))
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="Failed to compute SQI", details=str(exc)).model_dump(),
        )

    return SummaryCustomizerResponse.model_validate(result.to_dict())

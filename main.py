# main.py
# SQI Engine — FastAPI application entry point.
# Registers all routers and maps compute-sqi input errors to HTTP 400.
# Imports from: api/routes_*.py, analysis/sqi_engine.py, utils/*

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from analysis.sqi_engine import ValidationError
from api.routes_prompt import router as prompt_router
from api.routes_sqi import router as sqi_router
from utils.config import CORS_ORIGINS
from utils.constants import ENGINE_TAG, INVALID_INPUT_MESSAGE, SERVICE_NAME, SERVICE_VERSION
from utils.logger import get_logger

log = get_logger("main")


# ─────────────────────────────────────────────
# Lifespan — startup + shutdown
# ─────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Nothing to initialise: the engine is stateless and the prompt store
    lives in memory. Startup/shutdown are logged for ops visibility.
    """
    log.info("sqi_startup", engine=ENGINE_TAG, cors_origins=CORS_ORIGINS)
    yield
    log.info("sqi_shutdown")


# ─────────────────────────────────────────────
# App factory
# ─────────────────────────────────────────────

app = FastAPI(
    title=SERVICE_NAME,
    description=(
        "Computes a Study Quality Index from a learner's question attempts "
        "and ranks weak concepts for the summary customizer agent."
    ),
    version=SERVICE_VERSION,
    lifespan=lifespan,
)


# ─────────────────────────────────────────────
# CORS
# ─────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=CORS_ORIGINS != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─────────────────────────────────────────────
# Error mapping
# ─────────────────────────────────────────────

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    log.warning("request_rejected", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=400,
        content={
            "error":   INVALID_INPUT_MESSAGE,
            "details": str(exc),
        },
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Malformed compute-sqi bodies get the same 400 contract as engine
    rejections; every other route keeps FastAPI's 422.
    """
    if request.url.path != app.url_path_for("compute_sqi_route"):
        return await request_validation_exception_handler(request, exc)

    errors = jsonable_encoder(exc.errors())
    log.warning("request_rejected", path=request.url.path, errors=len(errors))
    return JSONResponse(
        status_code=400,
        content={"error": INVALID_INPUT_MESSAGE, "details": errors},
    )


# ─────────────────────────────────────────────
# Routers
# ─────────────────────────────────────────────

app.include_router(sqi_router)       # POST /api/compute-sqi
app.include_router(prompt_router)    # GET/POST /api/prompt


# ─────────────────────────────────────────────
# Health check
# ─────────────────────────────────────────────

@app.get("/health", tags=["system"], summary="Health check")
def health_check() -> dict:
    return {"status": "ok", "service": SERVICE_NAME, "version": SERVICE_VERSION}


@app.get("/", tags=["system"], include_in_schema=False)
def root() -> dict:
    return {
        "service": SERVICE_NAME,
        "engine":  ENGINE_TAG,
        "docs":    "/docs",
        "health":  "/health",
    }


# ─────────────────────────────────────────────
# Dev server entry point
# ─────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    from utils.config import SERVER_HOST, SERVER_PORT

    log.info("starting_dev_server", host=SERVER_HOST, port=SERVER_PORT)
    uvicorn.run(
        "main:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
        reload=True,
        log_level="info",
    )

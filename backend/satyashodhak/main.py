"""
SatyaShodhak API application.

Wires the verification, results and comment routers together and maps the
error taxonomy in satyashodhak.exceptions onto JSON error bodies of the form
{"error": message, "code": code, "correlation_id": id}.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from satyashodhak.config import get_settings
from satyashodhak.db.database import database_available, init_db
from satyashodhak.exceptions import SatyaShodhakError
from satyashodhak.routers import comments, results, verify
from satyashodhak.utils.logger import get_correlation_id, set_correlation_id, setup_logging

settings = get_settings()
logger = setup_logging(settings.log_level)

API_VERSION = "1.0.0"
CORRELATION_HEADER = "X-Correlation-ID"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("SatyaShodhak API starting",
                version=API_VERSION,
                engine_configured=bool(settings.anthropic_api_key),
                evidence_configured=bool(settings.fact_check_api_key),
                best_effort_persistence=settings.best_effort_persistence)
    init_db()
    yield
    logger.info("SatyaShodhak API stopped")


app = FastAPI(
    title="SatyaShodhak API",
    description="Claim verification with AI verdicts, saved results, community votes and comments",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type", CORRELATION_HEADER],
    expose_headers=[CORRELATION_HEADER],
)


@app.middleware("http")
async def trace_request(request: Request, call_next) -> Response:
    """Bind a correlation ID to the request and log its outcome and duration."""
    correlation_id = set_correlation_id(request.headers.get(CORRELATION_HEADER))
    started = time.perf_counter()

    response = await call_next(request)

    response.headers[CORRELATION_HEADER] = correlation_id
    logger.info("Request handled",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1))
    return response


def error_body(status_code: int, code: str, message: str) -> JSONResponse:
    content: Dict[str, Any] = {
        "error": message,
        "code": code,
        "correlation_id": get_correlation_id() or set_correlation_id(),
    }
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(SatyaShodhakError)
async def handle_api_error(request: Request, exc: SatyaShodhakError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed", code=exc.code, error=exc.message, path=request.url.path)
    else:
        logger.warning("Request rejected", code=exc.code, error=exc.message, path=request.url.path)
    return error_body(exc.status_code, exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report the first invalid field as a 400 in the common error shape."""
    first = next(iter(exc.errors()), {})
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"

    logger.warning("Request rejected", code="VALIDATION_ERROR", error=message, path=request.url.path)
    return error_body(400, "VALIDATION_ERROR", message)


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception",
                 error=str(exc),
                 error_type=type(exc).__name__,
                 path=request.url.path)
    return error_body(500, "INTERNAL_ERROR", "An unexpected error occurred")


app.include_router(verify.router)
app.include_router(results.router)
app.include_router(comments.router)


@app.get("/health")
def health_check() -> Dict[str, Any]:
    """Liveness plus the state of the database and outside services."""
    database_ok = database_available()
    return {
        "status": "healthy" if database_ok else "degraded",
        "version": API_VERSION,
        "database": "ok" if database_ok else "unavailable",
        "reasoning_engine": "configured" if settings.anthropic_api_key else "not configured",
        "fact_check_api": "configured" if settings.fact_check_api_key else "not configured",
    }


@app.get("/")
async def root() -> Dict[str, str]:
    return {
        "service": "SatyaShodhak API",
        "version": API_VERSION,
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("satyashodhak.main:app", host="0.0.0.0", port=8000, log_level=settings.log_level.lower())

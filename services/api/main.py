"""
Turnover Worksheet API
FastAPI service that turns a field assessment into a priced Google Sheets
worksheet, with the sketch and photos uploaded to Google Drive.

Run server:
uvicorn main:app --host 0.0.0.0 --port 8000
"""

import contextvars
import logging
import os
import time
import uuid

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from adapters import create_backend
from core.errors import AssessmentError
from routers import assessments as assessments_router
from settings import get_settings

# ========== Request Context for Tracing ==========
request_id_var = contextvars.ContextVar('request_id', default=None)
request_start_time_var = contextvars.ContextVar('request_start_time', default=None)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

settings = get_settings()
VERSION = "1.0"

# ============================================================================
# FASTAPI APP
# ============================================================================

app = FastAPI(
    title="Turnover Worksheet API",
    description="Writes unit turnover assessments into Google Sheets",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)


# ========== Request Tracing Middleware ==========
@app.middleware("http")
async def request_tracing_middleware(request, call_next):
    """Add request_id and timing to all requests."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
    request_id_var.set(request_id)
    request_start_time_var.set(time.time())

    response = await call_next(request)

    latency = time.time() - request_start_time_var.get()
    logger.info(
        "%s %s -> %s (%.2fms) [%s]",
        request.method,
        request.url.path,
        response.status_code,
        latency * 1000,
        request_id,
    )

    response.headers["X-Request-ID"] = request_id
    return response


ALLOWED_ORIGINS = settings.get_origins_list()

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(AssessmentError, assessments_router.assessment_error_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "Internal server error", "code": "INTERNAL_ERROR"}
    )


# ============================================================================
# ENDPOINTS
# ============================================================================
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "backend": settings.assessment_backend,
        "version": VERSION
    }


@app.get("/healthz")
async def healthz():
    """
    Kubernetes-style liveness probe.
    Fast check - is the process alive and responding?
    """
    return {
        "status": "ok",
        "timestamp": time.time(),
        "version": VERSION
    }


@app.get("/readyz")
def readyz():
    """
    Kubernetes-style readiness probe.
    Checks the destination spreadsheet is reachable with the configured credentials.
    Returns 200 if ready, 503 if not ready.
    """
    try:
        backend = create_backend(settings)
        backend.check_destination()
        return {
            "status": "ready",
            "backend": backend.name,
            "timestamp": time.time()
        }
    except Exception as e:
        logger.error(f"Readiness check failed: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "backend": settings.assessment_backend,
                "error": str(e),
                "timestamp": time.time()
            }
        )


@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "message": "Turnover Worksheet API",
        "version": VERSION,
        "backend": settings.assessment_backend,
        "status": "running",
        "docs": "/docs"
    }


app.include_router(assessments_router.router)


@app.on_event("startup")
async def startup_event():
    logger.info("Turnover Worksheet API starting up...")
    logger.info(f"Assessment backend: {settings.assessment_backend.upper()}")
    if settings.assessment_backend == "google":
        logger.info(f"Spreadsheet ID: {settings.sheets_spreadsheet_id or '(not set)'}")
    logger.info(f"Allowed origins: {ALLOWED_ORIGINS}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Turnover Worksheet API shutting down...")


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run("main:app", host="0.0.0.0", port=port)

"""FastAPI application entrypoint for the classroom analytics service."""
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from classroom_analytics.api.routes import router
from classroom_analytics.core.logging import get_logger, setup_logging
from classroom_analytics.core.config import settings

# Initialize structured logging
log_format = settings.environment == "production"
setup_logging(level=settings.log_level, json_format=log_format)
logger = get_logger(__name__)

# Application metadata
APP_VERSION = "1.0.0"
APP_NAME = "Classroom Analytics"

app = FastAPI(
    title=APP_NAME,
    description="Assignment, question and student analytics for the teacher dashboard",
    version=APP_VERSION,
    docs_url="/docs" if settings.environment != "production" else None,  # Disable in prod
    redoc_url="/redoc" if settings.environment != "production" else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with timing and status code."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    request_logger = get_logger(__name__, {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
    })

    start_time = time.time()

    request_logger.info(f"Request started: {request.method} {request.url.path}")

    try:
        response = await call_next(request)
    except Exception:
        duration_ms = (time.time() - start_time) * 1000
        request_logger.error(
            f"Request failed: {request.method} {request.url.path}",
            extra={"duration_ms": round(duration_ms, 2)},
            exc_info=True
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "request_id": request_id}
        )

    duration_ms = (time.time() - start_time) * 1000
    request_logger.info(
        f"Request completed: {request.method} {request.url.path}",
        extra={
            "status_code": response.status_code,
            "duration_ms": round(duration_ms, 2),
        }
    )

    response.headers["X-Request-ID"] = request_id
    return response


@app.on_event("startup")
async def startup_event():
    logger.info("Application starting up", extra={"version": APP_VERSION})


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutting down")


app.include_router(router)


@app.get("/")
def root():
    """Root endpoint with basic service info."""
    return {
        "service": APP_NAME,
        "version": APP_VERSION,
        "status": "running",
        "environment": settings.environment
    }


@app.get("/health")
def health_check():
    """Liveness probe."""
    return {
        "status": "healthy",
        "version": APP_VERSION,
    }

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .days import get_day_timezone
from .errors import HabitTrackerError, StorageError
from .observability import setup_logging
from .routers import focus_times as focus_times_router
from .routers import habits as habits_router
from .settings import get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "habits",
        "description": "Create, list and delete habits, and toggle their completion per calendar day.",
    },
    {
        "name": "focus-times",
        "description": "Record and read back focus-time intervals.",
    },
]

_settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    setup_logging(_settings.log_level, _settings.log_format)
    # Fail fast on an unknown DAY_TIMEZONE instead of on the first toggle
    get_day_timezone()
    logger.info(
        f"Habit Backend started (backend={_settings.persistence_backend}, "
        f"day_timezone={_settings.day_timezone})"
    )
    yield
    logger.info("Habit Backend shutting down")


app = FastAPI(
    title="Habit Backend",
    description="Backend API service for tracking daily habits and focus-time sessions.",
    version=__version__,
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HabitTrackerError)
async def habit_tracker_error_handler(request: Request, exc: HabitTrackerError) -> JSONResponse:
    """
    Map domain and storage errors to their HTTP status.

    Response format:
        {"error": {"code": "NOT_FOUND", "message": "Habit not found"}}
    """
    extra = {"error_code": exc.code, "path": request.url.path}
    if isinstance(exc, StorageError):
        logger.error(f"Storage failure: {exc.message}", extra=extra, exc_info=exc)
    else:
        logger.warning(f"{exc.code}: {exc.message}", extra=extra)
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


def _jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold the ValueError raised by a validator, which JSON cannot encode
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


# Global exception handlers for consistent JSON on validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request validation errors.

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic/fastapi error details ...],
            "message": "Request validation failed"
        }
    """
    logger.warning(f"Validation error on {request.url.path}")
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": _jsonable_errors(exc),
        },
    )


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health and identity.
    """
    return {
        "message": "Healthy",
        "name": app.title,
        "version": app.version,
        "backend": _settings.persistence_backend,
        "day_timezone": _settings.day_timezone,
    }


# Include routers
app.include_router(habits_router.router)
app.include_router(focus_times_router.router)

"""FastAPI application entry point."""

import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from studentplanner import __version__
from studentplanner.config import get_settings
from studentplanner.database import get_engine, init_db
from studentplanner.dependencies import get_travel_estimator
from studentplanner.errors import NotFoundError, PlannerError, StorageError, ValidationError
from studentplanner.logging_config import LoggingContext, configure_logging, get_logger
from studentplanner.routers import (
    inventory_router,
    meal_plans_router,
    shopping_router,
    travel_router,
)

settings = get_settings()

REQUEST_ID_HEADER = "X-Request-ID"

# Configure logging on module load
configure_logging(log_level=settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    # Startup
    logger.info("Starting Student Planner API")

    init_db()
    logger.info("Database tables initialized")

    if settings.has_routing_provider:
        logger.info(f"Routing provider configured at {settings.routing_base_url}")
    else:
        logger.info("No routing provider configured, using static travel estimates")

    yield

    # Shutdown
    logger.info("Shutting down Student Planner API")

    provider = get_travel_estimator().provider
    if provider is not None:
        await provider.close()

    get_engine().dispose()


app = FastAPI(
    title="Student Planner API",
    description="Meal planning, inventory and shopping trips for students",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)


@app.middleware("http")
async def request_context(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Tag log lines of a request with its id and echo the id back."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    with LoggingContext(request_id=request_id):
        response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


# Include routers
app.include_router(inventory_router)
app.include_router(meal_plans_router)
app.include_router(shopping_router)
app.include_router(travel_router)


# =============================================================================
# Error handlers
# =============================================================================


def _error_response(status_code: int, exc: PlannerError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": type(exc).__name__, **exc.details},
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _error_response(422, exc)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return _error_response(status.HTTP_404_NOT_FOUND, exc)


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error(f"Storage failure on {request.url.path}: {exc.message}")
    response = _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, exc)
    response.headers["Retry-After"] = "1"
    return response


@app.exception_handler(PlannerError)
async def planner_error_handler(request: Request, exc: PlannerError) -> JSONResponse:
    logger.warning(f"Request to {request.url.path} failed: {exc.message}")
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


# =============================================================================
# Service endpoints
# =============================================================================


@app.get("/health")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {"status": "ok", "service": "studentplanner-api"}


@app.get("/")
async def root() -> dict:
    """Root endpoint with API information."""
    return {
        "name": "Student Planner API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }

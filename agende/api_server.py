"""FastAPI server for the salon booking back office.

Run with: uvicorn agende.api_server:app --port 8000

Features:
- CORS middleware for the web front end
- Request id middleware and structured logging
- Global exception handling (domain errors -> ErrorResponse JSON)
- Health check endpoint
- Background task for admin session cleanup
"""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agende import config
from agende.api.models import ErrorResponse
from agende.api.routers import appointments, auth, calendar, customers, financial, procedures, reports, suggestions
from agende.appointments import InvalidStatusTransition
from agende.auth import AdminAuthenticator, InvalidCredentialsError
from agende.booking import SlotUnavailableError
from agende.database import NotFoundError, StoreError, close_engine, get_engine, init_database
from agende.google_calendar import CalendarConfigError
from agende.logging_config import RequestIDMiddleware, setup_structured_logging
from agende.procedures import ProcedureStore
from agende.suggestions import SuggestionServiceError

logger = logging.getLogger(__name__)

SESSION_CLEANUP_INTERVAL_SECONDS = 3600


async def cleanup_sessions_periodically(authenticator: AdminAuthenticator):
    """Background task to cleanup expired admin sessions every hour."""
    while True:
        await asyncio.sleep(SESSION_CLEANUP_INTERVAL_SECONDS)
        try:
            deleted = authenticator.cleanup_expired_sessions()
            logger.info(f"Cleaned up {deleted} expired admin sessions")
        except Exception as e:
            logger.error(f"Session cleanup error: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown logic."""
    setup_structured_logging(config.LOG_LEVEL)
    logger.info("Agende API starting up...")

    engine = get_engine()
    try:
        init_database(engine)
        logger.info("Database initialized successfully")
    except StoreError as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    if config.SEED_PROCEDURES:
        added = ProcedureStore(engine).seed_defaults()
        logger.info(f"Seeded {added} starter procedures")

    cleanup_task = asyncio.create_task(cleanup_sessions_periodically(AdminAuthenticator(engine)))

    yield

    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        logger.info("Session cleanup task cancelled")

    close_engine()
    logger.info("Agende API shutting down...")


app = FastAPI(
    title="Agende API",
    description="Appointment booking for salons and clinics",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(RequestIDMiddleware)

for module in (auth, procedures, customers, appointments, financial, reports, calendar, suggestions):
    app.include_router(module.router)


def _error(status_code: int, error: str, detail: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=detail, code=code).model_dump()
    )


# Global exception handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors consistently."""
    logger.warning(f"Validation error: {exc.errors()}")
    return _error(422, "Validation Error", str(exc.errors()), "VALIDATION_ERROR")


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(status.HTTP_404_NOT_FOUND, "Not Found", str(exc), "NOT_FOUND")


@app.exception_handler(SlotUnavailableError)
async def slot_unavailable_handler(request: Request, exc: SlotUnavailableError):
    return _error(status.HTTP_409_CONFLICT, "Slot Unavailable", str(exc), "SLOT_UNAVAILABLE")


@app.exception_handler(InvalidStatusTransition)
async def invalid_transition_handler(request: Request, exc: InvalidStatusTransition):
    return _error(status.HTTP_409_CONFLICT, "Invalid Status Transition", str(exc), "INVALID_STATUS_TRANSITION")


@app.exception_handler(InvalidCredentialsError)
async def invalid_credentials_handler(request: Request, exc: InvalidCredentialsError):
    return _error(status.HTTP_401_UNAUTHORIZED, "Unauthorized", str(exc), "INVALID_CREDENTIALS")


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return _error(status.HTTP_400_BAD_REQUEST, "Bad Request", str(exc), "BAD_REQUEST")


@app.exception_handler(SuggestionServiceError)
async def suggestion_error_handler(request: Request, exc: SuggestionServiceError):
    return _error(status.HTTP_502_BAD_GATEWAY, "AI Suggestion Failed", str(exc), "SUGGESTION_FAILED")


@app.exception_handler(CalendarConfigError)
async def calendar_config_handler(request: Request, exc: CalendarConfigError):
    logger.error(f"Google Calendar not configured: {exc}")
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Server configuration error",
        str(exc),
        "CALENDAR_NOT_CONFIGURED"
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"Store unavailable: {exc}")
    return _error(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Service Unavailable",
        f"Could not complete {exc.operation}. Please try again later.",
        "STORE_UNAVAILABLE"
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for unexpected exceptions."""
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal Server Error",
        "An unexpected error occurred. Please try again later.",
        "INTERNAL_ERROR"
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for load balancers."""
    return {
        "status": "healthy",
        "service": "agende-api",
        "version": "1.0.0"
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API info."""
    return {
        "message": "Agende API",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "agende.api_server:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=config.LOG_LEVEL.lower()
    )

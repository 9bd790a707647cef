"""Main FastAPI application module.

This module initializes the FastAPI application, registers all route handlers
and maps scheduling errors onto HTTP responses.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import access_codes, appointments, auth, meetings
from config import API_HOST, API_PORT, CORS_ALLOWED_ORIGINS
from core.database import init_db
from core.exceptions import (
    ConflictError,
    DuplicateCodeError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    SchedulingError,
    StoreUnavailableError,
    ValidationError,
)
from core.logging_config import setup_logging

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"

# (HTTP status, machine-readable code) per error type; first match wins
ERROR_RESPONSES = [
    (ValidationError, status.HTTP_400_BAD_REQUEST, "validation_error"),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN, "permission_denied"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "not_found"),
    (InvalidStateError, status.HTTP_409_CONFLICT, "invalid_state"),
    (ConflictError, status.HTTP_409_CONFLICT, "conflict"),
    (DuplicateCodeError, status.HTTP_409_CONFLICT, "duplicate"),
    (StoreUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE, "store_unavailable"),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database tables ready")
    yield


# Initialize FastAPI application
app = FastAPI(
    title="School Scheduler API",
    description="Parent-teacher appointment booking and staff meeting polls.",
    version=APP_VERSION,
    lifespan=lifespan,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register route handlers
app.include_router(auth.router)
app.include_router(access_codes.router)
app.include_router(appointments.router)
app.include_router(meetings.router)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    """Translate engine errors into JSON error responses."""
    status_code, code = status.HTTP_500_INTERNAL_SERVER_ERROR, "error"
    for error_type, error_status, error_code in ERROR_RESPONSES:
        if isinstance(exc, error_type):
            status_code, code = error_status, error_code
            break
    else:
        logger.error("Unmapped scheduling error on %s: %s", request.url.path, exc)

    content = {"detail": str(exc), "code": code}
    if isinstance(exc, ConflictError) and exc.current is not None:
        content["current"] = exc.current.model_dump(mode="json")
    return JSONResponse(status_code=status_code, content=content)


@app.get("/", summary="API root", tags=["Info"])
def root() -> dict:
    """API root, returns API information and documentation links.

    Returns:
        Dictionary with API information and documentation links.
    """
    return {
        "name": "School Scheduler API",
        "version": APP_VERSION,
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc",
        },
        "health": "/api/health",
    }


@app.get("/api/health", summary="Health check", tags=["Health"])
def health() -> dict:
    """Health check endpoint.

    Returns:
        Dictionary with status "ok".
    """
    return {"status": "ok"}


# --- Startup code for direct execution ---
if __name__ == "__main__":
    import uvicorn

    server_url = f"http://{API_HOST}:{API_PORT}"
    print(f"🌐 Service address: {server_url}")
    print(f"📚 API docs: {server_url}/docs")
    print()

    uvicorn.run("app:app", host=API_HOST, port=API_PORT, reload=True)

"""FastAPI application setup for the thread merge API.

This module creates and configures the FastAPI application with lifespan
management, error mapping and routing setup.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from thread_merge.services.exceptions import (
    EmptyDestinationError,
    MergeCommitError,
    PermissionDeniedError,
)
from thread_merge.shared.config import get_settings
from thread_merge.shared.database import init_database, close_database
from thread_merge.shared.logging_config import configure_logging
from thread_merge.web.api.routers.merges import router as merges_router
from thread_merge.web.api.schemas import (
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    ValidationErrorResponse,
)
from thread_merge.web.crud import DatabaseOperationError, NotFoundError

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Set up logging and the database for the application's lifetime."""
    settings = get_settings()
    configure_logging(settings)

    try:
        await init_database()
        app.state.settings = settings
        yield
    finally:
        await close_database()

api = FastAPI(
    title="Thread Merge API",
    description="Merge forum threads into one consistently numbered thread",
    version=API_VERSION,
    lifespan=lifespan,
)

@api.middleware("http")
async def add_request_id_middleware(request: Request, call_next):
    """Add request ID to request state for tracking."""
    request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["x-request-id"] = request_id
    return response

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", str(uuid.uuid4()))

def _error_response(
    request: Request,
    status_code: int,
    detail: str,
    error_type: str,
    errors: Optional[List[ErrorDetail]] = None
) -> JSONResponse:
    response = ErrorResponse(
        detail=detail,
        type=error_type,
        errors=errors,
        timestamp=datetime.now(timezone.utc),
        request_id=_request_id(request)
    )
    return JSONResponse(status_code=status_code, content=response.model_dump())

@api.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors."""
    errors = [
        ErrorDetail(
            code=error["type"],
            message=error["msg"],
            field=" -> ".join(str(loc) for loc in error["loc"])
        )
        for error in exc.errors()
    ]

    logger.warning(
        "Validation error",
        extra={
            "request_id": _request_id(request),
            "url": str(request.url),
            "method": request.method,
        }
    )

    response = ValidationErrorResponse(
        detail="Request validation failed",
        errors=errors,
        timestamp=datetime.now(timezone.utc),
        request_id=_request_id(request)
    )
    return JSONResponse(status_code=422, content=response.model_dump())

@api.exception_handler(NotFoundError)
async def not_found_exception_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Handle NotFoundError exceptions."""
    logger.info(f"Resource not found: {exc}")
    return _error_response(request, 404, str(exc), "not_found_error")

@api.exception_handler(PermissionDeniedError)
async def permission_exception_handler(
    request: Request, exc: PermissionDeniedError
) -> JSONResponse:
    """Handle merges refused to the actor."""
    logger.warning(str(exc), extra={"request_id": _request_id(request), **exc.context})
    return _error_response(request, 403, exc.get_user_message(), "forbidden_error")

@api.exception_handler(EmptyDestinationError)
async def empty_destination_exception_handler(
    request: Request, exc: EmptyDestinationError
) -> JSONResponse:
    """Handle merges into a thread without posts."""
    return _error_response(request, 422, exc.get_user_message(), "validation_error")

@api.exception_handler(MergeCommitError)
async def merge_commit_exception_handler(
    request: Request, exc: MergeCommitError
) -> JSONResponse:
    """Handle failures of the final merge transaction.

    Only the localized summary is returned; the cause was logged by the
    merge service.
    """
    message = exc.get_user_message()
    return _error_response(
        request,
        422,
        message,
        "validation_error",
        errors=[ErrorDetail(code=exc.error_code, message=message, field="thread_merge")],
    )

@api.exception_handler(DatabaseOperationError)
async def database_exception_handler(request: Request, exc: DatabaseOperationError) -> JSONResponse:
    """Handle DatabaseOperationError exceptions."""
    logger.error(
        f"Database operation error: {exc}",
        extra={"request_id": _request_id(request), "url": str(request.url)}
    )

    # Don't expose internal database errors in production
    settings = get_settings()
    if settings.is_development and settings.verbose_errors_enabled:
        detail = f"Database error: {exc}"
    else:
        detail = "A database error occurred"

    return _error_response(request, 500, detail, "database_error")

@api.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors raised by dependencies in the standard error format."""
    error_type = "authentication_error" if exc.status_code == 401 else "http_error"
    response = _error_response(request, exc.status_code, str(exc.detail), error_type)
    if exc.headers:
        response.headers.update(exc.headers)
    return response

@api.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions, such as a failing merge listener."""
    logger.exception(
        "Unhandled exception",
        extra={
            "request_id": _request_id(request),
            "url": str(request.url),
            "method": request.method,
            "exception_type": type(exc).__name__
        }
    )

    settings = get_settings()
    if settings.is_development and settings.verbose_errors_enabled:
        detail = f"Internal server error: {exc}"
    else:
        detail = "Internal server error"

    return _error_response(request, 500, detail, "internal_error")

api.include_router(merges_router)

@api.get("/health", tags=["Health"], response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint for monitoring."""
    return HealthResponse(
        status="healthy",
        version=API_VERSION,
        timestamp=datetime.now(timezone.utc),
    )

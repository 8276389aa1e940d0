"""
Core middleware and exception handler registration for the FastAPI app.

This module provides middleware for request tracking, timing and error
logging, and renders application exceptions as JSON error bodies.
"""
from __future__ import annotations

import time
import uuid
from typing import Callable, Dict, List

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from tiffin.core.exceptions import BaseAppException, OperationError, ValidationError
from tiffin.core.logging import get_logger, request_id, user_id

logger = get_logger(__name__)
access_logger = structlog.get_logger("tiffin.access")

USER_ID_HEADER = "X-User-Id"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds a unique request ID to each incoming request.

    The request ID is:
    - Stored in request.state.request_id and the request_id context var
    - Added to response headers as X-Request-ID
    The caller's user id header, when present, is bound to the user_id
    context var so every log line of the request carries it.
    """

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Reuse an upstream request id when one was forwarded
        rid = request.headers.get(self.header_name) or str(uuid.uuid4())
        request.state.request_id = rid

        rid_token = request_id.set(rid)
        uid_token = user_id.set(request.headers.get(USER_ID_HEADER))
        try:
            response = await call_next(request)
        finally:
            request_id.reset(rid_token)
            user_id.reset(uid_token)

        response.headers[self.header_name] = rid
        return response


class TimingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that measures and logs request processing time.

    Adds X-Process-Time header to responses with the processing duration in seconds.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        access_logger.info(
            "request_completed",
            request_id=getattr(request.state, "request_id", None),
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time=round(process_time, 4),
        )
        return response


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that logs errors and exceptions during request processing.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"Request processing failed: {exc}",
                extra={
                    "request_id": getattr(request.state, "request_id", "unknown"),
                    "method": request.method,
                    "url": str(request.url.path),
                    "error_type": type(exc).__name__,
                },
                exc_info=True,
            )
            raise

        if response.status_code >= 500:
            logger.warning(
                f"Request returned error status {response.status_code}",
                extra={
                    "request_id": getattr(request.state, "request_id", "unknown"),
                    "method": request.method,
                    "url": str(request.url.path),
                    "status_code": response.status_code,
                },
            )
        return response


def register_middlewares(app: FastAPI) -> None:
    """
    Register all core middlewares to the FastAPI application.

    Middlewares are registered in reverse order of execution (LIFO).
    The last middleware added is the first one to process the request.

    Execution order:
        1. RequestIDMiddleware (binds request context first)
        2. TimingMiddleware (measures total time)
        3. ErrorLoggingMiddleware (logs unhandled errors)
    """
    app.add_middleware(ErrorLoggingMiddleware)
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    logger.debug("Core middlewares registered")


# -----------------------------------------------------------------------------
# Exception handlers
# -----------------------------------------------------------------------------

async def app_exception_handler(request: Request, exc: BaseAppException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code.value}: {exc.message}", extra={"path": request.url.path})
    else:
        logger.info(f"{exc.error_code.value}: {exc.message}", extra={"path": request.url.path})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    field_errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        field_errors.setdefault(location or "body", []).append(error.get("msg", "invalid"))

    app_error = ValidationError("Request validation failed", field_errors)
    return JSONResponse(status_code=app_error.status_code, content=app_error.to_dict())


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error: {exc}", extra={"path": request.url.path}, exc_info=exc)
    app_error = OperationError("Internal server error")
    return JSONResponse(status_code=app_error.status_code, content=app_error.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BaseAppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

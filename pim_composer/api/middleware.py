"""API middleware for PIM Composer.

Provides:
- Request ID correlation and request timing
- Error handling
"""

import time
from typing import Callable
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from pim_composer.infrastructure.config import settings

logger = structlog.get_logger()

TIMING_HEADER = "X-Response-Time-Ms"


# ============================================================================
# Request ID Middleware
# ============================================================================


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware to add request ID for correlation.

    Generates or extracts a request ID and adds it to:
    - Request state, where the error handlers read it for the error body
    - Response headers, together with the handling time
    - Log context for tracing

    Requests refused with a 4xx status are logged as warnings.
    """

    def __init__(self, app: ASGIApp, header_name: str | None = None) -> None:
        """Initialize middleware.

        Args:
            app: Wrapped ASGI application.
            header_name: Correlation header; defaults to
                ``settings.request_id_header``.
        """
        super().__init__(app)
        self.header_name = header_name or settings.request_id_header

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request with correlation ID.

        Args:
            request: Incoming request.
            call_next: Next middleware/handler.

        Returns:
            Response with request ID and timing headers.
        """
        # Reuse the caller's ID when one is sent
        request_id = request.headers.get(self.header_name) or str(uuid4())
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start_time = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
        finally:
            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            status_code = response.status_code if response is not None else 500

            log = logger.warning if 400 <= status_code < 500 else logger.info
            log(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=duration_ms,
            )

            # Clear log context
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[self.header_name] = request_id
        response.headers[TIMING_HEADER] = f"{duration_ms:.2f}"
        return response


# ============================================================================
# Error Handling Middleware
# ============================================================================


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware for consistent error handling.

    Catches unhandled exceptions and returns standardized error responses.
    Domain errors never reach this point; they are mapped by the
    exception handlers in ``pim_composer.api.errors``.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Handle errors uniformly.

        Args:
            request: Incoming request.
            call_next: Next middleware/handler.

        Returns:
            Response or error response.
        """
        try:
            return await call_next(request)
        except Exception as e:
            request_id = getattr(request.state, "request_id", None)

            logger.exception(
                "Unhandled exception",
                path=request.url.path,
                method=request.method,
                error=str(e),
            )

            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error_code": "INTERNAL_ERROR",
                    "message": "An internal error occurred",
                    "details": {},
                    "request_id": request_id,
                },
            )


# ============================================================================
# Middleware Setup
# ============================================================================


def setup_middleware(app: FastAPI) -> None:
    """Configure all middleware for the application.

    Middleware is added in reverse order (last added = first executed).

    Args:
        app: FastAPI application instance.
    """
    # Error handling (runs inside request ID so errors carry it)
    app.add_middleware(ErrorHandlerMiddleware)

    # Request ID correlation (outermost)
    app.add_middleware(RequestIdMiddleware)

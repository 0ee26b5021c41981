"""Domain error to HTTP response mapping."""

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from pim_composer.domain.exceptions import (
    AxisInUseError,
    CyclicBundleError,
    DomainError,
    DuplicateAxisCodeError,
    DuplicateComponentError,
    DuplicateItemError,
    DuplicateSkuError,
    DuplicateVariantError,
    NotFoundError,
    StockConflictError,
)

logger = structlog.get_logger()

# Anything not listed is a 422: the request is well-formed but breaks a rule.
_STATUS_BY_ERROR: dict[type[DomainError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    CyclicBundleError: status.HTTP_409_CONFLICT,
    DuplicateComponentError: status.HTTP_409_CONFLICT,
    DuplicateItemError: status.HTTP_409_CONFLICT,
    DuplicateSkuError: status.HTTP_409_CONFLICT,
    DuplicateVariantError: status.HTTP_409_CONFLICT,
    DuplicateAxisCodeError: status.HTTP_409_CONFLICT,
    AxisInUseError: status.HTTP_409_CONFLICT,
    StockConflictError: status.HTTP_409_CONFLICT,
}


def status_for(error: DomainError) -> int:
    """Get the HTTP status code for a domain error."""
    for error_type in type(error).__mro__:
        if error_type in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[error_type]
    return status.HTTP_422_UNPROCESSABLE_ENTITY


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Handle domain errors with consistent format."""
    request_id = getattr(request.state, "request_id", None)
    status_code = status_for(exc)

    logger.info(
        "Domain error",
        path=request.url.path,
        method=request.method,
        error_code=exc.error_code,
        status_code=status_code,
    )

    return JSONResponse(
        status_code=status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": jsonable_encoder(exc.details),
            "request_id": request_id,
        },
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent format."""
    request_id = getattr(request.state, "request_id", None)

    detail = exc.detail
    if isinstance(detail, dict):
        error_code = detail.get("error_code", "ERROR")
        message = detail.get("message", str(detail))
        details = detail.get("details", {})
    else:
        error_code = "ERROR"
        message = str(detail)
        details = {}

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": message,
            "details": details,
            "request_id": request_id,
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application.

    Args:
        app: FastAPI application instance.
    """
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)

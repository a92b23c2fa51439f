"""
Exception handlers turning every failure into an ``ErrorResponse`` body.

Report errors (missing report, invalid fields, bad nested JSON, storage or
upload failures) carry their own status code. Field problems are listed under
``errors`` with the wire name the client sent, e.g. ``phLevel`` rather than
``body.phLevel``.
"""

import logging
import traceback
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from siteinspect.core.config import settings
from siteinspect.core.errors import SiteInspectException, ValidationError
from siteinspect.core.logging_config import current_log_context
from siteinspect.models.errors import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)

# First element of a FastAPI error location names where the value came from
_REQUEST_LOCATIONS = frozenset({"body", "query", "path", "header", "cookie"})

# Exception details that are also worth indexing as log fields
_LOGGED_DETAILS = ("report_id", "collection", "field", "operation", "service_name")


def get_request_id(request: Request) -> Optional[str]:
    """Return the correlation id of the request being handled, if any."""
    return current_log_context().get("request_id") or getattr(
        request.state, "request_id", None
    )


def _field_name(loc: Any) -> str:
    parts = [str(part) for part in loc]
    if parts and parts[0] in _REQUEST_LOCATIONS:
        parts = parts[1:]
    return ".".join(parts)


def _json_error(request: Request, status_code: int, body: ErrorResponse) -> JSONResponse:
    if body.request_id is None:
        body.request_id = get_request_id(request)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def siteinspect_exception_handler(
    request: Request, exc: SiteInspectException
) -> JSONResponse:
    """
    Handle SiteInspectException and its subclasses.

    Client errors (4xx) are logged as warnings, everything else as errors.
    """
    extra: Dict[str, Any] = {"error_code": exc.error_code, "status_code": exc.status_code}
    extra.update({key: exc.details[key] for key in _LOGGED_DETAILS if key in exc.details})
    log = logger.warning if exc.status_code < 500 else logger.error
    log(f"{type(exc).__name__}: {exc.message}", extra=extra)

    errors: Optional[List[ErrorDetail]] = None
    if isinstance(exc, ValidationError):
        reported = exc.details.get("validation_errors")
        if reported:
            errors = [ErrorDetail(**error) for error in reported]
        elif exc.details.get("field"):
            errors = [
                ErrorDetail(field=exc.details["field"], message=exc.message, code=exc.error_code)
            ]

    return _json_error(
        request,
        exc.status_code,
        ErrorResponse(
            error_code=exc.error_code,
            message=exc.message,
            details=exc.details or None,
            suggestions=exc.suggestions or None,
            errors=errors,
        ),
    )


async def validation_error_handler(
    request: Request, exc: Union[RequestValidationError, PydanticValidationError]
) -> JSONResponse:
    """
    Handle request validation errors raised by FastAPI itself.

    Returns:
        JSONResponse with status 422 and one entry per failing field
    """
    errors = [
        ErrorDetail(
            field=_field_name(error.get("loc", ())),
            message=error.get("msg", "Validation error"),
            code=error.get("type", "validation_error"),
        )
        for error in exc.errors()
    ]
    logger.warning(
        f"Request validation failed for {', '.join(e.field or '?' for e in errors)}",
        extra={"error_count": len(errors)},
    )

    return _json_error(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ErrorResponse(
            error_code="VALIDATION_ERROR",
            message="Request validation failed",
            details={"validation_errors": [e.model_dump() for e in errors]},
            suggestions=["Check the request format and field values"],
            errors=errors,
        ),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions; the traceback is returned only in development."""
    logger.error(
        f"Unhandled {type(exc).__name__}: {exc}",
        exc_info=exc,
        extra={"exception_type": type(exc).__name__},
    )

    details = None
    if settings.environment == "development":
        details = {
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
            "traceback": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        }

    return _json_error(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(
            error_code="INTERNAL_ERROR",
            message="An unexpected error occurred",
            details=details,
            suggestions=["Try again later"],
        ),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers with the FastAPI application."""
    # Subclasses (ValidationError, NotFoundError, ...) resolve to this handler
    app.add_exception_handler(SiteInspectException, siteinspect_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(PydanticValidationError, validation_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

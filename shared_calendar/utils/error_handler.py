"""Mapping of service exceptions onto HTTP error responses."""

import logging
from typing import Dict, List, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..models.errors import (
    ErrorResponse, CalendarException, AuthorizationException,
    ValidationException, PersistenceException
)

logger = logging.getLogger(__name__)


class ErrorHandler:
    """Categorizes exceptions into an HTTP status and an ErrorResponse body."""

    STATUS_BY_TYPE = {
        "authentication": 401,
        "validation": 400,
        "persistence": 500,
        "configuration": 500,
    }

    def categorize_error(self, error: Exception) -> Tuple[int, ErrorResponse]:
        """Return (status_code, body) for an exception."""

        if isinstance(error, CalendarException):
            return self._handle_calendar_exception(error)

        if isinstance(error, RequestValidationError):
            return 400, self._handle_request_validation_error(error)

        return 500, ErrorResponse(
            error_type="persistence",
            error_code="INTERNAL_ERROR",
            message="Internal server error",
            details={"exception_type": type(error).__name__}
        )

    def _handle_calendar_exception(self, error: CalendarException) -> Tuple[int, ErrorResponse]:
        if isinstance(error, AuthorizationException):
            # No token at all is 401; a token we do not honour is 403
            status = 401 if error.token_missing else 403
            return status, ErrorResponse(
                error_type="authorization",
                error_code=error.error_code,
                message=error.message,
                details=error.details or None,
                suggestions=["Log in again to obtain a fresh admin token"]
            )

        suggestions: Optional[List[str]] = None
        if isinstance(error, ValidationException) and error.error_code == "INVALID_DOCUMENT":
            suggestions = ["Send the full document with dayData, keyItems and lastUpdatedText"]
        elif isinstance(error, PersistenceException):
            suggestions = ["Retry the save; the previous version is still stored"]

        status = self.STATUS_BY_TYPE.get(error.error_type, 500)
        return status, ErrorResponse(
            error_type=error.error_type,
            error_code=error.error_code,
            message=error.message,
            details=error.details or None,
            suggestions=suggestions
        )

    def _handle_request_validation_error(self, error: RequestValidationError) -> ErrorResponse:
        """Handle malformed request bodies and path parameters."""

        field_errors: Dict[str, List[str]] = {}
        for err in error.errors():
            field_path = ".".join(str(loc) for loc in err['loc'])
            field_errors.setdefault(field_path, []).append(err['msg'])

        return ErrorResponse(
            error_type="validation",
            error_code="REQUEST_VALIDATION_FAILED",
            message="Request validation failed",
            details={"field_errors": field_errors},
            suggestions=["Check the request format and the year in the URL"]
        )


# Global error handler instance
default_error_handler = ErrorHandler()


def handle_error(error: Exception) -> Tuple[int, ErrorResponse]:
    """Convenience function to handle errors using default handler."""
    return default_error_handler.categorize_error(error)


async def calendar_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    status, body = handle_error(exc)
    log = logger.warning if status < 500 else logger.error
    log(f"{request.method} {request.url.path} -> {status} {body.error_code}")
    return JSONResponse(status_code=status, content=body.model_dump(exclude_none=True))


def register_exception_handlers(app: FastAPI) -> None:
    """Render service exceptions and request validation errors as ErrorResponse bodies."""
    app.add_exception_handler(CalendarException, calendar_exception_handler)
    app.add_exception_handler(RequestValidationError, calendar_exception_handler)

"""
Error handling middleware that turns exceptions into JSON error envelopes.
"""

import logging
import traceback
from datetime import datetime, timezone
from uuid import uuid4

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy.exc import IntegrityError, OperationalError, TimeoutError as SQLTimeoutError

from ..utils.exceptions import (
    TicketgateError,
    ErrorCode,
    ValidationError,
    NotFoundError,
    AuthorizationError,
    ConcurrencyError,
    ExternalServiceError,
)

logger = logging.getLogger(__name__)


STATUS_MAP = {
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.EVENT_EXPIRED: status.HTTP_410_GONE,
    ErrorCode.SOLD_OUT: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_CAPACITY_ADJUSTMENT: status.HTTP_409_CONFLICT,
    ErrorCode.WRONG_EVENT: status.HTTP_409_CONFLICT,
    ErrorCode.TICKET_ALREADY_USED: status.HTTP_409_CONFLICT,
    ErrorCode.CONCURRENCY_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.EXTERNAL_SERVICE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.STORAGE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_code_for_error(exc: TicketgateError) -> int:
    """Map error codes to HTTP status codes."""
    return STATUS_MAP.get(exc.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware for error handling and response formatting."""

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        """Process request and handle any exceptions."""
        error_id = str(uuid4())

        try:
            return await call_next(request)
        except Exception as exc:
            return self._handle_exception(request, exc, error_id)

    def _handle_exception(self, request: Request, exc: Exception, error_id: str) -> JSONResponse:
        """Handle different types of exceptions and return appropriate responses."""
        self._log_error(request, exc, error_id)

        if isinstance(exc, TicketgateError):
            return self._handle_ticketgate_error(exc, error_id)
        elif isinstance(exc, IntegrityError):
            return self._handle_integrity_error(exc, error_id)
        elif isinstance(exc, (OperationalError, SQLTimeoutError)):
            return self._handle_database_error(exc, error_id)
        else:
            return self._handle_unexpected_error(exc, error_id)

    def _envelope(self, error: TicketgateError, error_id: str) -> dict:
        return {
            "error": error.to_dict(),
            "error_id": error_id,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    def _handle_ticketgate_error(self, exc: TicketgateError, error_id: str) -> JSONResponse:
        headers = {}
        if exc.retry_after:
            headers["Retry-After"] = str(exc.retry_after)

        return JSONResponse(
            status_code=status_code_for_error(exc),
            content=self._envelope(exc, error_id),
            headers=headers
        )

    def _handle_integrity_error(self, exc: IntegrityError, error_id: str) -> JSONResponse:
        """Constraint violations mean a write raced an invariant; report a conflict."""
        error = ConcurrencyError("Data integrity constraint violation")
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=self._envelope(error, error_id),
            headers={"Retry-After": str(error.retry_after)}
        )

    def _handle_database_error(self, exc: Exception, error_id: str) -> JSONResponse:
        """Handle database connection and operational errors."""
        error = ExternalServiceError(
            "database",
            "Database service temporarily unavailable",
            retry_after=30
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=self._envelope(error, error_id),
            headers={"Retry-After": "30"}
        )

    def _handle_unexpected_error(self, exc: Exception, error_id: str) -> JSONResponse:
        error = TicketgateError(
            "An unexpected error occurred",
            error_code=ErrorCode.INTERNAL_ERROR,
            details={"error_type": type(exc).__name__} if self.debug else None
        )
        response_data = self._envelope(error, error_id)

        if self.debug:
            response_data["debug"] = {
                "exception": str(exc),
                "traceback": traceback.format_exc()
            }

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=response_data
        )

    def _log_error(self, request: Request, exc: Exception, error_id: str) -> None:
        """Log error with request context."""
        request_info = {
            "method": request.method,
            "url": str(request.url),
            "headers": dict(request.headers),
            "client_ip": request.client.host if request.client else None,
        }

        if isinstance(exc, TicketgateError):
            extra = {
                "error_id": error_id,
                "error_code": exc.error_code.value,
                "request": request_info,
                "details": exc.details
            }
            if isinstance(exc, (ValidationError, NotFoundError, AuthorizationError)):
                logger.warning(f"Client error [{error_id}]: {exc.message}", extra=extra)
            elif isinstance(exc, (ConcurrencyError, ExternalServiceError)):
                logger.error(f"System error [{error_id}]: {exc.message}", extra=extra)
            else:
                logger.info(f"Business rule rejection [{error_id}]: {exc.message}", extra=extra)
        else:
            logger.error(
                f"Unexpected error [{error_id}]: {exc}",
                extra={
                    "error_id": error_id,
                    "error_type": type(exc).__name__,
                    "request": request_info,
                },
                exc_info=exc
            )

"""
Custom exceptions and error handlers for consistent error responses.

Services raise the domain errors below; the global handlers render every
error as ``{"error_code", "message", "details"}``.
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from typing import Any, Dict

logger = logging.getLogger("bus_tracking.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class _DomainError(AppException):
    error_code = "ERR_INTERNAL_SERVER"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Error"

    def __init__(self, message: str = None, details: Dict[str, Any] = None):
        super().__init__(
            message=message or self.default_message,
            error_code=self.error_code,
            status_code=self.status_code,
            details=details
        )


class ValidationError(_DomainError):
    """Input is malformed or out of range. Nothing is persisted."""
    error_code = "ERR_VALIDATION_001"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Validation error"


class ConflictError(_DomainError):
    """The operation would break an invariant, e.g. a second ongoing trip."""
    error_code = "ERR_CONFLICT_001"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class ForbiddenError(_DomainError):
    """The caller may not act on the resource."""
    error_code = "ERR_PERM_001"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Insufficient permissions"


class PreconditionError(_DomainError):
    """Required prior state is missing, e.g. no location before a trip start."""
    error_code = "ERR_PRECONDITION_001"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Precondition failed"


class AuthenticationError(_DomainError):
    error_code = "ERR_AUTH_001"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication failed"


class NotFoundError(AppException):
    """Requested resource does not exist."""

    def __init__(self, resource: str, resource_id: Any = None, message: str = None):
        if message is None:
            message = f"{resource} not found"
            if resource_id is not None:
                message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


# Global Exception Handlers

HTTP_ERROR_CODES = {
    400: "ERR_BAD_REQUEST",
    401: "ERR_UNAUTHORIZED",
    403: "ERR_FORBIDDEN",
    404: "ERR_NOT_FOUND",
    409: "ERR_CONFLICT",
    500: "ERR_INTERNAL_SERVER",
}


def _error_response(status_code: int, error_code: str, message: Any, details: Dict[str, Any] = None,
                    headers: Dict[str, str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error_code": error_code, "message": message, "details": details or {}},
        headers=headers
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for domain errors."""
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", exc.error_code, request.url.path, exc.message)
    return _error_response(exc.status_code, exc.error_code, exc.message, jsonable_encoder(exc.details))


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException (authentication and role guards)."""
    return _error_response(
        exc.status_code,
        HTTP_ERROR_CODES.get(exc.status_code, "ERR_UNKNOWN"),
        exc.detail,
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for request body and query validation errors."""
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ValidationError.error_code,
        "Validation error",
        {"errors": jsonable_encoder(exc.errors())}
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception on %s: %s: %s", request.url.path, type(exc).__name__, exc)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "ERR_INTERNAL_SERVER",
        "An internal server error occurred"
    )

"""
Error taxonomy and safe HTTP error builders.

Workflow services raise PharmacyError subclasses; they know nothing about HTTP.
The API layer turns them into JSON responses via `pharmacy_error_handler`.

SECURITY PRINCIPLE: Don't expose internal details to users.
Use generic error messages externally, detailed logging internally.
"""
import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PharmacyError(Exception):
    """Base class for domain errors raised by workflow services."""

    code = "INTERNAL"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(PharmacyError):
    """Missing or malformed input. Detected before any write."""

    code = "VALIDATION"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(PharmacyError):
    """Referenced patient / product / sale / prescription is absent."""

    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class InsufficientPaymentError(PharmacyError):
    code = "INSUFFICIENT_PAYMENT"
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(PharmacyError):
    """State conflict, e.g. a second open shift for the same cashier."""

    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


async def pharmacy_error_handler(request: Request, exc: PharmacyError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": "An internal error occurred. Please try again later.", "code": exc.code},
        )
    logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort 500. Logs the traceback, hides it from the client."""
    logger.error(
        f"Internal server error on {request.method} {request.url.path}: {type(exc).__name__}: {exc}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An internal error occurred. Please try again later.", "code": "INTERNAL"},
    )


class BusinessError:
    """HTTP-layer exceptions with safe (non-leaky) messages."""

    @staticmethod
    def not_found(resource: str = "Resource", reason: str = "") -> HTTPException:
        if reason:
            logger.warning(f"Not found: {resource} - {reason}")
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found",
        )

    @staticmethod
    def unauthorized(reason: str = "") -> HTTPException:
        """
        Generic 401 for all authentication failures.

        SECURITY: Same response for wrong password, non-existent user, etc.
        Prevents user enumeration attacks.
        """
        logger.warning(f"Unauthorized access attempt: {reason}")
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    @staticmethod
    def forbidden(reason: str = "") -> HTTPException:
        """
        Generic 403 for role failures.

        SECURITY: Does not echo which roles would have been accepted.
        """
        logger.warning(f"Forbidden access: {reason}")
        return HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )

    @staticmethod
    def bad_request(detail: str) -> HTTPException:
        logger.info(f"Bad request: {detail}")
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )

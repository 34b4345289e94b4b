"""
Domain exceptions for the Profile Audit Service.

All error responses follow the standard envelope:
{
    "success": false,
    "message": "Human-readable description",
    ...details
}
"""

import logging

from rest_framework import exceptions, status
from rest_framework.response import Response

logger = logging.getLogger(__name__)

UNAUTHENTICATED_MESSAGE = "Invalid token or user not found."


class DomainError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, code, message, details=None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(DomainError):
    """Validation error - request body or parameters fail validation."""

    def __init__(self, message, details=None):
        super().__init__("VALIDATION_ERROR", message, details)


class EmailConflictError(DomainError):
    """Another active user already holds the requested email."""

    def __init__(self, message="Email already exists", details=None):
        super().__init__("EMAIL_CONFLICT", message, details)


class NoChangesError(DomainError):
    """Update payload does not change any stored value."""

    def __init__(self, message="No changes detected", details=None):
        super().__init__("NO_CHANGES", message, details)


class NotFoundError(DomainError):
    """Requested resource does not exist."""

    def __init__(self, message="User not found", details=None):
        super().__init__("NOT_FOUND", message, details)


class RateLimitedError(exceptions.Throttled):
    """
    Profile update attempted inside the cooldown window.

    A DRF Throttled carrying the earliest allowed update time, rendered as
    nextAllowedUpdate in the 429 body.
    """

    def __init__(self, message, next_allowed_update, wait=None):
        super().__init__(wait=wait, detail=message)
        self.message = message
        self.details = {"nextAllowedUpdate": next_allowed_update}


class UnauthenticatedError(DomainError):
    """Credentials missing or invalid."""

    def __init__(self, message=UNAUTHENTICATED_MESSAGE, details=None):
        super().__init__("UNAUTHENTICATED", message, details)


STATUS_CODE_MAP = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "EMAIL_CONFLICT": status.HTTP_400_BAD_REQUEST,
    "NO_CHANGES": status.HTTP_400_BAD_REQUEST,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "UNAUTHENTICATED": status.HTTP_401_UNAUTHORIZED,
}


def error_body(message, **extra):
    body = {"success": False, "message": message}
    body.update(extra)
    return body


def domain_exception_handler(exc, context):
    """
    Custom exception handler for domain exceptions.

    Returns the standard error envelope:
    {
        "success": false,
        "message": "Human-readable description"
    }

    Authentication failures all share one message so the response does not
    reveal whether the token was missing, malformed, expired or pointed at a
    deleted account.
    """
    if isinstance(exc, DomainError):
        status_code = STATUS_CODE_MAP.get(exc.code, status.HTTP_400_BAD_REQUEST)
        return Response(error_body(exc.message, **exc.details), status=status_code)

    if isinstance(exc, RateLimitedError):
        response = Response(
            error_body(exc.message, **exc.details),
            status=status.HTTP_429_TOO_MANY_REQUESTS,
        )
        if exc.wait is not None:
            response["Retry-After"] = str(exc.wait)
        return response

    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        response = Response(
            error_body(UNAUTHENTICATED_MESSAGE), status=status.HTTP_401_UNAUTHORIZED
        )
        auth_header = _authenticate_header(context)
        if auth_header:
            response["WWW-Authenticate"] = auth_header
        return response

    # Imported here: rest_framework.views loads DEFAULT_AUTHENTICATION_CLASSES,
    # which import this module.
    from rest_framework.views import exception_handler

    response = exception_handler(exc, context)

    if response is not None:
        if isinstance(response.data, dict) and "detail" in response.data:
            response.data = error_body(str(response.data["detail"]))
        else:
            response.data = error_body("Request could not be processed", errors=response.data)
        return response

    # Log unhandled exceptions
    logger.exception("Unhandled exception", exc_info=exc)
    return Response(
        error_body("Internal server error"),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _authenticate_header(context):
    view = context.get("view")
    request = context.get("request")
    if view is None or request is None:
        return None
    return view.get_authenticate_header(request)

"""
Discory Backend — Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for each failure class.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers registered in main.py turn them into
       `{"error": message}` JSON responses with the matching status code.
Who:   Raised by services, dependencies and middleware.

Exception Hierarchy:
    DiscoryError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── ForbiddenError           → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── ExternalServiceError     → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class DiscoryError(Exception):
    """
    Base exception for all Discory application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(DiscoryError):
    """Raised when client input fails a business rule (missing field, bad range)."""

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(DiscoryError):
    """Missing, malformed or expired bearer token, or bad credentials."""

    status_code = 401

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(DiscoryError):
    """
    Raised when the caller is authenticated but may not act on the resource.

    Examples: deleting someone else's comment, reading a private catalogue
    without an accepted follow edge.
    """

    status_code = 403

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(DiscoryError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that None into
    NotFoundError so the route layer stays free of status-code logic.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(DiscoryError):
    """Duplicate follow, taken username/email, or a unique-constraint race."""

    status_code = 409

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ExternalServiceError(DiscoryError):
    """
    Raised when a third-party lookup (Discogs, iTunes, Deezer) fails.

    The provider's error text goes into `context` for the server log; the
    client only sees the generic message.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An external lookup service failed. Please try again later.",
        provider: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if provider:
            ctx["provider"] = provider
        super().__init__(message=message, context=ctx)
        self.provider = provider


class DatabaseError(DiscoryError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; constraint names
    and SQL stay in the server log.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(DiscoryError):
    """Raised when a client exceeds the per-IP request rate limit."""

    status_code = 429

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after

"""
StackIt Backend — Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for the different failure classes.
Why:   Services raise domain errors without knowing about HTTP; global handlers
       registered in main.py translate each class into a status code and a
       stable machine-readable `error` code.
How:   Each exception carries a user-safe message and an optional context dict
       (logged, and returned as `details` for client-fixable errors only).

Exception Hierarchy:
    StackItError (base)
    ├── ValidationError          → 400 validation_error
    ├── UnauthorizedError        → 401 unauthorized
    ├── ForbiddenError           → 403 forbidden
    ├── NotFoundError            → 404 not_found
    ├── ConflictError            → 409 conflict
    ├── RateLimitExceededError   → 429 rate_limit_exceeded
    └── DatabaseError            → 500 server_error (storage failure, opaque)
"""

from typing import Any, Dict, Optional


class StackItError(Exception):
    """
    Base exception for all StackIt application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(StackItError):
    """
    Raised when client input fails a business rule.

    Schema-level problems (wrong types, a voteType outside the allowed literals)
    are rejected by FastAPI with 422 before reaching a service; this class covers
    the rules services check themselves, such as minimum content lengths.
    """

    error_code = "validation_error"

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


class UnauthorizedError(StackItError):
    """Raised when a protected route is called without a known user identity."""

    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(StackItError):
    """
    Raised when the acting user may not perform the operation.

    When:  Voting on one's own question/answer, accepting an answer on someone
           else's question, editing or deleting content owned by another user.
    """

    error_code = "forbidden"

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(StackItError):
    """
    Raised when a requested resource does not exist.

    Also used for notifications the caller does not own, so that the existence
    of other users' notifications is never revealed.
    """

    error_code = "not_found"

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


class ConflictError(StackItError):
    """Raised when a write would duplicate a uniquely-owned record."""

    error_code = "conflict"

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(StackItError):
    """
    Raised when a persistence operation fails unexpectedly.

    Security Note:
        The message returned to the client is always generic. Details (SQL,
        constraint names) are logged server-side only.
    """

    error_code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(StackItError):
    """Raised when a client exceeds the per-IP request rate limit."""

    error_code = "rate_limit_exceeded"

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

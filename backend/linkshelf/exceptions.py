"""
LinkShelf Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for the error scenarios the API knows.
How:   Each exception carries a user-safe message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return `{"error": <message>, "request_id": <id>}` with the right status.
Who:   Raised by backends, services and route handlers.

Exception Hierarchy:
    LinkShelfError (base)
    ├── ValidationError        → 400 Bad Request (malformed or dangling input)
    ├── MutationFailedError    → 400 Bad Request (delete/associate reported False)
    ├── NotFoundError          → 404 Not Found
    ├── DatabaseError          → 500 Internal Server Error (backend failure)
    └── AuthError              → 302 redirect to /login?error=...

Note that "not found" inside a backend is a normal return value (None or
False). Only the REST layer turns it into NotFoundError / MutationFailedError.
"""

from typing import Any, Dict, Optional


class LinkShelfError(Exception):
    """
    Base exception for all LinkShelf application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(LinkShelfError):
    """
    Raised when client input fails validation.

    When:    Malformed request body, missing OAuth callback parameters, or a
             reference to a row that does not exist (e.g. a note for an
             unknown link).
    HTTP:    400 Bad Request
    """

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


class MutationFailedError(LinkShelfError):
    """
    Raised by route handlers when a backend mutation reports failure.

    When:    delete_link / delete_note / delete_label / add_label_to_link /
             remove_label_from_link returned False.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(LinkShelfError):
    """
    Raised when a requested resource does not exist.

    When:    GET/PATCH on an id the backend returned None for.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)


class DatabaseError(LinkShelfError):
    """
    Raised when a backend operation fails unexpectedly.

    When:    Connection lost mid-query, constraint violation, driver error.
    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. The original
        exception is chained (`raise ... from e`) and logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthError(LinkShelfError):
    """
    Raised when the OAuth login flow cannot complete.

    When:    The callback's state does not match the stored CSRF nonce, the
             provider returned no access token, or a provider call failed.
    HTTP:    302 to `/login?error=<encoded message>`. This path is navigated
             by a browser, so it never answers with JSON.
    """

    def __init__(
        self,
        message: str = "Authentication failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

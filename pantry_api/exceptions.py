"""
Pantry Lookup API — Exception Hierarchy
=========================================

What:  Application-specific exceptions for the two failure outcomes of a
       lookup request.
How:   Each exception carries a user-facing message, a machine-readable code,
       and an optional context dict. Global exception handlers (registered in
       main.py) turn them into structured JSON error responses.
Who:   Raised by the lookup endpoints; caught by global handlers.

Exception Hierarchy:
    PantryError (base)           → 500 Internal Server Error
    ├── UnauthorizedError        → 401 Unauthorized
    └── BackendQueryError        → 500 Internal Server Error

Error body (both outcomes):
    {
        "error": {"code": "UNAUTHORIZED", "message": "Authentication required"},
        "request_id": "a1b2c3d4"
    }
"""

from typing import Any, Dict, Optional


class PantryError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        code:     Machine-readable error code placed in the response body
        status_code: HTTP status the global handler responds with
        context:  Additional debug info (logged but NOT returned to client)
    """

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class UnauthorizedError(PantryError):
    """
    Raised when the caller has no valid session or token.

    When:    No cookie and no bearer header, an expired/revoked session, a
             malformed token, or the identity provider reporting no user.
             All of these are deliberately indistinguishable to the caller.
    HTTP:    401 Unauthorized
    """

    code = "UNAUTHORIZED"
    status_code = 401

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class BackendQueryError(PantryError):
    """
    Raised at the endpoint boundary when a lookup could not be served.

    What:    Wraps whatever escaped identity resolution or the query
             (connectivity, bad schema, rejected statement).
    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. The original
        exception is chained as __cause__ and logged server-side only.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

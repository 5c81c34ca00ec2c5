"""
NoteBoard Backend - Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for the board and its platform clients.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services, clients and routes; caught by global handlers.

Exception Hierarchy:
    NoteBoardError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── AuthenticationError      → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict (submit while busy)
    ├── PreviewStorageError      → 500 Internal Server Error
    └── PlatformError            → 502 Bad Gateway
        ├── DataServiceError     (notes API)
        ├── StorageError         (blob API)
        └── AuthServiceError     (auth API, other than 401)

Which failures are swallowed:
    Signed URL resolution and blob removal failures are caught by the
    NoteBoard and logged. Upload failures are caught and revert the draft.
    Everything else propagates to the handlers.
"""

from typing import Any, Dict, Optional


class NoteBoardError(Exception):
    """
    Base exception for all NoteBoard application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned for 5xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NoteBoardError):
    """
    Raised when client input fails validation.

    When:    Selected file is not an image, is empty or exceeds the size limit;
             a preview name escapes the preview directory.
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


class AuthenticationError(NoteBoardError):
    """
    Raised when a request carries no session token or the platform rejects it.

    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Authentication required. Please sign in.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(NoteBoardError):
    """
    Raised when a requested resource does not exist.

    When:    Deleting a note id that is not on the session's board, or
             fetching a preview that was already discarded.
    HTTP:    404 Not Found
    """

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


class ConflictError(NoteBoardError):
    """
    Raised when an operation is not allowed in the board's current state.

    When:    A note is submitted while another submission or an image upload
             is still in flight (the form's disabled submit button).
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "The board is busy. Please try again in a moment.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PreviewStorageError(NoteBoardError):
    """
    Raised when writing a local preview file fails.

    When:    Disk full, permission denied, preview directory not writable.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Could not prepare the image preview",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PlatformError(NoteBoardError):
    """
    Base for failures reported by (or while reaching) the managed platform.

    HTTP:    502 Bad Gateway

    Attributes:
        status_code: Upstream HTTP status, None for transport failures.
    """

    def __init__(
        self,
        message: str = "The notes platform could not complete the request",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.status_code = status_code


class DataServiceError(PlatformError):
    """Notes API failed: list, create or delete."""


class StorageError(PlatformError):
    """Blob storage API failed: upload, signed URL or remove."""


class AuthServiceError(PlatformError):
    """Auth API failed for a reason other than an invalid session."""

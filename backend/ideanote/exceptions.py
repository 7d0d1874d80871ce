"""
IdeaNote Backend: Custom Exception Hierarchy
==============================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services, codecs and middleware; caught by global handlers.

Exception Hierarchy:
    IdeaNoteError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    │   └── EmptyBufferError     → 400 (last block of an editing buffer)
    ├── NotFoundError            → 404 Not Found
    ├── ActionUnavailableError   → 409 Conflict (save/create is inert)
    ├── FileStorageError         → 500 Internal Server Error
    ├── DatabaseError            → 500 Internal Server Error
    └── RateLimitExceededError   → 429 Too Many Requests

Encode/decode of well-formed values never raise. Only the scalar codec
(target, due date) and the editing buffer raise ValidationError, and they do
so before any save is issued.
"""

from typing import Any, Dict, Optional


class IdeaNoteError(Exception):
    """
    Base exception for all IdeaNote application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned for server errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(IdeaNoteError):
    """
    Raised when client input fails validation.

    When:    Malformed numeric target, unparseable due date, unsupported
             image upload, or an edit that would break the editing buffer.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Target must be a whole number, got 'abc'",
            "details": {"field": "target", "value": "abc"}
        }
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


class EmptyBufferError(ValidationError):
    """Raised when a deletion would leave an editing buffer with no blocks."""

    def __init__(self, block_id: Optional[str] = None):
        ctx = {}
        if block_id is not None:
            ctx["block_id"] = block_id
        super().__init__(
            message="A note must keep at least one block",
            field="blocks",
            context=ctx,
        )


class NotFoundError(IdeaNoteError):
    """
    Raised when a requested resource does not exist.

    When:    Unknown note id, unknown checklist item, unknown block id,
             missing image file.
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


class ActionUnavailableError(IdeaNoteError):
    """
    Raised by the HTTP layer when an editor save was inert.

    The editor session itself never raises for a missing store or identity;
    it reports the save as skipped. Routes translate that into a 409 so API
    clients can tell a skipped save from a successful one.
    """

    def __init__(
        self,
        message: str = "Saving is unavailable without an owner identity",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(IdeaNoteError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, directory not writable, I/O error.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(IdeaNoteError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic.
        Detailed error info is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(IdeaNoteError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests (with Retry-After header)
    """

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

"""
Profilebook Backend — Custom Exception Hierarchy
=================================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions let services fail without knowing about HTTP, while
       the global handlers in main.py decide how the failure is rendered.
How:   Each exception class carries a message and optional context dict.
       The context is logged server-side and never returned to the client.
Who:   Raised by services; caught by global handlers.

Exception Hierarchy:
    ProfilebookError (base)
    ├── ValidationError     → 400 Bad Request
    ├── NotFoundError       → 404 Not Found
    ├── FileStorageError    → 500 Internal Server Error
    ├── DatabaseError       → 500 Internal Server Error
    └── NewsServiceError    → 503 Service Unavailable

    The status codes apply in "semantic" error mode. In the default
    "legacy" mode every error is answered with HTTP 200 and the generic
    {"message": "Error"} payload the web client checks for.

Not errors:
    A "null" placeholder at registration, a duplicate e-mail, and a failed
    login are ordinary outcomes reported with a user-facing message.
"""

from typing import Any, Dict, Optional


class ProfilebookError(Exception):
    """
    Base exception for all Profilebook application errors.

    Attributes:
        message:  Human-readable error description (logged)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ProfilebookError):
    """
    Raised when client input fails validation.

    When: Empty upload, upload over the size limit, missing upload field,
          non-numeric profile id in a form field.
    """

    status_code = 400
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


class NotFoundError(ProfilebookError):
    """Raised when a record an operation depends on does not exist."""

    status_code = 404
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


class FileStorageError(ProfilebookError):
    """
    Raised when writing an uploaded image fails.

    When: Disk full, permission denied, directory not writable, I/O error.
    Deleting superseded images never raises this; those failures are logged only.
    """

    error_code = "storage_error"

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(ProfilebookError):
    """
    Raised when database operations fail unexpectedly.

    The client only ever sees the generic payload; the SQL error is logged.
    """

    error_code = "database_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NewsServiceError(ProfilebookError):
    """
    Raised when the external news API cannot produce results.

    When: Missing configuration, timeout or transport failure after retries,
          non-2xx status, or a body without a `results` list.
    """

    status_code = 503
    error_code = "news_service_error"

    def __init__(
        self,
        message: str = "The news service is temporarily unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

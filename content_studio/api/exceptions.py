"""Custom exception classes for the API.

Each error carries the machine-readable ``code`` and the HTTP status used by
the exception handlers in ``content_studio.api.main``.
"""


class ApiError(Exception):
    """Base class for errors rendered into the response envelope."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ThreadNotFoundError(ApiError):
    """Raised when a thread does not exist, is deleted, or is not the caller's."""

    code = "THREAD_NOT_FOUND"
    status_code = 404

    def __init__(self, thread_id: str):
        self.thread_id = thread_id
        super().__init__(f"Thread with ID '{thread_id}' not found")


class ContentNotFoundError(ApiError):
    """Raised when a content does not exist or belongs to another user."""

    code = "CONTENT_NOT_FOUND"
    status_code = 404

    def __init__(self, content_id: str):
        self.content_id = content_id
        super().__init__(f"Content with ID '{content_id}' not found")


class ValidationError(ApiError):
    """Raised when input validation fails."""

    code = "VALIDATION_ERROR"
    status_code = 400


class UnauthorizedError(ApiError):
    code = "UNAUTHORIZED"
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)

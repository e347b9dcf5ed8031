# employee_api/core/exceptions.py
from typing import Dict, Optional


class ApiError(Exception):
    """Base class for failures that map onto an HTTP response."""
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)


class BadRequest(ApiError):
    """Raised for invalid input: validation, malformed ids, missing parameters."""
    status_code = 400
    default_message = "Bad request"


class FileTooLarge(BadRequest):
    default_message = "File size too large. Maximum size is 5MB"


class Unauthorized(ApiError):
    """Raised for missing/invalid tokens and bad credentials."""
    status_code = 401
    default_message = "Not authorized"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class Conflict(ApiError):
    """Raised when a unique field is already taken."""
    status_code = 409
    default_message = "Already exists"


class InternalError(ApiError):
    status_code = 500


class InvalidToken(Exception):
    """Raised by the token service; ``reason`` is for logs only."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)

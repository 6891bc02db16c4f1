"""Custom exception classes for the application"""

from typing import Optional, Dict, Any


class BaseAPIException(Exception):
    """Base exception for all API errors"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# Authentication Errors
class AuthenticationError(BaseAPIException):
    """Missing, invalid or expired credential. Always a 401."""
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, status_code=401)


class OAuthLoginError(Exception):
    """
    OAuth login could not be completed.

    Not an API exception: the callback turns it into a redirect carrying
    ``code`` as the ``error`` query parameter.
    """

    AUTHENTICATION_FAILED = "authentication_failed"
    USER_CREATION_FAILED = "user_creation_failed"
    SERVER_ERROR = "server_error"

    def __init__(self, code: str):
        self.code = code
        super().__init__(code)


# Resource Errors
class ResourceNotFoundError(BaseAPIException):
    """Resource not found"""
    def __init__(self, resource: str):
        super().__init__(f"{resource} not found", status_code=404)


class RateLimitExceededError(BaseAPIException):
    """Rate limit exceeded"""
    def __init__(self, message: str = "Rate limit exceeded. Please try again later."):
        super().__init__(message, status_code=429)

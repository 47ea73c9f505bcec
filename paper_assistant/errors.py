"""Error taxonomy for the Paper Assistant API.

Every error carries the HTTP status and the short human-readable message
that the API returns to clients as ``{"error": message}``.
"""

from fastapi import status


class AppError(Exception):
    """Base class for errors rendered directly to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Server error"

    def __init__(self, message: str = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class Conflict(AppError):
    """Registration with an email that already exists."""
    status_code = status.HTTP_400_BAD_REQUEST
    message = "User already exists"


class InvalidCredentials(AppError):
    """Unknown email or password mismatch."""
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid credentials"


class Unauthorized(AppError):
    """No bearer token was presented."""
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Access token required"


class InvalidToken(Unauthorized):
    """Token is malformed, fails the signature check, or names no user."""
    status_code = status.HTTP_403_FORBIDDEN
    message = "Invalid token"


class ConfigurationError(AppError):
    """The caller has no external API key stored."""
    status_code = status.HTTP_400_BAD_REQUEST
    message = "OpenRouter API key required"


class SearchFailed(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Search failed"


class ChatFailed(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Chat failed"


class ServerError(AppError):
    """Catch-all for persistence and unexpected faults."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Server error"

"""Service exceptions, each carrying the HTTP status it is rendered with."""
from __future__ import annotations


class ServiceError(Exception):
    """Base exception for all userauth failures.

    Attributes:
        status: HTTP status code used by the error handlers
        message: Error message exposed in the response body
    """

    status = 500

    def __init__(self, message: str, status: int | None = None):
        self.message = message
        if status is not None:
            self.status = status
        super().__init__(message)


class BadRequestError(ServiceError):
    """Client input could not be accepted."""
    status = 400


class UnknownProviderError(BadRequestError):
    """Provider name has no configuration."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"unsupported provider: {provider}")


class InvalidCallbackError(BadRequestError):
    """OAuth callback did not match the login attempt that started it."""
    pass


class AuthenticationError(ServiceError):
    """No usable user session."""
    status = 401


class MalformedSessionError(AuthenticationError):
    """Session cookie decoded but its payload is not a known session shape."""
    pass


class SessionExpiredError(AuthenticationError):
    """Session payload is past its expiry timestamp."""
    pass


class SessionStoreError(ServiceError):
    """Session payload could not be written to its cookie."""
    pass


class UpstreamError(ServiceError):
    """Identity provider call failed (token exchange or user info)."""
    pass


class StoreError(ServiceError):
    """Database operation failed."""
    pass


class UserNotFoundError(StoreError):
    """User lookup by id failed - no such record."""
    status = 404

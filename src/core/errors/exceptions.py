"""
Unified exception hierarchy for the sparkapi client.

Provides typed exceptions with category classification so the request
pipeline can decide which failures trigger a token refresh and which are
handed straight to the caller.
"""

from typing import Any

# Import ErrorCategory from canonical source to avoid duplicate enum issues
# (comparing enums from different classes always returns False)
from core.types import ErrorCategory


class ClientError(Exception):
    """
    Base exception for all client errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for handling decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Authentication Errors
# =============================================================================


class AuthError(ClientError):
    """Base class for authentication errors."""

    category = ErrorCategory.AUTH


class NoCredentialsError(AuthError):
    """Provider has no cached token and no way to obtain one."""

    pass


class RefreshFailedError(AuthError):
    """Refresh was attempted but the credential exchange failed."""

    pass


class AuthorizationFailedError(AuthError):
    """Server rejected the request's credential (HTTP 401)."""

    def __init__(
        self,
        message: str,
        response: Any = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, cause, context)
        self.response = response

    @property
    def status_code(self) -> int | None:
        return getattr(self.response, "status", None)


# =============================================================================
# Permanent and Transport Errors
# =============================================================================


class PermanentError(ClientError):
    """Base class for permanent errors."""

    category = ErrorCategory.PERMANENT


class TransportFailure(ClientError):
    """
    Non-auth network or protocol failure, passed to the handler untouched.

    Category follows the HTTP status when there is one; connection errors and
    timeouts (no status) are transient.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: Any = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, cause, context)
        self.status_code = status_code
        self.response = response
        if status_code is None:
            self.category = ErrorCategory.TRANSIENT
        else:
            self.category = classify_http_status(status_code)


class CallAlreadyExecutedError(PermanentError):
    """A one-shot call was issued a second time."""

    pass


class RequestNotBuiltError(PermanentError):
    """The request descriptor returned no call although a token was available."""

    pass


class InvalidConfigurationError(PermanentError):
    """Client or provider configuration is invalid."""

    pass


# =============================================================================
# HTTP Status Classification
# =============================================================================


def classify_http_status(status_code: int) -> ErrorCategory:
    """Classify HTTP status code into error category."""
    if 200 <= status_code < 300:
        return ErrorCategory.UNKNOWN  # Not an error

    if status_code == 401:
        return ErrorCategory.AUTH

    if status_code == 429:
        return ErrorCategory.TRANSIENT  # Rate limited

    if 400 <= status_code < 500:
        return ErrorCategory.PERMANENT

    if status_code >= 500:
        return ErrorCategory.TRANSIENT

    return ErrorCategory.UNKNOWN

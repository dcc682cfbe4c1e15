"""
Error classification and exception hierarchy.

Provides:
- ErrorCategory enum for classifying errors
- ClientError hierarchy for typed exceptions
- HTTP status classification
"""

from core.errors.exceptions import (
    AuthError,
    AuthorizationFailedError,
    CallAlreadyExecutedError,
    # Base classes
    ClientError,
    # Enums
    ErrorCategory,
    InvalidConfigurationError,
    # Auth errors
    NoCredentialsError,
    PermanentError,
    RefreshFailedError,
    RequestNotBuiltError,
    TransportFailure,
    classify_http_status,
)

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "ClientError",
    "AuthError",
    "PermanentError",
    # Auth errors
    "NoCredentialsError",
    "RefreshFailedError",
    "AuthorizationFailedError",
    # Transport and usage errors
    "TransportFailure",
    "CallAlreadyExecutedError",
    "RequestNotBuiltError",
    "InvalidConfigurationError",
    # Classification
    "classify_http_status",
]

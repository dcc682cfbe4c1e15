"""
Core types and protocols used across modules.

This module provides base types, enums, and protocol definitions that are
shared across the core library and the sparkapi client.
"""

from enum import Enum
from typing import Protocol


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        TRANSIENT: Temporary failures (network timeouts, 429/5xx responses)
        AUTH: Credential failures (401, missing or unrefreshable tokens)
        PERMANENT: Failures that won't change on reissue (404, validation)
        UNKNOWN: Unclassified errors
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


class TokenProvider(Protocol):
    """
    Protocol for bearer token providers.

    The authenticated call orchestrator depends only on these two operations.
    Concrete implementations live in core.auth.
    """

    async def get_token(self) -> str:
        """
        Return the currently cached token.

        Raises:
            NoCredentialsError: If no credentials are available
        """
        ...

    async def refresh_token(self) -> str:
        """
        Force acquisition of a new token, replacing the cached one.

        Raises:
            RefreshFailedError: If the credential exchange fails. The cached
                token is left unchanged.
        """
        ...


__all__ = [
    "ErrorCategory",
    "TokenProvider",
]

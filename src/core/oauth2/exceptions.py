"""OAuth2-specific exceptions."""

from core.errors.exceptions import AuthError, InvalidConfigurationError


class OAuth2Error(AuthError):
    """Base exception for OAuth2 operations."""

    pass


class TokenAcquisitionError(OAuth2Error):
    """Token could not be acquired from the token endpoint."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, cause, context)
        self.status_code = status_code


__all__ = [
    "OAuth2Error",
    "TokenAcquisitionError",
    "InvalidConfigurationError",
]

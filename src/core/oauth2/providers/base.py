"""Base OAuth2 provider interface."""

from abc import ABC, abstractmethod

from core.oauth2.models import OAuth2Token


class BaseOAuth2Provider(ABC):
    """
    Abstract base class for OAuth2 grant providers.

    A grant provider only talks to a token endpoint. Caching, expiry and
    refresh coalescing belong to core.auth.OAuth2TokenProvider, which wraps
    one of these.
    """

    def __init__(self, provider_name: str):
        self.provider_name = provider_name

    @abstractmethod
    async def acquire_token(self) -> OAuth2Token:
        """
        Acquire a new OAuth2 token.

        Raises:
            TokenAcquisitionError: If token acquisition fails
        """
        pass

    @abstractmethod
    async def refresh_token(self, token: OAuth2Token) -> OAuth2Token:
        """
        Exchange an existing token for a new one.

        Raises:
            TokenAcquisitionError: If the exchange fails
        """
        pass

    async def close(self) -> None:
        """Release network resources. No-op by default."""
        return None


__all__ = ["BaseOAuth2Provider"]

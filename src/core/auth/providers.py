"""
Bearer token providers for the authenticated request pipeline.

Each provider owns its token cache. get_token() returns the cached token
(acquiring one if the provider can), refresh_token() forces a new one.
Failures are reported as NoCredentialsError and RefreshFailedError so the
orchestrator can route them to the caller's auth-failure channel.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

from core.errors.exceptions import NoCredentialsError, RefreshFailedError
from core.oauth2.models import OAuth2Token
from core.oauth2.providers.base import BaseOAuth2Provider

logger = logging.getLogger(__name__)

# Default token refresh buffer (5 minutes before expiry)
DEFAULT_REFRESH_BUFFER_SECONDS = 300


class BaseTokenProvider(ABC):
    """Abstract token provider. Structurally satisfies core.types.TokenProvider."""

    @abstractmethod
    async def get_token(self) -> str:
        """
        Return the current token.

        Raises:
            NoCredentialsError: If no credentials are available
        """

    @abstractmethod
    async def refresh_token(self) -> str:
        """
        Force a new token, replacing the cached one on success.

        Raises:
            RefreshFailedError: If the exchange fails (cache left unchanged)
        """

    async def close(self) -> None:
        return None


class StaticTokenProvider(BaseTokenProvider):
    """
    Provider for a fixed bearer token (personal access tokens, bot tokens).

    There is nothing to exchange, so refresh always fails and a rejected
    token ends the operation on the auth-failure channel.
    """

    def __init__(self, token: str | None):
        self._token = token or None

    async def get_token(self) -> str:
        if not self._token:
            raise NoCredentialsError("No access token configured")
        return self._token

    async def refresh_token(self) -> str:
        raise RefreshFailedError(
            "Static access token cannot be refreshed",
            context={"provider": "static"},
        )


class OAuth2TokenProvider(BaseTokenProvider):
    """
    Caching token provider backed by an OAuth2 grant provider.

    Tokens are cached and refreshed proactively when they come within
    refresh_buffer_seconds of expiry. Overlapping forced refreshes are
    coalesced: callers queue on one asyncio.Lock and a caller that finds a
    token newer than the one cached when it entered refresh_token() reuses
    it. A refresh_token() call that starts after an earlier refresh finished
    exchanges again, even if its request carried the older token.

    Usage:
        provider = OAuth2TokenProvider(GenericOAuth2Provider(config))
        token = await provider.get_token()
        token = await provider.refresh_token()  # after a 401
    """

    def __init__(
        self,
        provider: BaseOAuth2Provider,
        refresh_buffer_seconds: int = DEFAULT_REFRESH_BUFFER_SECONDS,
        coalesce_refresh: bool = True,
    ):
        """
        Args:
            provider: Grant provider talking to the token endpoint
            refresh_buffer_seconds: Time before expiry to treat a token as stale
            coalesce_refresh: Share one refresh between concurrent callers.
                False issues one token exchange per refresh_token() call.
        """
        self._provider = provider
        self._token: OAuth2Token | None = None
        self._lock = asyncio.Lock()
        self.refresh_buffer_seconds = refresh_buffer_seconds
        self.coalesce_refresh = coalesce_refresh

        logger.debug(
            "Initialized OAuth2TokenProvider for '%s' with %ss refresh buffer",
            provider.provider_name,
            refresh_buffer_seconds,
        )

    @property
    def provider_name(self) -> str:
        return self._provider.provider_name

    def _usable(self, token: OAuth2Token | None) -> bool:
        return token is not None and not token.is_expired(self.refresh_buffer_seconds)

    async def get_token(self) -> str:
        cached = self._token
        if self._usable(cached):
            return cached.access_token

        async with self._lock:
            # Another coroutine may have refreshed while we waited
            cached = self._token
            if self._usable(cached):
                return cached.access_token

            try:
                if cached is not None:
                    logger.debug("Cached token for '%s' is stale, refreshing", self.provider_name)
                    new_token = await self._provider.refresh_token(cached)
                else:
                    logger.debug("Acquiring new token for '%s'", self.provider_name)
                    new_token = await self._provider.acquire_token()
            except Exception as e:
                logger.error("Failed to get token for '%s': %s", self.provider_name, e)
                raise NoCredentialsError(
                    f"Failed to get token for '{self.provider_name}'",
                    cause=e,
                    context={"provider": self.provider_name},
                ) from e

            self._store(new_token)
            return new_token.access_token

    async def refresh_token(self) -> str:
        observed = self._token

        if not self.coalesce_refresh:
            return await self._exchange(observed)

        async with self._lock:
            current = self._token
            if current is not observed and self._usable(current):
                logger.debug(
                    "Token for '%s' was refreshed by another caller, reusing it",
                    self.provider_name,
                )
                return current.access_token
            return await self._exchange(current)

    async def _exchange(self, current: OAuth2Token | None) -> str:
        try:
            if current is not None:
                new_token = await self._provider.refresh_token(current)
            else:
                new_token = await self._provider.acquire_token()
        except Exception as e:
            logger.warning("Token refresh failed for '%s': %s", self.provider_name, e)
            raise RefreshFailedError(
                f"Failed to refresh token for '{self.provider_name}'",
                cause=e,
                context={"provider": self.provider_name},
            ) from e

        self._store(new_token)
        return new_token.access_token

    def _store(self, token: OAuth2Token) -> None:
        self._token = token
        logger.info(
            "Token for '%s' valid until %s",
            self.provider_name,
            token.expires_at.isoformat(),
        )

    def clear_token(self) -> None:
        """Drop the cached token; the next get_token() acquires a new one."""
        self._token = None
        logger.debug("Cleared token for '%s'", self.provider_name)

    def get_cached_token_info(self) -> dict[str, Any] | None:
        """Information about the cached token for diagnostics (no token material)."""
        token = self._token
        if token is None:
            return None

        return {
            "provider_name": self.provider_name,
            "expires_at": token.expires_at.isoformat(),
            "remaining_seconds": token.remaining_lifetime.total_seconds(),
            "is_expired": token.is_expired(self.refresh_buffer_seconds),
            "token_type": token.token_type,
            "scope": token.scope,
            "has_refresh_token": token.refresh_token is not None,
        }

    async def close(self) -> None:
        await self._provider.close()
        self._token = None


__all__ = [
    "BaseTokenProvider",
    "StaticTokenProvider",
    "OAuth2TokenProvider",
    "DEFAULT_REFRESH_BUFFER_SECONDS",
]

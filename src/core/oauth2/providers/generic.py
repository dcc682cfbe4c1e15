"""Generic OAuth2 provider for standard OAuth2 token endpoints."""

import logging

import aiohttp

from core.oauth2.exceptions import (
    InvalidConfigurationError,
    TokenAcquisitionError,
)
from core.oauth2.models import OAuth2Config, OAuth2Token
from core.oauth2.providers.base import BaseOAuth2Provider

logger = logging.getLogger(__name__)


class GenericOAuth2Provider(BaseOAuth2Provider):
    """
    Generic OAuth2 provider for any RFC 6749 token endpoint.

    Acquires tokens with the client_credentials grant, or with the
    refresh_token grant when the config is seeded with a refresh token
    (clients that completed an authorization code flow elsewhere).
    """

    def __init__(self, config: OAuth2Config, session: aiohttp.ClientSession | None = None):
        """
        Initialize generic OAuth2 provider.

        Args:
            config: OAuth2 configuration
            session: Optional shared session; when omitted the provider
                creates and owns one

        Raises:
            InvalidConfigurationError: If required parameters are missing
        """
        super().__init__(config.provider_name)

        if not all([config.client_id, config.client_secret, config.token_url]):
            raise InvalidConfigurationError("client_id, client_secret, and token_url are required")

        self.config = config
        self._session = session
        self._owns_session = session is None

        logger.debug(
            "Initialized generic OAuth2 provider '%s'",
            config.provider_name,
            extra={"http_url": config.token_url},
        )

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP client session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def _request_token(
        self, request_data: dict[str, str], previous: OAuth2Token | None = None
    ) -> OAuth2Token:
        """POST a grant to the token endpoint and parse the response."""
        session = await self._ensure_session()

        try:
            async with session.post(
                self.config.token_url,
                data=request_data,
                timeout=aiohttp.ClientTimeout(total=self.config.timeout_seconds),
            ) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise TokenAcquisitionError(
                        f"HTTP {response.status}: {error_text[:200]}",
                        status_code=response.status,
                        context={"grant_type": request_data["grant_type"]},
                    )

                response_data = await response.json()

        except TokenAcquisitionError:
            raise
        except (aiohttp.ClientError, TimeoutError) as e:
            raise TokenAcquisitionError(f"HTTP error: {e}", cause=e) from e

        if "access_token" not in response_data:
            raise TokenAcquisitionError("Token response did not contain access_token")

        return OAuth2Token.from_response(response_data, previous=previous)

    def _client_fields(self) -> dict[str, str]:
        fields = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
        }
        scope = self.config.get_scope_string()
        if scope:
            fields["scope"] = scope
        if self.config.additional_params:
            fields.update(self.config.additional_params)
        return fields

    async def acquire_token(self) -> OAuth2Token:
        """
        Acquire a token from configured credentials.

        Raises:
            TokenAcquisitionError: If the token endpoint rejects the grant
        """
        if self.config.refresh_token:
            request_data = {
                "grant_type": "refresh_token",
                "refresh_token": self.config.refresh_token,
                **self._client_fields(),
            }
        else:
            request_data = {"grant_type": "client_credentials", **self._client_fields()}

        try:
            token = await self._request_token(request_data)
        except TokenAcquisitionError as e:
            logger.error(
                "Token acquisition failed for '%s': %s",
                self.provider_name,
                e,
                extra={"http_status": e.status_code, "error_category": e.category.value},
            )
            raise

        logger.debug(
            "Acquired token for '%s' (expires in %ds)",
            self.provider_name,
            token.remaining_lifetime.total_seconds(),
        )
        return token

    async def refresh_token(self, token: OAuth2Token) -> OAuth2Token:
        """
        Refresh token using the refresh_token grant.

        Tokens without a refresh token, and refresh grants the server
        rejects, fall back to a fresh acquisition.
        """
        if not token.refresh_token:
            return await self.acquire_token()

        request_data = {
            "grant_type": "refresh_token",
            "refresh_token": token.refresh_token,
            **self._client_fields(),
        }

        try:
            new_token = await self._request_token(request_data, previous=token)
        except TokenAcquisitionError as e:
            logger.warning(
                "Token refresh failed for '%s', will acquire new token: %s",
                self.provider_name,
                e,
                extra={"http_status": e.status_code},
            )
            return await self.acquire_token()

        logger.debug("Refreshed token for '%s'", self.provider_name)
        return new_token

    async def close(self) -> None:
        """Close the HTTP client session if this provider created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()


__all__ = ["GenericOAuth2Provider"]

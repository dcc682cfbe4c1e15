"""Token provider factory."""

import logging

from core.auth.providers import (
    DEFAULT_REFRESH_BUFFER_SECONDS,
    BaseTokenProvider,
    OAuth2TokenProvider,
    StaticTokenProvider,
)
from core.oauth2.models import OAuth2Config
from core.oauth2.providers.generic import GenericOAuth2Provider

logger = logging.getLogger(__name__)


def create_token_provider(
    *,
    access_token: str | None = None,
    client_id: str | None = None,
    client_secret: str | None = None,
    token_url: str | None = None,
    scope: str | list[str] | None = None,
    refresh_token: str | None = None,
    refresh_buffer_seconds: int = DEFAULT_REFRESH_BUFFER_SECONDS,
    coalesce_refresh: bool = True,
    provider_name: str = "sparkapi",
) -> BaseTokenProvider | None:
    """
    Create a token provider from credential settings.

    OAuth2 settings take precedence over a static access token because only
    they can refresh. Returns None when no credentials are configured, which
    leaves requests unauthenticated.
    """
    if token_url:
        if not client_id or not client_secret:
            logger.warning(
                "OAuth2 token_url set but client_id/client_secret missing, "
                "OAuth2 token provider disabled"
            )
        else:
            grant_provider = GenericOAuth2Provider(
                OAuth2Config(
                    provider_name=provider_name,
                    client_id=client_id,
                    client_secret=client_secret,
                    token_url=token_url,
                    scope=scope,
                    refresh_token=refresh_token,
                )
            )
            logger.info(
                "OAuth2 token provider created (token_url=%s, client_id=%s)",
                token_url,
                client_id,
            )
            return OAuth2TokenProvider(
                grant_provider,
                refresh_buffer_seconds=refresh_buffer_seconds,
                coalesce_refresh=coalesce_refresh,
            )

    if access_token:
        logger.info("Static access token provider created")
        return StaticTokenProvider(access_token)

    logger.info("No credentials configured, token provider disabled")
    return None


__all__ = ["create_token_provider"]

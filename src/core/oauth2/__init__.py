"""
OAuth2 grant providers and token models.

Grant providers only talk to a token endpoint. Wrap one in
core.auth.OAuth2TokenProvider to get caching, proactive refresh and
coalesced forced refreshes for the request pipeline.

Usage:
    from core.oauth2 import GenericOAuth2Provider, OAuth2Config
    from core.auth import OAuth2TokenProvider

    config = OAuth2Config(
        provider_name="spark",
        client_id=os.getenv("CLIENT_ID"),
        client_secret=os.getenv("CLIENT_SECRET"),
        token_url="https://api.ciscospark.com/v1/access_token",
        refresh_token=os.getenv("REFRESH_TOKEN"),
    )
    token_provider = OAuth2TokenProvider(GenericOAuth2Provider(config))

    token = await token_provider.get_token()
"""

from core.oauth2.exceptions import (
    InvalidConfigurationError,
    OAuth2Error,
    TokenAcquisitionError,
)
from core.oauth2.models import DEFAULT_EXPIRES_IN_SECONDS, OAuth2Config, OAuth2Token
from core.oauth2.providers import BaseOAuth2Provider, GenericOAuth2Provider

__all__ = [
    # Providers
    "BaseOAuth2Provider",
    "GenericOAuth2Provider",
    # Models
    "OAuth2Token",
    "OAuth2Config",
    "DEFAULT_EXPIRES_IN_SECONDS",
    # Exceptions
    "OAuth2Error",
    "TokenAcquisitionError",
    "InvalidConfigurationError",
]

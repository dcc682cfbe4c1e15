"""
Authentication module.

Provides bearer token providers for the authenticated request pipeline.

Components:
    - BaseTokenProvider: get_token() / refresh_token() contract
    - StaticTokenProvider: fixed token, refresh always fails
    - OAuth2TokenProvider: cached OAuth2 token with coalesced refresh
    - create_token_provider: factory from credential settings
"""

from .factory import create_token_provider
from .providers import (
    DEFAULT_REFRESH_BUFFER_SECONDS,
    BaseTokenProvider,
    OAuth2TokenProvider,
    StaticTokenProvider,
)

__all__ = [
    "BaseTokenProvider",
    "StaticTokenProvider",
    "OAuth2TokenProvider",
    "DEFAULT_REFRESH_BUFFER_SECONDS",
    "create_token_provider",
]

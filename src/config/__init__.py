"""Configuration loading for the sparkapi client.

Configuration Structure
-----------------------

config/
    config.yaml          # Service endpoint, credentials and logging

Main Functions
--------------

    - load_config(): Load client configuration from YAML
    - get_config(): Get or load singleton client config instance
    - set_config() / reset_config(): Replace or drop the singleton
    - build_token_provider(): Token provider for the configured credentials
    - configure_logging(): Apply the logging section

Usage Examples
--------------

    >>> from config import get_config, build_token_provider
    >>> from sparkapi import ServiceBuilder
    >>>
    >>> config = get_config()
    >>> provider = build_token_provider(config)
    >>> client = ServiceBuilder.from_config(config).build()

Configuration Priority
---------------------

Settings are merged in the following priority (highest to lowest):

1. Environment variables (SPARKAPI_ACCESS_TOKEN, SPARKAPI_BASE_URL,
   SPARKAPI_OAUTH2_CLIENT_ID, SPARKAPI_OAUTH2_CLIENT_SECRET,
   SPARKAPI_OAUTH2_TOKEN_URL)
2. YAML configuration file (with ${VAR} expansion)
3. Dataclass defaults
"""

from config.config import (
    ClientConfig,
    build_token_provider,
    configure_logging,
    get_config,
    load_config,
    reset_config,
    set_config,
)

__all__ = [
    "load_config",
    "get_config",
    "set_config",
    "reset_config",
    "build_token_provider",
    "configure_logging",
    "ClientConfig",
]

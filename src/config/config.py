"""sparkapi client configuration from YAML file.

Loads from config/config.yaml with all settings in one place:
- Service endpoint, default headers and timeouts
- Credentials (static access token or OAuth2 client settings)
- Logging

Environment variables ARE supported using ${VAR_NAME} syntax in YAML files,
and the SPARKAPI_* variables override the file for the common settings.
"""

import logging
import os
import re
import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from core.auth.factory import create_token_provider
from core.auth.providers import DEFAULT_REFRESH_BUFFER_SECONDS, BaseTokenProvider
from core.logging.setup import setup_logging
from sparkapi.service import DEFAULT_BASE_URL

logger = logging.getLogger(__name__)

# Settings that must never be printed
SECRET_KEYS = frozenset({"access_token", "client_secret", "refresh_token"})

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        # Support both ${VAR} and ${VAR:-default} syntax
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge overlay into base dict."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


# Default config file: config/config.yaml in src/ directory
DEFAULT_CONFIG_FILE = Path(__file__).parent / "config.yaml"


@dataclass
class ClientConfig:
    """sparkapi client configuration.

    Configuration structure:
        sparkapi:
          base_url: https://api.ciscospark.com/v1/
          timeout_seconds: 30
          connect_timeout_seconds: 10
          log_http_body: false
          headers: {...}            # Replaces the default headers when set
          auth:
            access_token: ...
            refresh_buffer_seconds: 300
            coalesce_refresh: true
            notify_on_prepare_failure: false
            oauth2:
              client_id: ...
              client_secret: ...
              token_url: ...
              scope: ...
              refresh_token: ...
          logging:
            level: INFO
            json: false
            log_dir: ""
    """

    # =========================================================================
    # SERVICE SETTINGS
    # =========================================================================
    base_url: str = DEFAULT_BASE_URL
    headers: Dict[str, str] = field(default_factory=dict)
    timeout_seconds: float = 30
    connect_timeout_seconds: float = 10
    log_http_body: bool = False

    # =========================================================================
    # CREDENTIALS
    # =========================================================================
    access_token: str = ""
    oauth2_client_id: str = ""
    oauth2_client_secret: str = ""
    oauth2_token_url: str = ""
    oauth2_scope: str = ""
    oauth2_refresh_token: str = ""
    refresh_buffer_seconds: int = DEFAULT_REFRESH_BUFFER_SECONDS
    coalesce_refresh: bool = True
    notify_on_prepare_failure: bool = False

    # =========================================================================
    # LOGGING
    # =========================================================================
    log_level: str = "INFO"
    log_json: bool = False
    log_dir: str = ""

    @property
    def has_oauth2(self) -> bool:
        return bool(self.oauth2_token_url)

    def validate(self) -> None:
        """Validate configuration for correctness and constraints.

        Checks the endpoint, numeric ranges and OAuth2 completeness.
        """
        if not self.base_url:
            raise ValueError("base_url is required in sparkapi section")
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got '{self.base_url}'")

        self._validate_min("timeout_seconds", self.timeout_seconds, 0, inclusive=False)
        self._validate_min("connect_timeout_seconds", self.connect_timeout_seconds, 0, inclusive=False)
        self._validate_min("refresh_buffer_seconds", self.refresh_buffer_seconds, 0, inclusive=True)

        if self.has_oauth2 and not (self.oauth2_client_id and self.oauth2_client_secret):
            raise ValueError(
                "auth.oauth2: client_id and client_secret are required when token_url is set"
            )

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"logging: level must be one of {VALID_LOG_LEVELS}, got '{self.log_level}'"
            )

    @staticmethod
    def _validate_min(key: str, value: float, min_value: float, inclusive: bool) -> None:
        """Validate that a setting's value meets a minimum threshold."""
        if inclusive and value < min_value:
            raise ValueError(f"{key} must be >= {min_value}, got {value}")
        elif not inclusive and value <= min_value:
            raise ValueError(f"{key} must be > {min_value}, got {value}")

    def to_dict(self, redact_secrets: bool = True) -> Dict[str, Any]:
        data = asdict(self)
        if redact_secrets:
            data = {
                key: ("***" if value and key.endswith(tuple(SECRET_KEYS)) else value)
                for key, value in data.items()
            }
        return data


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ClientConfig:
    """Load client configuration from config.yaml file.

    Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.
    SPARKAPI_ACCESS_TOKEN, SPARKAPI_BASE_URL and SPARKAPI_OAUTH2_* take
    precedence over the file.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE

    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n" f"Expected file: config/config.yaml"
        )

    logger.info(f"Loading configuration from file: {config_path}")
    yaml_data = load_yaml(config_path)
    yaml_data = _expand_env_vars(yaml_data)

    if "sparkapi" not in yaml_data:
        raise ValueError(
            "Invalid config file: missing 'sparkapi:' section\n"
            "See src/config/config.yaml for correct structure"
        )

    section = yaml_data["sparkapi"] or {}

    if overrides:
        logger.debug(f"Applying overrides: {list(overrides.keys())}")
        section = _deep_merge(section, overrides)

    auth = section.get("auth", {}) or {}
    oauth2 = auth.get("oauth2", {}) or {}
    logging_section = section.get("logging", {}) or {}

    scope = oauth2.get("scope", "")
    if isinstance(scope, list):
        scope = " ".join(scope)

    config = ClientConfig(
        base_url=os.getenv("SPARKAPI_BASE_URL") or section.get("base_url") or DEFAULT_BASE_URL,
        headers={str(k): str(v) for k, v in (section.get("headers") or {}).items()},
        timeout_seconds=float(section.get("timeout_seconds", 30)),
        connect_timeout_seconds=float(section.get("connect_timeout_seconds", 10)),
        log_http_body=_as_bool(section.get("log_http_body", False)),
        access_token=os.getenv("SPARKAPI_ACCESS_TOKEN") or auth.get("access_token") or "",
        oauth2_client_id=os.getenv("SPARKAPI_OAUTH2_CLIENT_ID") or oauth2.get("client_id") or "",
        oauth2_client_secret=(
            os.getenv("SPARKAPI_OAUTH2_CLIENT_SECRET") or oauth2.get("client_secret") or ""
        ),
        oauth2_token_url=os.getenv("SPARKAPI_OAUTH2_TOKEN_URL") or oauth2.get("token_url") or "",
        oauth2_scope=scope or "",
        oauth2_refresh_token=oauth2.get("refresh_token") or "",
        refresh_buffer_seconds=int(
            auth.get("refresh_buffer_seconds", DEFAULT_REFRESH_BUFFER_SECONDS)
        ),
        coalesce_refresh=_as_bool(auth.get("coalesce_refresh", True)),
        notify_on_prepare_failure=_as_bool(auth.get("notify_on_prepare_failure", False)),
        log_level=str(logging_section.get("level", "INFO")).upper(),
        log_json=_as_bool(logging_section.get("json", False)),
        log_dir=logging_section.get("log_dir") or "",
    )

    if config.has_oauth2:
        logger.info("OAuth2 client credentials configured")
    elif config.access_token:
        logger.info("Static access token configured")
    else:
        logger.warning("No credentials configured, requests will be unauthenticated")

    logger.debug(f"  - Base URL: {config.base_url}")
    logger.debug(f"  - Timeout: {config.timeout_seconds}s")

    logger.debug("Validating configuration...")
    config.validate()
    logger.debug("Configuration validation passed")

    return config


def build_token_provider(config: ClientConfig) -> Optional[BaseTokenProvider]:
    """Create the token provider described by config (None without credentials)."""
    return create_token_provider(
        access_token=config.access_token or None,
        client_id=config.oauth2_client_id or None,
        client_secret=config.oauth2_client_secret or None,
        token_url=config.oauth2_token_url or None,
        scope=config.oauth2_scope or None,
        refresh_token=config.oauth2_refresh_token or None,
        refresh_buffer_seconds=config.refresh_buffer_seconds,
        coalesce_refresh=config.coalesce_refresh,
    )


def configure_logging(config: ClientConfig) -> logging.Logger:
    """Apply the logging section through core.logging.setup_logging."""
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    return setup_logging(
        name="sparkapi",
        log_dir=Path(config.log_dir) if config.log_dir else None,
        json_format=config.log_json,
        console_level=level,
        log_to_stdout=not config.log_dir,
    )


_client_config: Optional[ClientConfig] = None


def get_config() -> ClientConfig:
    """Get or load the singleton client config instance."""
    global _client_config
    if _client_config is None:
        _client_config = load_config()
    return _client_config


def set_config(config: ClientConfig) -> None:
    """Set the singleton client config instance (useful for testing)."""
    global _client_config
    _client_config = config


def reset_config() -> None:
    """Reset the singleton config instance (forces reload on next get_config() call)."""
    global _client_config
    _client_config = None


def _credential_mode(config: ClientConfig) -> str:
    if config.has_oauth2:
        return "oauth2"
    return "static" if config.access_token else "none"


def _cli_main(argv: Optional[list] = None) -> int:
    """Validate a config file or print it with secrets masked."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="python -m config",
        description="Check sparkapi client configuration",
    )
    parser.add_argument("--config", type=Path, help="config file (default: bundled config.yaml)")
    parser.add_argument("--validate", action="store_true", help="validate and report credentials")
    parser.add_argument("--show-merged", action="store_true", help="print effective config as YAML")
    args = parser.parse_args(argv)

    if not args.validate and not args.show_merged:
        parser.print_help()
        return 0

    try:
        config = load_config(config_path=args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"config error: {e}", file=sys.stderr)
        return 1

    if args.validate:
        print(f"ok base_url={config.base_url} credentials={_credential_mode(config)}")
    if args.show_merged:
        print(yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False), end="")
    return 0


if __name__ == "__main__":
    sys.exit(_cli_main())

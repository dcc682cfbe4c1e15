"""OAuth2 data models and configuration."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

DEFAULT_EXPIRES_IN_SECONDS = 3600


@dataclass
class OAuth2Token:
    """
    OAuth2 access token with expiration tracking.

    Attributes:
        access_token: The access token string
        token_type: Token type (typically "Bearer")
        expires_at: UTC timestamp when token expires
        scope: Space-separated scopes granted
        refresh_token: Optional refresh token for token renewal
    """

    access_token: str
    token_type: str
    expires_at: datetime
    scope: str | None = None
    refresh_token: str | None = None

    @classmethod
    def from_response(cls, response: dict, previous: "OAuth2Token | None" = None) -> "OAuth2Token":
        """
        Create token from an OAuth2 token endpoint response.

        Servers may omit refresh_token on a refresh grant; the previous
        refresh token is carried over in that case.
        """
        expires_in = response.get("expires_in") or DEFAULT_EXPIRES_IN_SECONDS
        expires_at = datetime.now(UTC) + timedelta(seconds=int(expires_in))

        refresh_token = response.get("refresh_token")
        if refresh_token is None and previous is not None:
            refresh_token = previous.refresh_token

        return cls(
            access_token=response["access_token"],
            token_type=response.get("token_type", "Bearer"),
            expires_at=expires_at,
            scope=response.get("scope"),
            refresh_token=refresh_token,
        )

    def is_expired(self, buffer_seconds: int = 300) -> bool:
        """True if the token is expired or within buffer_seconds of expiry."""
        return datetime.now(UTC) >= self.expires_at - timedelta(seconds=buffer_seconds)

    @property
    def remaining_lifetime(self) -> timedelta:
        return self.expires_at - datetime.now(UTC)

    def __repr__(self) -> str:
        # Never expose token material in logs or tracebacks
        return (
            f"OAuth2Token(token_type={self.token_type!r}, "
            f"expires_at={self.expires_at.isoformat()!r}, scope={self.scope!r}, "
            f"has_refresh_token={self.refresh_token is not None})"
        )


@dataclass
class OAuth2Config:
    """
    OAuth2 provider configuration.

    Attributes:
        provider_name: Identifier used in logs
        client_id: OAuth2 client ID
        client_secret: OAuth2 client secret
        token_url: Token endpoint URL
        scope: Space-separated or list of scopes to request
        refresh_token: Refresh token to seed the first exchange with, for
            clients that were issued one out of band (authorization code flow)
        additional_params: Additional parameters for token request
        timeout_seconds: Total timeout for token endpoint calls
    """

    provider_name: str
    client_id: str
    client_secret: str
    token_url: str
    scope: str | list[str] | None = None
    refresh_token: str | None = None
    additional_params: dict[str, str] | None = None
    timeout_seconds: int = 30

    def get_scope_string(self) -> str:
        """Get scope as space-separated string."""
        if not self.scope:
            return ""
        if isinstance(self.scope, list):
            return " ".join(self.scope)
        return self.scope


__all__ = ["OAuth2Token", "OAuth2Config", "DEFAULT_EXPIRES_IN_SECONDS"]

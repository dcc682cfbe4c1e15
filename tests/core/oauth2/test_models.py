"""Tests for OAuth2 data models."""

from datetime import UTC, datetime, timedelta

import pytest

from core.oauth2.models import DEFAULT_EXPIRES_IN_SECONDS, OAuth2Config, OAuth2Token


def _token(expires_in_seconds, refresh_token=None):
    return OAuth2Token(
        access_token="secret-token",
        token_type="Bearer",
        expires_at=datetime.now(UTC) + timedelta(seconds=expires_in_seconds),
        refresh_token=refresh_token,
    )


class TestOAuth2Token:
    """Tests for OAuth2Token model."""

    @pytest.fixture
    def token_response(self):
        return {
            "access_token": "test-access-token",
            "token_type": "Bearer",
            "expires_in": 1209600,
            "scope": "spark:all",
            "refresh_token": "rt-1",
        }

    def test_from_response(self, token_response):
        """Builds the token from a token endpoint response."""
        before = datetime.now(UTC)
        token = OAuth2Token.from_response(token_response)

        assert token.access_token == "test-access-token"
        assert token.scope == "spark:all"
        assert token.refresh_token == "rt-1"
        assert token.expires_at >= before + timedelta(seconds=1209600)

    def test_default_expires_in(self):
        """Missing expires_in falls back to the default lifetime."""
        token = OAuth2Token.from_response({"access_token": "token123"})

        expected = datetime.now(UTC) + timedelta(seconds=DEFAULT_EXPIRES_IN_SECONDS)
        assert abs((token.expires_at - expected).total_seconds()) < 2
        assert token.token_type == "Bearer"

    def test_refresh_token_carried_over(self):
        """A refresh response without refresh_token keeps the previous one."""
        previous = _token(10, refresh_token="rt-old")
        token = OAuth2Token.from_response({"access_token": "new"}, previous=previous)
        assert token.refresh_token == "rt-old"

    def test_rotated_refresh_token_wins(self):
        previous = _token(10, refresh_token="rt-old")
        token = OAuth2Token.from_response(
            {"access_token": "new", "refresh_token": "rt-new"}, previous=previous
        )
        assert token.refresh_token == "rt-new"

    def test_is_expired(self):
        assert not _token(3600).is_expired()
        assert _token(-60).is_expired()

    def test_is_expired_within_buffer(self):
        """Token within the buffer period counts as expired."""
        token = _token(240)
        assert token.is_expired(buffer_seconds=300)
        assert not token.is_expired(buffer_seconds=0)

    def test_remaining_lifetime(self):
        assert timedelta(minutes=59) < _token(3600).remaining_lifetime < timedelta(minutes=61)
        assert _token(-300).remaining_lifetime < timedelta(0)

    def test_repr_hides_secrets(self):
        text = repr(_token(3600, refresh_token="rt-secret"))
        assert "secret-token" not in text
        assert "rt-secret" not in text
        assert "has_refresh_token=True" in text


class TestOAuth2Config:
    """Tests for OAuth2Config model."""

    def _config(self, **overrides):
        values = {
            "provider_name": "sparkapi",
            "client_id": "id",
            "client_secret": "cs",
            "token_url": "https://auth.example.com/token",
        }
        values.update(overrides)
        return OAuth2Config(**values)

    def test_defaults(self):
        config = self._config()
        assert config.refresh_token is None
        assert config.additional_params is None
        assert config.timeout_seconds == 30

    def test_scope_as_string(self):
        assert self._config(scope="spark:all spark:kms").get_scope_string() == "spark:all spark:kms"

    def test_scope_as_list(self):
        """Scope lists are joined with spaces."""
        assert self._config(scope=["spark:all", "spark:kms"]).get_scope_string() == "spark:all spark:kms"

    def test_scope_none(self):
        assert self._config().get_scope_string() == ""

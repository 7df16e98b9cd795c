"""Tests for OAuth configuration module."""

import os
from unittest import mock

import pytest

from src.twitch_oauth.config import DEFAULT_SCOPES, TwitchOAuthConfig
from src.twitch_oauth.exceptions import ConfigurationError


class TestTwitchOAuthConfig:
    """Tests for TwitchOAuthConfig class."""

    def test_config_with_required_params(self):
        """Config can be created with just required parameters."""
        config = TwitchOAuthConfig(
            client_id="test_client_id", client_secret="test_client_secret"
        )

        assert config.client_id == "test_client_id"
        assert config.client_secret == "test_client_secret"
        assert config.redirect_host == "localhost"
        assert config.redirect_port == 8080
        assert config.redirect_path == "/"
        assert config.scopes == ("user:read:email", "chat:read", "chat:edit")
        assert config.token_file == "twitch_tokens.json"
        assert config.request_timeout == 30
        assert config.callback_timeout is None

    def test_config_default_endpoints(self):
        """Config points at the Twitch OAuth endpoints by default."""
        config = TwitchOAuthConfig(client_id="id", client_secret="secret")

        assert config.authorization_url == "https://id.twitch.tv/oauth2/authorize"
        assert config.token_url == "https://id.twitch.tv/oauth2/token"
        assert config.validate_url == "https://id.twitch.tv/oauth2/validate"

    def test_config_with_all_params(self):
        """Config can be created with all parameters."""
        config = TwitchOAuthConfig(
            client_id="test_id",
            client_secret="test_secret",
            redirect_host="127.0.0.1",
            redirect_port=9000,
            redirect_path="/auth/callback",
            scopes=["chat:read"],
            token_file="/custom/path/tokens.json",
            request_timeout=5,
            callback_timeout=120,
        )

        assert config.redirect_uri == "http://127.0.0.1:9000/auth/callback"
        assert config.scopes == ("chat:read",)
        assert config.token_file == "/custom/path/tokens.json"
        assert config.request_timeout == 5
        assert config.callback_timeout == 120

    def test_redirect_uri_default(self):
        """redirect_uri matches the URL registered with Twitch."""
        config = TwitchOAuthConfig(client_id="id", client_secret="secret")

        assert config.redirect_uri == "http://localhost:8080/"

    def test_config_validates_empty_client_id(self):
        """Config raises error for empty client_id."""
        with pytest.raises(ConfigurationError, match="client_id cannot be empty"):
            TwitchOAuthConfig(client_id="", client_secret="secret")

    def test_config_validates_empty_client_secret(self):
        """Config raises error for empty client_secret."""
        with pytest.raises(ConfigurationError, match="client_secret cannot be empty"):
            TwitchOAuthConfig(client_id="id", client_secret="")

    def test_config_validates_port_range(self):
        """Config validates redirect port is in valid range."""
        with pytest.raises(
            ConfigurationError, match="redirect_port must be between 1 and 65535"
        ):
            TwitchOAuthConfig(client_id="id", client_secret="secret", redirect_port=0)

        with pytest.raises(
            ConfigurationError, match="redirect_port must be between 1 and 65535"
        ):
            TwitchOAuthConfig(
                client_id="id", client_secret="secret", redirect_port=70000
            )

    def test_config_validates_redirect_path(self):
        """Config requires an absolute redirect path."""
        with pytest.raises(ConfigurationError, match="redirect_path"):
            TwitchOAuthConfig(
                client_id="id", client_secret="secret", redirect_path="callback"
            )

    def test_config_validates_empty_scopes(self):
        """Config requires at least one scope."""
        with pytest.raises(ConfigurationError, match="scopes cannot be empty"):
            TwitchOAuthConfig(client_id="id", client_secret="secret", scopes=())

    def test_config_validates_timeouts(self):
        """Config rejects non-positive timeouts."""
        with pytest.raises(ConfigurationError, match="request_timeout"):
            TwitchOAuthConfig(client_id="id", client_secret="secret", request_timeout=0)

        with pytest.raises(ConfigurationError, match="callback_timeout"):
            TwitchOAuthConfig(
                client_id="id", client_secret="secret", callback_timeout=-1
            )


class TestConfigFromEnv:
    """Tests for loading configuration from the environment."""

    @mock.patch.dict(
        os.environ,
        {"TWITCH_CLIENT_ID": "env_id", "TWITCH_CLIENT_SECRET": "env_secret"},
        clear=True,
    )
    def test_from_env_with_required_vars(self):
        """from_env loads credentials and keeps defaults."""
        config = TwitchOAuthConfig.from_env()

        assert config.client_id == "env_id"
        assert config.client_secret == "env_secret"
        assert config.redirect_uri == "http://localhost:8080/"
        assert config.scopes == DEFAULT_SCOPES
        assert config.callback_timeout is None

    @mock.patch.dict(
        os.environ,
        {
            "TWITCH_CLIENT_ID": "env_id",
            "TWITCH_CLIENT_SECRET": "env_secret",
            "TWITCH_REDIRECT_HOST": "127.0.0.1",
            "TWITCH_REDIRECT_PORT": "9090",
            "TWITCH_TOKEN_FILE": "/tmp/twitch.json",
            "TWITCH_CALLBACK_TIMEOUT": "60",
        },
        clear=True,
    )
    def test_from_env_with_optional_vars(self):
        """from_env reads the optional variables."""
        config = TwitchOAuthConfig.from_env()

        assert config.redirect_uri == "http://127.0.0.1:9090/"
        assert config.token_file == "/tmp/twitch.json"
        assert config.callback_timeout == 60.0

    @mock.patch.dict(os.environ, {"TWITCH_CLIENT_ID": "env_id"}, clear=True)
    def test_from_env_missing_secret(self):
        """from_env raises if the client secret is missing."""
        with pytest.raises(ConfigurationError, match="Missing Twitch OAuth credentials"):
            TwitchOAuthConfig.from_env()

    @mock.patch.dict(os.environ, {}, clear=True)
    def test_from_env_missing_everything(self):
        """from_env raises if no credentials are set."""
        with pytest.raises(ConfigurationError, match="TWITCH_CLIENT_ID"):
            TwitchOAuthConfig.from_env()

    @mock.patch.dict(
        os.environ,
        {
            "TWITCH_CLIENT_ID": "env_id",
            "TWITCH_CLIENT_SECRET": "env_secret",
            "TWITCH_REDIRECT_PORT": "not-a-port",
        },
        clear=True,
    )
    def test_from_env_invalid_port(self):
        """from_env wraps malformed numbers in ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Invalid numeric"):
            TwitchOAuthConfig.from_env()

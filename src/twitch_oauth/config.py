"""
OAuth configuration for Twitch token management.

This module provides configuration management for the OAuth 2.0
Authorization Code flow against Twitch. Configuration can be loaded from
environment variables or provided programmatically, and is passed
explicitly into the provider client and the lifecycle manager.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from .exceptions import ConfigurationError

DEFAULT_SCOPES = ("user:read:email", "chat:read", "chat:edit")


@dataclass
class TwitchOAuthConfig:
    """
    Configuration for Twitch OAuth 2.0.

    Attributes:
        client_id: Twitch application client ID from the developer console
        client_secret: Twitch application client secret
        redirect_host: Host of the local redirect listener (default: localhost)
        redirect_port: Port of the local redirect listener (default: 8080)
        redirect_path: URL path of the redirect (default: /)
        scopes: Ordered scopes requested during authorization
        authorization_url: Twitch OAuth authorization endpoint
        token_url: Twitch OAuth token endpoint
        validate_url: Twitch token validation endpoint
        token_file: Path of the token snapshot file
        request_timeout: Seconds to wait for each provider HTTP call
        callback_timeout: Seconds to wait for the browser redirect
                          (None waits until a request arrives)
    """

    # Required - from the Twitch developer console
    client_id: str
    client_secret: str

    # Redirect listener (must match the redirect URL registered with Twitch)
    redirect_host: str = "localhost"
    redirect_port: int = 8080
    redirect_path: str = "/"

    scopes: Tuple[str, ...] = DEFAULT_SCOPES

    # Twitch OAuth endpoints
    authorization_url: str = "https://id.twitch.tv/oauth2/authorize"
    token_url: str = "https://id.twitch.tv/oauth2/token"
    validate_url: str = "https://id.twitch.tv/oauth2/validate"

    token_file: str = "twitch_tokens.json"

    request_timeout: float = 30
    callback_timeout: Optional[float] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.client_id:
            raise ConfigurationError("client_id cannot be empty")

        if not self.client_secret:
            raise ConfigurationError("client_secret cannot be empty")

        if not isinstance(self.redirect_port, int) or not (
            1 <= self.redirect_port <= 65535
        ):
            raise ConfigurationError(
                f"redirect_port must be between 1 and 65535, got {self.redirect_port}"
            )

        if not self.redirect_path.startswith("/"):
            raise ConfigurationError("redirect_path must start with '/'")

        self.scopes = tuple(self.scopes)
        if not self.scopes:
            raise ConfigurationError("scopes cannot be empty")

        if not self.token_file:
            raise ConfigurationError("token_file cannot be empty")

        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be positive")

        if self.callback_timeout is not None and self.callback_timeout <= 0:
            raise ConfigurationError("callback_timeout must be positive")

    @property
    def redirect_uri(self) -> str:
        """
        Full redirect URL registered with Twitch.

        Returns:
            Loopback redirect URL (e.g., http://localhost:8080/)
        """
        return f"http://{self.redirect_host}:{self.redirect_port}{self.redirect_path}"

    @classmethod
    def from_env(cls) -> "TwitchOAuthConfig":
        """
        Load configuration from environment variables.

        Required environment variables:
            TWITCH_CLIENT_ID: Twitch application client ID
            TWITCH_CLIENT_SECRET: Twitch application client secret

        Optional environment variables:
            TWITCH_REDIRECT_HOST: Redirect listener host (default: localhost)
            TWITCH_REDIRECT_PORT: Redirect listener port (default: 8080)
            TWITCH_TOKEN_FILE: Token snapshot path (default: twitch_tokens.json)
            TWITCH_CALLBACK_TIMEOUT: Seconds to wait for the redirect (default: no limit)

        Returns:
            TwitchOAuthConfig instance

        Raises:
            ConfigurationError: If required variables are missing or malformed
        """
        client_id = os.environ.get("TWITCH_CLIENT_ID")
        client_secret = os.environ.get("TWITCH_CLIENT_SECRET")

        if not client_id or not client_secret:
            raise ConfigurationError(
                "Missing Twitch OAuth credentials. Set environment variables:\n"
                "  TWITCH_CLIENT_ID=your_client_id\n"
                "  TWITCH_CLIENT_SECRET=your_client_secret\n"
                "\n"
                "Register an application at: https://dev.twitch.tv/console"
            )

        try:
            redirect_port = int(os.environ.get("TWITCH_REDIRECT_PORT", "8080"))
            raw_timeout = os.environ.get("TWITCH_CALLBACK_TIMEOUT")
            callback_timeout = float(raw_timeout) if raw_timeout else None
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric environment value: {e}") from e

        return cls(
            client_id=client_id,
            client_secret=client_secret,
            redirect_host=os.environ.get("TWITCH_REDIRECT_HOST", "localhost"),
            redirect_port=redirect_port,
            token_file=os.environ.get("TWITCH_TOKEN_FILE", "twitch_tokens.json"),
            callback_timeout=callback_timeout,
        )

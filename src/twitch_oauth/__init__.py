"""
OAuth 2.0 token lifecycle for Twitch.

This module authenticates a single local user against Twitch with the
Authorization Code grant, persists the token pair between runs, and keeps
it valid by probing and refreshing it. The result is a valid access token
plus the identity it represents, ready to hand to a chat client.

Public API:
    TwitchOAuthConfig: OAuth configuration management
    TokenPair: Access/refresh token pair
    TokenStorage: File-based token persistence
    TwitchProviderClient: Token exchange, refresh, validation, identity
    Identity: Account resolved from an access token
    OAuthCallbackServer: One-shot loopback redirect listener
    AuthorizationRequest: Authorization URL parameters
    TokenLifecycleManager: Token state machine
    ReadySession: Valid token plus identity

Exceptions:
    TwitchOAuthError: Base exception
    ConfigurationError: Configuration error
    StorageError: Token file could not be written
    ProtocolError: Provider call failed
    ResponseShapeError: Provider response missing a required field
    CallbackError: Redirect arrived without an authorization code
    TokenNotAvailableError: No valid token yet
"""

from .callback_server import (
    AuthorizationRequest,
    AuthorizationResult,
    OAuthCallbackServer,
    run_authorization_flow,
)
from .config import TwitchOAuthConfig
from .exceptions import (
    CallbackError,
    ConfigurationError,
    ProtocolError,
    ResponseShapeError,
    StorageError,
    TokenNotAvailableError,
    TwitchOAuthError,
)
from .provider_client import Identity, TwitchProviderClient
from .token_manager import LifecycleState, ReadySession, TokenLifecycleManager
from .token_storage import TokenPair, TokenStorage

__all__ = [
    # Configuration
    "TwitchOAuthConfig",
    # Token Storage
    "TokenPair",
    "TokenStorage",
    # Provider Client
    "TwitchProviderClient",
    "Identity",
    # Callback Server
    "OAuthCallbackServer",
    "AuthorizationRequest",
    "AuthorizationResult",
    "run_authorization_flow",
    # Lifecycle
    "TokenLifecycleManager",
    "LifecycleState",
    "ReadySession",
    # Exceptions
    "TwitchOAuthError",
    "ConfigurationError",
    "StorageError",
    "ProtocolError",
    "ResponseShapeError",
    "CallbackError",
    "TokenNotAvailableError",
]

"""
Token lifecycle manager for Twitch OAuth integration.

This module drives the token state machine, once per process:

    START -> VALIDATE -> READY
    START -> VALIDATE -> REFRESH -> READY
    START -> VALIDATE -> REFRESH -> AUTHORIZE -> READY
    START -> AUTHORIZE -> READY

Authorization needs a browser round-trip, so a cached pair is always
probed (and refreshed if needed) first. A failed refresh is the only
failure that is recovered from; it falls back to authorization.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .callback_server import run_authorization_flow
from .config import TwitchOAuthConfig
from .exceptions import ProtocolError, ResponseShapeError, TokenNotAvailableError
from .provider_client import Identity, TwitchProviderClient
from .token_storage import TokenPair, TokenStorage

logger = logging.getLogger(__name__)


class LifecycleState(Enum):
    """States of the token lifecycle."""

    START = "start"
    VALIDATE = "validate"
    REFRESH = "refresh"
    AUTHORIZE = "authorize"
    READY = "ready"


@dataclass(frozen=True)
class ReadySession:
    """
    A valid access token together with the identity it represents.

    Attributes:
        tokens: Token pair whose access token the provider accepted
        identity: Account resolved from the access token
    """

    tokens: TokenPair
    identity: Identity

    @property
    def credentials(self) -> Tuple[str, str]:
        """(username, access_token) as handed to the chat session."""
        return self.identity.username, self.tokens.access_token


class TokenLifecycleManager:
    """
    Produces a currently valid token pair plus identity.

    Responsibilities:
    - Load cached tokens and probe them with the provider
    - Refresh rejected access tokens
    - Fall back to interactive authorization when refresh fails
    - Persist every newly issued pair

    Example:
        manager = TokenLifecycleManager(TwitchOAuthConfig.from_env())
        session = manager.run()
        username, access_token = session.credentials
    """

    def __init__(
        self,
        config: TwitchOAuthConfig,
        storage: Optional[TokenStorage] = None,
        client: Optional[TwitchProviderClient] = None,
    ):
        """
        Initialize lifecycle manager.

        Args:
            config: OAuth configuration
            storage: Token storage (creates default if not provided)
            client: Provider client (creates default if not provided)
        """
        self.config = config
        self.storage = storage or TokenStorage(config.token_file)
        self.client = client or TwitchProviderClient(config)
        self.state: Optional[LifecycleState] = None
        self.history: List[LifecycleState] = []
        self.session: Optional[ReadySession] = None

    def run(self, open_browser: bool = True) -> ReadySession:
        """
        Run the state machine until a valid token and identity are held.

        Args:
            open_browser: Whether authorization opens the browser automatically

        Returns:
            ReadySession with the valid token pair and its identity

        Raises:
            CallbackError: If the redirect carried no authorization code
            ProtocolError: If exchange, validation transport or identity lookup fails
            ResponseShapeError: If the provider omits a required field
            StorageError: If a new token pair cannot be persisted
        """
        self._transition(LifecycleState.START)
        tokens = self.storage.load()

        if tokens is None:
            logger.info("No cached tokens found, starting authorization flow")
            tokens = self._authorize(open_browser)
        else:
            tokens = self._validate(tokens, open_browser)

        self._transition(LifecycleState.READY)
        identity = self.client.fetch_identity(tokens.access_token)

        self.session = ReadySession(tokens=tokens, identity=identity)
        logger.info(f"Token ready for {identity.username}")
        return self.session

    def get_credentials(self) -> Tuple[str, str]:
        """
        Get the (username, access_token) readout.

        Returns:
            Username and access token of the ready session

        Raises:
            TokenNotAvailableError: If run() has not completed
        """
        if self.session is None:
            raise TokenNotAvailableError(
                "No valid token yet. Run the token lifecycle first."
            )
        return self.session.credentials

    def get_status(self) -> dict:
        """
        Get current token status for diagnostics.

        Only probes the cached pair; never refreshes, authorizes or writes.

        Returns:
            Dictionary with status information:
            - authorized: Whether a snapshot exists
            - valid: Whether the provider accepts the access token (if authorized)
            - username, user_id, scopes, expires_in_seconds (if valid)
            - message: Explanation (if not authorized or not valid)
        """
        tokens = self.storage.load()
        if tokens is None:
            return {"authorized": False, "message": "No tokens stored"}

        if not self.client.validate(tokens.access_token):
            return {
                "authorized": True,
                "valid": False,
                "message": "Access token rejected; it will be refreshed on next run",
            }

        identity = self.client.fetch_identity(tokens.access_token)
        return {
            "authorized": True,
            "valid": True,
            "username": identity.username,
            "user_id": identity.user_id,
            "scopes": list(identity.scopes),
            "expires_in_seconds": identity.expires_in,
        }

    def revoke(self) -> bool:
        """
        Delete the stored token snapshot (local revocation only).

        Returns:
            True if a snapshot was deleted, False if none existed
        """
        self.session = None
        deleted = self.storage.delete()
        logger.info("Tokens revoked (local)")
        return deleted

    def _validate(self, tokens: TokenPair, open_browser: bool) -> TokenPair:
        self._transition(LifecycleState.VALIDATE)
        if self.client.validate(tokens.access_token):
            logger.info("Using cached access token")
            return tokens

        logger.info("Access token is expired, refreshing with refresh token")
        return self._refresh(tokens, open_browser)

    def _refresh(self, tokens: TokenPair, open_browser: bool) -> TokenPair:
        self._transition(LifecycleState.REFRESH)
        try:
            refreshed = self.client.refresh(tokens.refresh_token)
        except (ProtocolError, ResponseShapeError) as e:
            logger.warning(f"Token refresh failed, re-authorization required: {e}")
            return self._authorize(open_browser)

        self.storage.save(refreshed)
        return refreshed

    def _authorize(self, open_browser: bool) -> TokenPair:
        self._transition(LifecycleState.AUTHORIZE)
        code = run_authorization_flow(self.config, open_browser=open_browser)
        tokens = self.client.exchange_code(code)
        self.storage.save(tokens)
        return tokens

    def _transition(self, state: LifecycleState) -> None:
        previous = self.state.value if self.state else "none"
        logger.debug(f"Token lifecycle: {previous} -> {state.value}")
        self.state = state
        self.history.append(state)

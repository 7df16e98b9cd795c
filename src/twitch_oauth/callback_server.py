"""
OAuth callback server for Twitch authorization.

This module provides the one-shot loopback HTTP listener that receives the
browser redirect after the user approves the application on Twitch, plus
the authorization URL the user is sent to.

The listener is bound immediately before waiting, serves exactly one
request, and releases its socket as soon as that request is answered,
whether or not it carried an authorization code.
"""

import logging
import time
import webbrowser
from html import escape
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import quote, urlencode

from flask import Flask, Response, request
from werkzeug.serving import BaseWSGIServer, make_server

from .config import TwitchOAuthConfig
from .exceptions import CallbackError

logger = logging.getLogger(__name__)
_request_logger = logging.getLogger("werkzeug")

_PAGE = """<html>
<head><title>{title}</title></head>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 50px auto; padding: 20px;">
    <h1>{title}</h1>
    <p>{message}</p>
</body>
</html>"""


@dataclass(frozen=True)
class AuthorizationRequest:
    """
    Parameters of the Twitch authorization redirect.

    Attributes:
        authorization_url: Twitch authorize endpoint
        client_id: Application client ID
        redirect_uri: Loopback URL Twitch redirects back to
        scopes: Ordered scopes to request
        response_type: Always "code" (Authorization Code grant)
    """

    authorization_url: str
    client_id: str
    redirect_uri: str
    scopes: Tuple[str, ...]
    response_type: str = "code"

    @classmethod
    def from_config(cls, config: TwitchOAuthConfig) -> "AuthorizationRequest":
        return cls(
            authorization_url=config.authorization_url,
            client_id=config.client_id,
            redirect_uri=config.redirect_uri,
            scopes=tuple(config.scopes),
        )

    @property
    def url(self) -> str:
        """
        Complete authorization URL.

        Values are percent-encoded with spaces as %20, so the scope list
        reads ``user%3Aread%3Aemail%20chat%3Aread%20chat%3Aedit``.
        """
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": self.response_type,
            "scope": " ".join(self.scopes),
        }
        return f"{self.authorization_url}?{urlencode(params, quote_via=quote)}"


@dataclass
class AuthorizationResult:
    """
    Outcome of the single redirect request.

    Attributes:
        success: Whether an authorization code was received
        authorization_code: Authorization code from callback (if successful)
        error: Error code (if failed)
        error_description: Human-readable error description (if failed)
    """

    success: bool
    authorization_code: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None


class OAuthCallbackServer:
    """
    Local HTTP server that captures one OAuth redirect.

    The server:
    1. Binds the redirect host/port (start)
    2. Handles exactly one request (wait_for_callback)
    3. Closes the listening socket right after that request

    A request on any other path still counts as the one request and
    ends the wait without a code.
    """

    def __init__(self, config: TwitchOAuthConfig):
        """
        Initialize callback server.

        Args:
            config: OAuth configuration with redirect host, port and path
        """
        self.config = config
        self.app = Flask(__name__)
        self.server: Optional[BaseWSGIServer] = None
        self.result: Optional[AuthorizationResult] = None
        self._request_log_level: Optional[int] = None

        self.app.add_url_rule(
            self.config.redirect_path,
            "oauth_callback",
            self._handle_callback,
            methods=["GET"],
        )
        self.app.register_error_handler(404, self._handle_not_found)
        self.app.register_error_handler(405, self._handle_not_found)

    def _handle_callback(self) -> Response:
        """Handle the redirect from Twitch."""
        logger.info("Received OAuth callback")

        code = request.args.get("code")
        if code:
            logger.info("Authorization code received successfully")
            self.result = AuthorizationResult(success=True, authorization_code=code)
            return self._page(
                "Authorization Successful",
                "Successful, please close this page and return to the terminal.",
                200,
            )

        error = request.args.get("error", "missing_code")
        error_desc = request.args.get(
            "error_description", "No authorization code received"
        )
        logger.error(f"OAuth callback without code: {error} - {error_desc}")
        self.result = AuthorizationResult(
            success=False, error=error, error_description=error_desc
        )
        return self._page("Authorization Failed", error_desc, 400)

    def _handle_not_found(self, e: Exception) -> Response:
        logger.error(f"Unexpected request on callback server: {request.path}")
        self.result = AuthorizationResult(
            success=False,
            error="unexpected_request",
            error_description=f"Unexpected request {request.method} {request.path}",
        )
        return self._page("Authorization Failed", "Unexpected request.", 404)

    @staticmethod
    def _page(title: str, message: str, status: int) -> Response:
        return Response(
            _PAGE.format(title=title, message=escape(message)),
            status=status,
            content_type="text/html",
        )

    @property
    def port(self) -> int:
        """Port the server is bound to (or will bind to)."""
        if self.server is not None:
            return self.server.server_port
        return self.config.redirect_port

    def start(self) -> None:
        """
        Bind the listening socket.

        Raises:
            CallbackError: If the redirect host/port cannot be bound
        """
        self.result = None
        try:
            self.server = make_server(
                self.config.redirect_host, self.config.redirect_port, self.app
            )
        # werkzeug reports bind failures by exiting instead of raising
        except (OSError, SystemExit) as e:
            logger.error(f"Could not listen on {self.config.redirect_uri}")
            raise CallbackError(
                f"Could not listen on {self.config.redirect_uri}"
            ) from e

        self.server.timeout = self.config.callback_timeout
        # Request lines carry the authorization code
        self._request_log_level = _request_logger.level
        _request_logger.setLevel(logging.WARNING)
        logger.info(f"Listening for OAuth callback on {self.config.redirect_uri}")

    def wait_for_callback(self) -> AuthorizationResult:
        """
        Serve exactly one request, then shut the server down.

        Blocks until a request arrives, or until callback_timeout elapses
        when one is configured. Connections that close without sending a
        request (browser preconnects) are not counted.

        Returns:
            AuthorizationResult with code or error
        """
        if self.server is None:
            raise RuntimeError("Callback server is not started")

        if self.config.callback_timeout is None:
            logger.info("Waiting for OAuth callback")
        else:
            logger.info(
                f"Waiting for OAuth callback (timeout: {self.config.callback_timeout}s)"
            )

        deadline = None
        if self.config.callback_timeout is not None:
            deadline = time.monotonic() + self.config.callback_timeout

        try:
            # An empty connection is accepted but leaves no result
            while self.result is None:
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        break
                    self.server.timeout = remaining
                self.server.handle_request()
        finally:
            self.stop()

        if self.result is None:
            logger.warning("No OAuth callback received before timeout")
            return AuthorizationResult(
                success=False,
                error="timeout",
                error_description=(
                    f"No callback received within {self.config.callback_timeout} "
                    f"seconds. Please ensure you completed the authorization in "
                    f"your browser."
                ),
            )
        return self.result

    def await_code(self) -> str:
        """
        Wait for the redirect and return its authorization code.

        Starts the server if it is not running yet.

        Returns:
            The exact value of the redirect's code parameter

        Raises:
            CallbackError: If the redirect carried no code
        """
        if self.server is None:
            self.start()

        result = self.wait_for_callback()
        if not result.success:
            raise CallbackError(
                f"Authorization failed: {result.error} - {result.error_description}"
            )
        return result.authorization_code

    def stop(self) -> None:
        """Close the listening socket (no-op when not running)."""
        if self.server is not None:
            self.server.server_close()
            self.server = None
            if self._request_log_level is not None:
                _request_logger.setLevel(self._request_log_level)
                self._request_log_level = None
            logger.info("OAuth callback server shut down")


def run_authorization_flow(config: TwitchOAuthConfig, open_browser: bool = True) -> str:
    """
    Run the interactive part of the authorization flow.

    This function:
    1. Starts the loopback callback server
    2. Prints the authorization URL (and opens the browser if asked)
    3. Waits for the user to approve the application
    4. Returns the authorization code

    Args:
        config: OAuth configuration
        open_browser: Whether to automatically open the browser

    Returns:
        Authorization code from the redirect

    Raises:
        CallbackError: If the listener cannot start or the redirect has no code
    """
    server = OAuthCallbackServer(config)
    server.start()

    try:
        auth_url = AuthorizationRequest.from_config(config).url

        print("\n" + "=" * 70)
        print("TWITCH OAUTH AUTHORIZATION")
        print("=" * 70)
        print("\nPlease use your browser to log in:")
        print(f"\n  {auth_url}\n")

        if open_browser:
            try:
                webbrowser.open(auth_url)
            except webbrowser.Error as e:
                logger.warning(f"Could not open browser automatically: {e}")
                print("Please copy the URL above and paste it in your browser.")

        print(f"Waiting for Twitch to redirect to {config.redirect_uri} ...")
        print("=" * 70 + "\n")

        return server.await_code()
    finally:
        server.stop()

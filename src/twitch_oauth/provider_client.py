"""
Twitch identity provider client.

This module wraps the four provider calls the token lifecycle needs:
- Token exchange (authorization code → access/refresh tokens)
- Token refresh (refresh token → new access token)
- Token validation (is this access token still accepted?)
- Identity lookup (who does this access token belong to?)

Each operation is a single HTTP request with no local retry. Recovery from
a failed refresh happens one level up, in the lifecycle manager.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

import requests

from .config import TwitchOAuthConfig
from .exceptions import ProtocolError, ResponseShapeError
from .token_storage import TokenPair

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """
    Twitch account an access token belongs to.

    Attributes:
        username: Twitch login name
        user_id: Numeric Twitch user id (as a string)
        scopes: Scopes granted to the token, when reported
        expires_in: Seconds until the access token expires, when reported
    """

    username: str
    user_id: str
    scopes: Tuple[str, ...] = ()
    expires_in: Optional[int] = None


def _is_success(response: requests.Response) -> bool:
    return 200 <= response.status_code < 300


def _json_body(response: requests.Response) -> Union[dict, ResponseShapeError]:
    try:
        data = response.json()
    except ValueError:
        return ResponseShapeError("Provider response is not valid JSON")
    if not isinstance(data, dict):
        return ResponseShapeError("Provider response is not a JSON object")
    return data


def parse_token_response(
    data: Any, fallback_refresh_token: Optional[str] = None
) -> Union[TokenPair, ResponseShapeError]:
    """
    Build a TokenPair from a token endpoint body.

    Args:
        data: Decoded JSON body from the token endpoint
        fallback_refresh_token: Refresh token to keep when the body carries
                                none (refresh grant only)

    Returns:
        TokenPair, or a ResponseShapeError describing the missing field
    """
    if isinstance(data, ResponseShapeError):
        return data

    access_token = data.get("access_token")
    if not access_token or not isinstance(access_token, str):
        return ResponseShapeError("Token response missing access_token")

    refresh_token = data.get("refresh_token") or fallback_refresh_token
    if not refresh_token or not isinstance(refresh_token, str):
        return ResponseShapeError("Token response missing refresh_token")

    return TokenPair(access_token=access_token, refresh_token=refresh_token)


def parse_identity_response(data: Any) -> Union[Identity, ResponseShapeError]:
    """
    Build an Identity from a validation endpoint body.

    Args:
        data: Decoded JSON body from the validation endpoint

    Returns:
        Identity, or a ResponseShapeError describing the missing field
    """
    if isinstance(data, ResponseShapeError):
        return data

    login = data.get("login")
    user_id = data.get("user_id")
    if not login:
        return ResponseShapeError("Validation response missing login")
    if user_id is None or user_id == "":
        return ResponseShapeError("Validation response missing user_id")

    expires_in = data.get("expires_in")
    scopes = data.get("scopes")
    return Identity(
        username=str(login),
        user_id=str(user_id),
        scopes=tuple(scopes) if isinstance(scopes, list) else (),
        expires_in=expires_in if isinstance(expires_in, int) else None,
    )


class TwitchProviderClient:
    """
    Stateless HTTP operations against the Twitch identity provider.

    Example:
        client = TwitchProviderClient(TwitchOAuthConfig.from_env())
        if client.validate(tokens.access_token):
            identity = client.fetch_identity(tokens.access_token)
    """

    def __init__(self, config: TwitchOAuthConfig):
        """
        Initialize provider client.

        Args:
            config: OAuth configuration (credentials, endpoints, timeouts)
        """
        self.config = config

    def exchange_code(self, authorization_code: str) -> TokenPair:
        """
        Exchange authorization code for access and refresh tokens.

        Args:
            authorization_code: Code received on the redirect listener

        Returns:
            TokenPair with access and refresh tokens

        Raises:
            ProtocolError: On network error or non-success status
            ResponseShapeError: If access_token or refresh_token is missing
        """
        logger.info("Exchanging authorization code for tokens")

        response = self._post_token(
            {
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
                "code": authorization_code,
                "grant_type": "authorization_code",
                "redirect_uri": self.config.redirect_uri,
            },
            "Token exchange",
        )

        result = parse_token_response(_json_body(response))
        if isinstance(result, ResponseShapeError):
            logger.error(f"Invalid response from token endpoint: {result}")
            raise result

        logger.info("Successfully obtained tokens")
        return result

    def refresh(self, refresh_token: str) -> TokenPair:
        """
        Obtain a new access token using a refresh token.

        Args:
            refresh_token: Refresh token from the cached pair

        Returns:
            New TokenPair; keeps the given refresh token if the provider
            does not issue a new one

        Raises:
            ProtocolError: On network error or non-success status
            ResponseShapeError: If access_token is missing
        """
        logger.info("Refreshing access token")

        response = self._post_token(
            {
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            },
            "Token refresh",
        )

        result = parse_token_response(
            _json_body(response), fallback_refresh_token=refresh_token
        )
        if isinstance(result, ResponseShapeError):
            logger.error(f"Invalid response from token endpoint: {result}")
            raise result

        logger.info("Successfully refreshed tokens")
        return result

    def validate(self, access_token: str) -> bool:
        """
        Check whether the provider still accepts an access token.

        A rejected token is an expected outcome and returns False.

        Args:
            access_token: Access token to probe

        Returns:
            True if the validation endpoint answered with a success status

        Raises:
            ProtocolError: On network error (the provider was not reached)
        """
        response = self._get_validate(access_token)
        valid = _is_success(response)
        logger.debug(f"Token validation returned {response.status_code}")
        return valid

    def fetch_identity(self, access_token: str) -> Identity:
        """
        Resolve the account an access token belongs to.

        Args:
            access_token: A valid access token

        Returns:
            Identity with username and user id

        Raises:
            ProtocolError: On network error or non-success status
            ResponseShapeError: If login or user_id is missing
        """
        response = self._get_validate(access_token)
        if not _is_success(response):
            logger.error(f"Identity lookup failed: {response.status_code}")
            raise ProtocolError(
                f"Identity lookup failed with status {response.status_code}"
            )

        result = parse_identity_response(_json_body(response))
        if isinstance(result, ResponseShapeError):
            logger.error(f"Invalid response from validation endpoint: {result}")
            raise result

        logger.info(f"Resolved identity {result.username} ({result.user_id})")
        return result

    def _post_token(self, data: dict, action: str) -> requests.Response:
        try:
            response = requests.post(
                self.config.token_url,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                data=data,
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Network error during {action.lower()}: {e}")
            raise ProtocolError(f"Network error during {action.lower()}: {e}") from e

        if not _is_success(response):
            logger.error(f"{action} failed: {response.status_code} - {response.text}")
            raise ProtocolError(
                f"{action} failed with status {response.status_code}. "
                f"Check that your client_id and client_secret are correct."
            )
        return response

    def _get_validate(self, access_token: str) -> requests.Response:
        try:
            return requests.get(
                self.config.validate_url,
                headers={"Authorization": f"OAuth {access_token}"},
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Network error during token validation: {e}")
            raise ProtocolError(f"Network error during token validation: {e}") from e

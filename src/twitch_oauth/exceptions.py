"""
OAuth exception classes for Twitch token management.

This module defines the exception hierarchy for every failure the token
lifecycle can hit. The lifecycle manager recovers from exactly one kind of
failure (a failed refresh); everything else aborts the run.
"""


class TwitchOAuthError(Exception):
    """Base exception for all Twitch OAuth errors."""

    pass


class ConfigurationError(TwitchOAuthError):
    """OAuth configuration error (missing or invalid configuration)."""

    pass


class StorageError(TwitchOAuthError):
    """
    Token snapshot could not be written (or deleted).

    Unreadable snapshots are never raised; they load as "no tokens".
    """

    pass


class ProtocolError(TwitchOAuthError):
    """Transport failure or non-success status from the identity provider."""

    pass


class ResponseShapeError(TwitchOAuthError):
    """Provider answered successfully but a required field is missing."""

    pass


class CallbackError(TwitchOAuthError):
    """The browser redirect arrived without an authorization code."""

    pass


class TokenNotAvailableError(TwitchOAuthError):
    """No valid session yet (the lifecycle has not reached Ready)."""

    pass

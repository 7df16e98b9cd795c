"""Tests for OAuth exceptions."""

import pytest

from src.twitch_oauth.exceptions import (
    CallbackError,
    ConfigurationError,
    ProtocolError,
    ResponseShapeError,
    StorageError,
    TokenNotAvailableError,
    TwitchOAuthError,
)


class TestOAuthExceptions:
    """Tests for OAuth exception hierarchy."""

    def test_twitch_oauth_error_is_base_exception(self):
        """TwitchOAuthError is base for all OAuth errors."""
        error = TwitchOAuthError("test error")
        assert isinstance(error, Exception)
        assert str(error) == "test error"

    @pytest.mark.parametrize(
        "exc_class",
        [
            ConfigurationError,
            StorageError,
            ProtocolError,
            ResponseShapeError,
            CallbackError,
            TokenNotAvailableError,
        ],
    )
    def test_exceptions_inherit_from_base(self, exc_class):
        """Every error kind can be caught as TwitchOAuthError."""
        with pytest.raises(TwitchOAuthError, match="boom"):
            raise exc_class("boom")

    def test_error_kinds_are_distinct(self):
        """Protocol and response shape failures are separate kinds."""
        assert not issubclass(ResponseShapeError, ProtocolError)
        assert not issubclass(ProtocolError, ResponseShapeError)
        assert not issubclass(CallbackError, ProtocolError)

"""
Token storage for Twitch OAuth integration.

This module provides file-based persistence of the access/refresh token
pair between runs. The snapshot is plaintext JSON restricted to the owner
(chmod 600) and is replaced atomically on every save.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .exceptions import StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    """
    OAuth token pair.

    The pair carries no expiry of its own; whether the access token is
    still good is only known by asking the provider.

    Attributes:
        access_token: Short-lived bearer token for API calls
        refresh_token: Long-lived token for obtaining new access tokens
    """

    access_token: str
    refresh_token: str

    def __post_init__(self) -> None:
        for name in ("access_token", "refresh_token"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ValueError(f"{name} must be a non-empty string")

    def to_dict(self) -> dict:
        """Convert to the snake_case dictionary stored on disk."""
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TokenPair":
        """
        Create TokenPair from a stored dictionary.

        Args:
            data: Dictionary with access_token and refresh_token

        Returns:
            TokenPair instance

        Raises:
            KeyError: If a field is missing
            ValueError: If a field is empty or not a string
        """
        return cls(
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
        )


class TokenStorage:
    """
    File-based token storage (plaintext JSON).

    A missing or corrupt snapshot loads as None so the caller falls back to
    authorization. A failed write raises, since a session that cannot be
    persisted will not survive a restart.
    """

    def __init__(self, token_file: str):
        """
        Initialize token storage.

        Args:
            token_file: Path to the token snapshot file
        """
        self.token_file = Path(token_file)

    def _ensure_directory(self) -> None:
        """Create parent directory if needed."""
        self.token_file.parent.mkdir(parents=True, exist_ok=True)

    def save(self, tokens: TokenPair) -> None:
        """
        Atomically overwrite the snapshot with the given pair.

        The pair is written to a temporary file next to the snapshot, given
        user-only permissions, then moved over the snapshot.

        Args:
            tokens: Token pair to save

        Raises:
            StorageError: If the snapshot cannot be written
        """
        tmp_path = None
        try:
            self._ensure_directory()
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=self.token_file.parent,
                prefix=f".{self.token_file.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = f.name
                json.dump(tokens.to_dict(), f, indent=2)

            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.token_file)
            tmp_path = None

            logger.info(f"Tokens saved to {self.token_file}")
        except OSError as e:
            logger.error(f"Failed to save tokens: {e}")
            raise StorageError(f"Failed to save tokens to {self.token_file}: {e}") from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def load(self) -> Optional[TokenPair]:
        """
        Load tokens from file.

        Returns:
            TokenPair if the snapshot exists and is valid, None otherwise

        Notes:
            - Returns None if file doesn't exist (normal on first run)
            - Returns None if file is corrupted (logs warning)
        """
        if not self.token_file.exists():
            logger.debug(f"No token file found at {self.token_file}")
            return None

        try:
            with open(self.token_file, "r") as f:
                data = json.load(f)

            tokens = TokenPair.from_dict(data)
            logger.debug(f"Tokens loaded from {self.token_file}")
            return tokens

        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(
                f"Invalid token file at {self.token_file}, "
                f"will need re-authorization: {e}"
            )
            return None
        except OSError as e:
            logger.warning(f"Could not read token file: {e}")
            return None

    def delete(self) -> bool:
        """
        Delete token file.

        Returns:
            True if file was deleted, False if file didn't exist

        Raises:
            StorageError: If the file exists but cannot be removed
        """
        if self.token_file.exists():
            try:
                self.token_file.unlink()
                logger.info(f"Token file deleted: {self.token_file}")
                return True
            except OSError as e:
                logger.error(f"Failed to delete token file: {e}")
                raise StorageError(f"Failed to delete token file: {e}") from e

        logger.debug(f"Token file does not exist: {self.token_file}")
        return False

    def exists(self) -> bool:
        """Check if token file exists."""
        return self.token_file.exists()

"""Pytest fixtures for Twitch OAuth tests.

This module provides configs pointing at temporary token files and helpers
for talking to a real loopback callback listener.
"""

import socket
import tempfile
import threading
import time
from pathlib import Path
from typing import Callable, Generator

import pytest
import requests

from src.twitch_oauth.config import TwitchOAuthConfig


def _http_get(url: str) -> requests.Response:
    # Bypass proxy environment variables for loopback requests
    session = requests.Session()
    session.trust_env = False
    try:
        return session.get(url, timeout=5)
    finally:
        session.close()


@pytest.fixture
def free_port() -> int:
    """Find a loopback port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def token_dir() -> Generator[Path, None, None]:
    """Temporary directory for token files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config(token_dir) -> TwitchOAuthConfig:
    """Create test OAuth config with a temporary token file."""
    return TwitchOAuthConfig(
        client_id="test_client_id",
        client_secret="test_client_secret",
        token_file=str(token_dir / "tokens.json"),
    )


@pytest.fixture
def loopback_config(token_dir, free_port) -> TwitchOAuthConfig:
    """Create test OAuth config whose redirect listener can really bind."""
    return TwitchOAuthConfig(
        client_id="test_client_id",
        client_secret="test_client_secret",
        redirect_host="127.0.0.1",
        redirect_port=free_port,
        token_file=str(token_dir / "tokens.json"),
    )


@pytest.fixture
def http_get() -> Callable[[str], requests.Response]:
    """GET a loopback URL without proxies."""
    return _http_get


@pytest.fixture
def get_when_listening() -> Callable[[str], requests.Response]:
    """GET a loopback URL, retrying until the listener accepts connections."""

    def _get(url: str, attempts: int = 100) -> requests.Response:
        for _ in range(attempts):
            try:
                return _http_get(url)
            except requests.ConnectionError:
                time.sleep(0.05)
        raise AssertionError(f"Nothing listening at {url}")

    return _get


class BackgroundCall:
    """Run a blocking call in a thread, keeping its result or exception."""

    def __init__(self, target: Callable[[], object]):
        self.result = None
        self.error = None
        self._target = target
        self._thread = threading.Thread(target=self._run, daemon=True)

    def _run(self) -> None:
        try:
            self.result = self._target()
        except Exception as e:
            self.error = e

    def start(self) -> "BackgroundCall":
        self._thread.start()
        return self

    def join(self, timeout: float = 10) -> None:
        self._thread.join(timeout)
        assert not self._thread.is_alive(), "background call did not finish"


@pytest.fixture
def background() -> Callable[[Callable[[], object]], BackgroundCall]:
    """Start a blocking call in a background thread."""
    return lambda target: BackgroundCall(target).start()

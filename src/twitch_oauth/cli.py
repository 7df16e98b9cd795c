#!/usr/bin/env python3
"""
Twitch OAuth token command line tool.

Obtains a valid Twitch access token for the local user, reusing and
refreshing the cached token pair when possible, and prints the identity
it belongs to.

Usage:
    twitch-watcher                 # Obtain/refresh token, print identity
    twitch-watcher --no-browser    # Print the authorization URL only
    twitch-watcher --status        # Check the cached token without changing it
    twitch-watcher --revoke        # Delete the cached token file

Prerequisites:
    export TWITCH_CLIENT_ID="your_client_id"
    export TWITCH_CLIENT_SECRET="your_client_secret"
"""

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from .config import TwitchOAuthConfig
from .exceptions import ConfigurationError, TwitchOAuthError
from .token_manager import TokenLifecycleManager

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def format_time_remaining(seconds: Optional[int]) -> str:
    """
    Format seconds into human-readable time remaining.

    Args:
        seconds: Number of seconds (None if unknown)

    Returns:
        Formatted string (e.g., "2h 15m", "45m", "expired", "unknown")
    """
    if seconds is None:
        return "unknown"
    if seconds <= 0:
        return "expired"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)

    if hours > 0:
        return f"{hours}h {minutes}m"
    elif minutes > 0:
        return f"{minutes}m"
    else:
        return f"{int(seconds)}s"


def authorize(manager: TokenLifecycleManager, open_browser: bool = True) -> int:
    """
    Run the token lifecycle and print the resulting identity.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    try:
        session = manager.run(open_browser=open_browser)
    except TwitchOAuthError as e:
        logger.error(f"Fatal: {e}")
        print(f"Authorization failed: {e}", file=sys.stderr)
        return EXIT_FAILURE

    print(f"username: {session.identity.username}")
    print(f"user id: {session.identity.user_id}")
    print(f"token file: {manager.config.token_file}")
    return EXIT_OK


def check_status(manager: TokenLifecycleManager) -> int:
    """
    Print the status of the cached token.

    Returns:
        Exit code (0 if valid, 1 if missing or rejected)
    """
    try:
        status = manager.get_status()
    except TwitchOAuthError as e:
        print(f"Could not check token: {e}", file=sys.stderr)
        return EXIT_FAILURE

    print("=" * 70)
    print("TWITCH OAUTH TOKEN STATUS")
    print("=" * 70)

    if not status["authorized"]:
        print("NOT AUTHORIZED")
        print(f"Reason: {status['message']}")
        print("Run twitch-watcher to authorize.")
        return EXIT_FAILURE

    if not status["valid"]:
        print("TOKEN REJECTED")
        print(f"Reason: {status['message']}")
        return EXIT_FAILURE

    print("AUTHORIZED")
    print(f"Username:    {status['username']}")
    print(f"User id:     {status['user_id']}")
    print(f"Expires in:  {format_time_remaining(status['expires_in_seconds'])}")
    print(f"Scopes:      {' '.join(status['scopes']) or 'N/A'}")
    return EXIT_OK


def revoke(manager: TokenLifecycleManager) -> int:
    """
    Delete the cached token file.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    try:
        deleted = manager.revoke()
    except TwitchOAuthError as e:
        print(f"Error revoking authorization: {e}", file=sys.stderr)
        return EXIT_FAILURE

    if deleted:
        print(f"Token file deleted: {manager.config.token_file}")
    else:
        print("No authorization found to revoke")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="twitch-watcher",
        description="Obtain and keep a valid Twitch OAuth token for the local user",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configuration (environment variables):
  TWITCH_CLIENT_ID         Application client ID (required)
  TWITCH_CLIENT_SECRET     Application client secret (required)
  TWITCH_REDIRECT_HOST     Redirect listener host (default: localhost)
  TWITCH_REDIRECT_PORT     Redirect listener port (default: 8080)
  TWITCH_TOKEN_FILE        Token file (default: twitch_tokens.json)
  TWITCH_CALLBACK_TIMEOUT  Seconds to wait for the redirect (default: no limit)
        """,
    )
    action = parser.add_mutually_exclusive_group()
    action.add_argument(
        "--status",
        action="store_true",
        help="Check the cached token without refreshing or authorizing",
    )
    action.add_argument(
        "--revoke",
        action="store_true",
        help="Delete the cached token file",
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Don't automatically open browser (display URL only)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Seconds to wait for the browser redirect (default: no limit)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        config = TwitchOAuthConfig.from_env()
        if args.timeout is not None:
            config = replace(config, callback_timeout=args.timeout)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    manager = TokenLifecycleManager(config)

    if args.revoke:
        return revoke(manager)
    if args.status:
        return check_status(manager)
    return authorize(manager, open_browser=not args.no_browser)


if __name__ == "__main__":
    sys.exit(main())

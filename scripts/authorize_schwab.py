#!/usr/bin/env python3
"""
Log in to Schwab and write the token file.

By default it starts an HTTPS server on the callback URL (which must point
at 127.0.0.1) and opens a browser. With --manual it prints the
authorization URL and asks for the URL the browser was redirected to.

Tokens are saved to SCHWAB_TOKEN_FILE (default: .schwab_token.json) with
the time of authorization. Refresh tokens expire after 7 days, so run this
script again when check_schwab_auth.py reports the token as too old.

Usage:
    python scripts/authorize_schwab.py

    # Headless machine
    python scripts/authorize_schwab.py --manual

    # Force re-authorization
    python scripts/authorize_schwab.py --revoke
    python scripts/authorize_schwab.py

Prerequisites:
    - Environment variables must be set:
        export SCHWAB_API_KEY="your_app_key"
        export SCHWAB_APP_SECRET="your_app_secret"
    - The callback URL registered for the app matches SCHWAB_CALLBACK_URL
      (default: https://127.0.0.1:8182)
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.oauth.coordinator import OAuthCoordinator
from src.oauth.exceptions import ConfigurationError, SchwabOAuthError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def authorize(open_browser: bool = True, manual: bool = False) -> int:
    """
    Run the authorization flow if the stored token is missing or too old.

    Args:
        open_browser: Whether to automatically open browser
        manual: Use the copy-and-paste flow

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    try:
        coordinator = OAuthCoordinator()

        if not coordinator.needs_authorization():
            status = coordinator.get_status()
            logger.info("Already authorized")
            logger.info(f"   Token age: {status['token_age_seconds']} seconds")
            logger.info("   Use --revoke to re-authorize")
            return 0

        logger.info("Starting OAuth authorization flow...")
        if coordinator.run_authorization_flow(open_browser=open_browser, manual=manual):
            logger.info("Authorization successful!")
            logger.info(f"   Tokens saved to: {coordinator.config.token_file}")
            return 0

        logger.error("Authorization failed")
        logger.error("   See the messages above for the cause")
        return 1

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        logger.error("")
        logger.error("Please ensure environment variables are set:")
        logger.error("  export SCHWAB_API_KEY='your_app_key'")
        logger.error("  export SCHWAB_APP_SECRET='your_app_secret'")
        return 1
    except SchwabOAuthError as e:
        logger.error(f"Authorization error: {e}")
        return 1


def revoke() -> int:
    """
    Revoke current authorization.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    try:
        coordinator = OAuthCoordinator()

        if not coordinator.token_manager.storage.exists():
            logger.info("No authorization found to revoke")
            return 0

        coordinator.revoke()
        logger.info("Authorization revoked")
        logger.info(f"   Token file deleted: {coordinator.config.token_file}")
        return 0

    except SchwabOAuthError as e:
        logger.error(f"Error revoking authorization: {e}")
        return 1


def main():
    """Parse arguments and run the login or revoke step."""
    parser = argparse.ArgumentParser(
        description="Schwab OAuth Authorization",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run authorization flow
  python scripts/authorize_schwab.py

  # Paste the redirect URL instead of running a callback server
  python scripts/authorize_schwab.py --manual

  # Revoke existing authorization
  python scripts/authorize_schwab.py --revoke
        """,
    )
    parser.add_argument(
        "--revoke",
        action="store_true",
        help="Revoke existing authorization and delete tokens",
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Don't automatically open browser (display URL only)",
    )
    parser.add_argument(
        "--manual",
        action="store_true",
        help="Paste the redirected URL instead of starting a callback server",
    )

    args = parser.parse_args()

    if args.revoke:
        return revoke()

    return authorize(open_browser=not args.no_browser, manual=args.manual)


if __name__ == "__main__":
    sys.exit(main())

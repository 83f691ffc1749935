#!/usr/bin/env python3
"""
Report on the Schwab token file.

Reads the token file written by authorize_schwab.py and prints whether the
access token is still valid, how old the token file is and how long until
the refresh token forces a new login.

Usage:
    python scripts/check_schwab_auth.py

    # Verbose output with token details
    python scripts/check_schwab_auth.py --verbose
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.oauth.coordinator import OAuthCoordinator
from src.oauth.exceptions import ConfigurationError, StaleTokenFormatError

logger = logging.getLogger(__name__)


def format_duration(seconds: float) -> str:
    """Render a number of seconds as "3d 4h", "2h 15m", "45m" or "expired"."""
    if seconds <= 0:
        return "expired"

    days = int(seconds // 86400)
    hours = int((seconds % 86400) // 3600)
    minutes = int((seconds % 3600) // 60)

    if days > 0:
        return f"{days}d {hours}h"
    elif hours > 0:
        return f"{hours}h {minutes}m"
    elif minutes > 0:
        return f"{minutes}m"
    else:
        return f"{int(seconds)}s"


def check_authorization(verbose: bool = False) -> int:
    """
    Print the state of the stored tokens.

    Returns 0 when the token file is usable, 1 when a new login is needed
    and 2 when the app credentials are not configured.
    """
    try:
        coordinator = OAuthCoordinator()
        token_file = Path(coordinator.config.token_file).expanduser()

        print("=" * 70)
        print("SCHWAB TOKEN FILE STATUS")
        print("=" * 70)
        print()

        status = coordinator.get_status()

        if not status.get("authorized", False):
            print("NOT AUTHORIZED")
            print()
            print(f"Reason: {status.get('message', 'Unknown')}")
            print()
            print("To authorize, run:")
            print("    python scripts/authorize_schwab.py")
            print()
            return 1

        age = status["token_age_seconds"]
        max_age = status.get("max_token_age")

        if status["needs_reauthorization"]:
            print("RE-AUTHORIZATION REQUIRED")
            print()
            print(f"Token age:   {format_duration(age)} (limit {format_duration(max_age)})")
            print()
            print("The refresh token is about to expire. Run:")
            print("    python scripts/authorize_schwab.py --revoke")
            print("    python scripts/authorize_schwab.py")
            print()
            return 1

        print("AUTHORIZED")
        print()

        if status.get("expired", False):
            print("Status:      Access token expired")
            print("A new access token will be requested on the next API call.")
        else:
            print("Status:      Active")
            print(f"Expires in:  {format_duration(status['expires_in_seconds'])}")
        print(f"Token age:   {format_duration(age)}")
        if max_age:
            print(f"Re-auth in:  {format_duration(max_age - age)}")

        if verbose:
            print(f"Expires at:  {status['expires_at']}")
            created = datetime.fromtimestamp(status["creation_timestamp"])
            print(f"Created:     {created.strftime('%Y-%m-%d %H:%M:%S')}")
            print(f"Scope:       {status.get('scope') or 'N/A'}")
            print(f"Token file:  {token_file}")
            stat = token_file.stat()
            print(f"Permissions: {oct(stat.st_mode)[-3:]}")

        print()
        print("=" * 70)
        print()
        return 0

    except StaleTokenFormatError as e:
        print("STALE TOKEN FILE")
        print()
        print(f"Error: {e}")
        print()
        return 1
    except ConfigurationError as e:
        print("CONFIGURATION ERROR")
        print()
        print(f"Error: {e}")
        print()
        print("Ensure environment variables are set:")
        print("  SCHWAB_API_KEY")
        print("  SCHWAB_APP_SECRET")
        print()
        return 2


def main():
    """Parse arguments and print the token status."""
    parser = argparse.ArgumentParser(
        description="Check Schwab OAuth authorization status",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed token information",
    )

    args = parser.parse_args()
    logging.basicConfig(level=logging.WARNING, format="%(message)s")

    return check_authorization(verbose=args.verbose)


if __name__ == "__main__":
    sys.exit(main())

"""
Generate OrderBuilder code that repeats the most recent order.

Place an order through the Schwab web or desktop interface, then run:

    schwab-orders-codegen --token_file token.json --api_key KEY --app_secret SECRET

The script fetches recent orders (for one account if --account_id or
--account_hash is given, otherwise for all linked accounts), picks the one
with the highest order ID, and prints Python code that builds the same order.

Exit codes: 0 on success (including when no orders are found), -1 on any
handled failure.
"""

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

from src.contrib.orders import code_for_builder, construct_repeat_order
from src.exceptions import SchwabError
from src.oauth.config import SchwabOAuthConfig
from src.oauth.coordinator import OAuthCoordinator
from src.oauth.exceptions import StaleTokenFormatError
from src.schwab.client import SchwabClient
from src.schwab.exceptions import SchwabAPIError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate code to recreate the most recently placed order",
    )
    required = parser.add_argument_group("required arguments")
    required.add_argument("--token_file", required=True, help="Path to the token file")
    required.add_argument("--api_key", required=True, help="App key of your Schwab app")
    required.add_argument("--app_secret", required=True, help="App secret of your Schwab app")

    account = parser.add_mutually_exclusive_group()
    account.add_argument(
        "--account_id", help="Restrict the search to orders for this account number"
    )
    account.add_argument(
        "--account_hash", help="Restrict the search to orders for this account hash"
    )
    return parser


def client_from_token_file(token_file: str, api_key: str, app_secret: str) -> SchwabClient:
    """
    Create a client that uses an existing token file.

    Raises:
        StaleTokenFormatError: If the token file predates creation timestamps
        TokenNotAvailableError: If the token file does not exist
    """
    config = SchwabOAuthConfig(api_key=api_key, app_secret=app_secret, token_file=token_file)
    coordinator = OAuthCoordinator(config)
    # Load eagerly so a missing or stale file fails before any request
    coordinator.get_access_token()
    return SchwabClient(oauth_coordinator=coordinator)


def _resolve_account_hash(client: SchwabClient, account_id: str) -> Optional[str]:
    accounts = client.get_account_numbers()
    for entry in accounts:
        if entry.get("accountNumber") == str(account_id):
            return entry.get("hashValue")

    print(
        f"Failed to find account hash for account ID {account_id}. "
        f"Searched the following accounts:\n{json.dumps(accounts, indent=4)}",
        file=sys.stderr,
    )
    return None


def _warn_on_destinations(order: dict) -> None:
    warned = False

    requested = order.get("requestedDestination")
    if requested and requested != "AUTO":
        print(
            f'# Warning: This order contains a non-"AUTO" value of '
            f'"requestedDestination" ("{requested}").\n'
            f"#          This parameter appears to be broken in the API, "
            f"so it is omitted in this generated code.",
            file=sys.stderr,
        )
        warned = True

    link_name = order.get("destinationLinkName")
    if link_name and link_name != "AutoRoute":
        print(
            f'# Warning: This order contains a non-"AutoRoute" value of '
            f'"destinationLinkName" ("{link_name}").\n'
            f"#          This parameter appears to be broken in the API, "
            f"so it is omitted in this generated code.",
            file=sys.stderr,
        )
        warned = True

    if warned:
        print("", file=sys.stderr)


def latest_order_main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        client = client_from_token_file(args.token_file, args.api_key, args.app_secret)
    except StaleTokenFormatError as e:
        print(e, file=sys.stderr)
        return -1
    except SchwabError as e:
        print(f"Could not load token file {args.token_file}: {e}", file=sys.stderr)
        return -1

    try:
        account_hash = args.account_hash
        if args.account_id:
            account_hash = _resolve_account_hash(client, args.account_id)
            if not account_hash:
                return -1

        if account_hash:
            orders: Any = client.get_orders_for_account(account_hash)
        else:
            orders = client.get_orders_for_all_linked_accounts()
    except SchwabAPIError as e:
        message = f"Returned HTTP status code {e.status_code}."
        if account_hash:
            message += " This is most often caused by an invalid account ID or hash."
        print(message, file=sys.stderr)
        return -1

    if isinstance(orders, dict) and "error" in orders:
        message = f'Schwab returned error: "{orders["error"]}"'
        if account_hash:
            message += ". This is most often caused by an invalid account ID or hash."
        print(message, file=sys.stderr)
        return -1

    if not orders:
        print("No recent orders found")
        return 0

    order = max(orders, key=lambda o: o["orderId"])
    logger.debug(f"Selected order {order['orderId']} of {len(orders)}")
    _warn_on_destinations(order)

    try:
        code = code_for_builder(construct_repeat_order(order))
    except SchwabError as e:
        print(f"Cannot generate code for order {order['orderId']}: {e}", file=sys.stderr)
        return -1

    print(f"# Order ID {order['orderId']}")
    print(code)
    return 0


def main() -> int:
    """Console script entry point."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    return latest_order_main(sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main())

"""
Schwab API response parsers.

Convert raw account responses into the dataclasses in models.py.
Missing fields fall back to defaults rather than failing, since the
shape of account responses depends on the account type.
"""

import logging
from typing import Any, Dict, List

from .models import (
    AccountNumberMapping,
    SchwabAccount,
    SchwabAccountBalances,
    SchwabPosition,
)

logger = logging.getLogger(__name__)


def parse_account_numbers(data: List[Dict[str, Any]]) -> List[AccountNumberMapping]:
    """
    Parse the response of the account numbers endpoint.

    Args:
        data: List of {"accountNumber": ..., "hashValue": ...} objects

    Returns:
        List of AccountNumberMapping
    """
    return [
        AccountNumberMapping(
            account_number=str(entry["accountNumber"]),
            hash_value=entry["hashValue"],
        )
        for entry in data
    ]


def parse_schwab_account(data: Dict[str, Any]) -> SchwabAccount:
    """
    Parse Schwab account data into a SchwabAccount.

    Args:
        data: Account object, optionally wrapped in "securitiesAccount"

    Returns:
        SchwabAccount object
    """
    account_data = data.get("securitiesAccount", data)

    positions = [
        parse_schwab_position(position_data)
        for position_data in account_data.get("positions", [])
    ]
    balances = parse_schwab_balances(account_data.get("currentBalances", {}))

    logger.debug(f"Parsed account with {len(positions)} position(s)")

    return SchwabAccount(
        account_number=str(account_data.get("accountNumber", "")),
        account_type=account_data.get("type", ""),
        balances=balances,
        positions=positions,
        is_closing_only=account_data.get("isClosingOnlyRestricted", False),
        is_day_trader=account_data.get("isDayTrader", False),
    )


def parse_schwab_position(data: Dict[str, Any]) -> SchwabPosition:
    instrument = data.get("instrument", {})

    return SchwabPosition(
        symbol=instrument.get("symbol", ""),
        asset_type=instrument.get("assetType", ""),
        long_quantity=data.get("longQuantity", 0.0),
        short_quantity=data.get("shortQuantity", 0.0),
        average_price=data.get("averagePrice", 0.0),
        market_value=data.get("marketValue", 0.0),
        day_profit_loss=data.get("currentDayProfitLoss"),
        day_profit_loss_percent=data.get("currentDayProfitLossPercentage"),
        underlying_symbol=instrument.get("underlyingSymbol"),
    )


def parse_schwab_balances(data: Dict[str, Any]) -> SchwabAccountBalances:
    return SchwabAccountBalances(
        cash_balance=data.get("cashBalance", 0.0),
        available_funds=data.get("availableFunds", data.get("cashAvailableForTrading", 0.0)),
        buying_power=data.get("buyingPower"),
        liquidation_value=data.get("liquidationValue", 0.0),
    )

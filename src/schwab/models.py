"""
Schwab account data models.

Most client methods return the decoded JSON untouched. These dataclasses
cover the account responses that callers routinely need in structured
form: the account number to hash mapping and account positions.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class AccountNumberMapping:
    """
    Plain account number and the hash used in request paths.

    Attributes:
        account_number: Account number as shown to the user
        hash_value: Encrypted account identifier for /accounts/{hash} paths
    """

    account_number: str
    hash_value: str

    def __repr__(self) -> str:
        return f"AccountNumberMapping(***{self.account_number[-4:]})"


@dataclass
class SchwabPosition:
    """
    A position in a Schwab account.

    Attributes:
        symbol: Equity ticker or 21-character option symbol
        asset_type: EQUITY, OPTION, MUTUAL_FUND, ...
        long_quantity: Shares or contracts held long
        short_quantity: Shares or contracts held short
        average_price: Average cost per share or contract
        market_value: Current market value of the position
        day_profit_loss: Profit or loss for the current day
        day_profit_loss_percent: Day profit or loss as a percentage
        underlying_symbol: Underlying ticker for option positions
    """

    symbol: str
    asset_type: str
    long_quantity: float = 0.0
    short_quantity: float = 0.0
    average_price: float = 0.0
    market_value: float = 0.0
    day_profit_loss: Optional[float] = None
    day_profit_loss_percent: Optional[float] = None
    underlying_symbol: Optional[str] = None

    @property
    def quantity(self) -> float:
        """Net quantity, negative for short positions."""
        return self.long_quantity - self.short_quantity

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary representation of the position
        """
        return {
            "symbol": self.symbol,
            "asset_type": self.asset_type,
            "quantity": self.quantity,
            "long_quantity": self.long_quantity,
            "short_quantity": self.short_quantity,
            "average_price": self.average_price,
            "market_value": self.market_value,
            "day_profit_loss": self.day_profit_loss,
            "day_profit_loss_percent": self.day_profit_loss_percent,
            "underlying_symbol": self.underlying_symbol,
        }


@dataclass
class SchwabAccountBalances:
    """
    Current balances of an account.

    Attributes:
        cash_balance: Settled cash
        available_funds: Funds available for trading
        buying_power: Buying power (margin accounts)
        liquidation_value: Total account value if liquidated
    """

    cash_balance: float = 0.0
    available_funds: float = 0.0
    buying_power: Optional[float] = None
    liquidation_value: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cash_balance": self.cash_balance,
            "available_funds": self.available_funds,
            "buying_power": self.buying_power,
            "liquidation_value": self.liquidation_value,
        }


@dataclass
class SchwabAccount:
    """
    A Schwab brokerage account with its positions.

    Attributes:
        account_number: Plain account number
        account_type: CASH or MARGIN
        balances: Current balances
        positions: Open positions (empty unless positions were requested)
        is_closing_only: Whether the account is restricted to closing trades
        is_day_trader: Whether the account is flagged as pattern day trader
    """

    account_number: str
    account_type: str
    balances: SchwabAccountBalances
    positions: List[SchwabPosition] = field(default_factory=list)
    is_closing_only: bool = False
    is_day_trader: bool = False

    def get_positions(self, asset_type: str) -> List[SchwabPosition]:
        """Positions of one asset type (e.g., "OPTION")."""
        return [p for p in self.positions if p.asset_type == asset_type]

    def get_position(self, symbol: str) -> Optional[SchwabPosition]:
        """
        Get position by symbol.

        Args:
            symbol: Equity ticker or option symbol

        Returns:
            Position if found, None otherwise
        """
        for position in self.positions:
            if position.symbol == symbol:
                return position
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_number": self.account_number,
            "account_type": self.account_type,
            "is_closing_only": self.is_closing_only,
            "is_day_trader": self.is_day_trader,
            "balances": self.balances.to_dict(),
            "positions": [p.to_dict() for p in self.positions],
        }

    def __repr__(self) -> str:
        return (
            f"SchwabAccount({self.account_type} ***{self.account_number[-4:]}: "
            f"{len(self.positions)} positions, ${self.balances.liquidation_value:,.2f})"
        )

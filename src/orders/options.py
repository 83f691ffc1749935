"""
Option symbols and option order templates.

Schwab identifies option contracts with a fixed-width 21-character symbol:

    +--------+--------+---+----------+
    | AAPL   | 240315 | C | 00150000 |
    +--------+--------+---+----------+
     6 chars   YYMMDD  C/P  strike x 1000, 8 digits

The underlying is left-justified and padded with spaces, the strike is
the price in thousandths of a dollar, zero-padded on the left.

Templates return OrderBuilder objects with SINGLE strategy, NORMAL
session and DAY duration so they can be customized before building.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Union

from src.exceptions import SchwabValidationError

from .common import (
    ComplexOrderStrategyType,
    Duration,
    OptionInstruction,
    OrderStrategyType,
    OrderType,
    Session,
)
from .exceptions import (
    InvalidContractTypeError,
    InvalidStrikePriceError,
    InvalidUnderlyingError,
    MalformedOptionSymbolError,
)
from .generic import OrderBuilder

logger = logging.getLogger(__name__)

SYMBOL_LENGTH = 21
UNDERLYING_WIDTH = 6
STRIKE_DIGITS = 8
STRIKE_SCALE = Decimal(1000)
MAX_STRIKE = Decimal(10) ** (STRIKE_DIGITS - 3)  # 5 integer digits

_SYMBOL_PATTERN = re.compile(r"^(.{6})(\d{6})([CP])(\d{8})$")


class ContractType(Enum):
    """Option right."""

    CALL = "C"
    PUT = "P"


_CONTRACT_TYPE_ALIASES = {
    "C": ContractType.CALL,
    "CALL": ContractType.CALL,
    "P": ContractType.PUT,
    "PUT": ContractType.PUT,
}


def _normalize_contract_type(contract_type: Union[ContractType, str]) -> ContractType:
    if isinstance(contract_type, ContractType):
        return contract_type
    if isinstance(contract_type, str):
        normalized = _CONTRACT_TYPE_ALIASES.get(contract_type.strip().upper())
        if normalized is not None:
            return normalized
    raise InvalidContractTypeError(
        f"Contract type must be one of C, CALL, P, PUT; got {contract_type!r}"
    )


def _normalize_strike(strike: Union[Decimal, int, float, str]) -> Decimal:
    if isinstance(strike, bool):
        raise InvalidStrikePriceError(f"Strike price must be numeric, got {strike!r}")
    try:
        # str() keeps floats such as 62.5 exact instead of their binary expansion
        value = Decimal(str(strike).strip())
    except (InvalidOperation, ValueError):
        raise InvalidStrikePriceError(
            f"Strike price must be numeric, got {strike!r}"
        ) from None

    if not value.is_finite() or value <= 0:
        raise InvalidStrikePriceError(f"Strike price must be positive, got {strike!r}")

    scaled = value * STRIKE_SCALE
    if scaled != scaled.to_integral_value():
        raise InvalidStrikePriceError(
            f"Strike price supports at most three decimal places, got {strike!r}"
        )
    if value >= MAX_STRIKE:
        raise InvalidStrikePriceError(
            f"Strike price must be below {MAX_STRIKE}, got {strike!r}"
        )

    return value


def _normalize_expiration(expiration_date: Union[date, datetime, str]) -> date:
    if isinstance(expiration_date, datetime):
        return expiration_date.date()
    if isinstance(expiration_date, date):
        return expiration_date
    if isinstance(expiration_date, str):
        for fmt in ("%Y-%m-%d", "%y%m%d"):
            try:
                return datetime.strptime(expiration_date, fmt).date()
            except ValueError:
                continue
    raise SchwabValidationError(
        f"Expiration date must be a date or YYYY-MM-DD string, got {expiration_date!r}"
    )


@dataclass(frozen=True)
class OptionSymbol:
    """
    A single option contract identifier.

    Fields are normalized on construction: the underlying is upper-cased,
    the contract type accepts C/CALL/P/PUT, the strike accepts decimals,
    ints, floats or numeric strings with at most three decimal places.

    Attributes:
        underlying: Underlying ticker, 1 to 6 characters
        expiration_date: Expiration date
        contract_type: CALL or PUT
        strike: Strike price (positive, thousandths precision)

    Example:
        >>> OptionSymbol("AAPL", date(2024, 3, 15), "C", "150").build()
        'AAPL  240315C00150000'
    """

    underlying: str
    expiration_date: date
    contract_type: ContractType
    strike: Decimal

    def __post_init__(self) -> None:
        """Validate and normalize fields after initialization."""
        underlying = str(self.underlying).strip().upper() if self.underlying else ""
        if not underlying:
            raise InvalidUnderlyingError("Underlying symbol cannot be empty")
        if len(underlying) > UNDERLYING_WIDTH:
            raise InvalidUnderlyingError(
                f"Underlying symbol must be at most {UNDERLYING_WIDTH} characters, "
                f"got {underlying!r}"
            )

        # Frozen dataclass: assign normalized values through object.__setattr__
        object.__setattr__(self, "underlying", underlying)
        object.__setattr__(
            self, "expiration_date", _normalize_expiration(self.expiration_date)
        )
        object.__setattr__(
            self, "contract_type", _normalize_contract_type(self.contract_type)
        )
        object.__setattr__(self, "strike", _normalize_strike(self.strike))

    def build(self) -> str:
        """
        Render the 21-character option symbol.

        Returns:
            Symbol string (e.g., "XYZ   210115C00062500")
        """
        strike_digits = int(self.strike * STRIKE_SCALE)
        return (
            f"{self.underlying:<{UNDERLYING_WIDTH}}"
            f"{self.expiration_date:%y%m%d}"
            f"{self.contract_type.value}"
            f"{strike_digits:0{STRIKE_DIGITS}d}"
        )

    def __str__(self) -> str:
        return self.build()

    @classmethod
    def parse(cls, symbol: str) -> "OptionSymbol":
        """
        Parse a 21-character option symbol.

        Args:
            symbol: Symbol string as returned by the API or build()

        Returns:
            OptionSymbol with the decoded fields

        Raises:
            MalformedOptionSymbolError: If the symbol is not exactly 21
                characters, the right code is not C or P, or the date or
                strike fields are not valid numbers
        """
        if not isinstance(symbol, str) or len(symbol) != SYMBOL_LENGTH:
            raise MalformedOptionSymbolError(
                f"Option symbol must be exactly {SYMBOL_LENGTH} characters, got {symbol!r}"
            )

        match = _SYMBOL_PATTERN.match(symbol)
        if not match:
            raise MalformedOptionSymbolError(f"Malformed option symbol: {symbol!r}")

        underlying, expiration, right, strike_digits = match.groups()

        try:
            expiration_date = datetime.strptime(expiration, "%y%m%d").date()
        except ValueError:
            raise MalformedOptionSymbolError(
                f"Invalid expiration date '{expiration}' in option symbol {symbol!r}"
            ) from None

        strike = Decimal(int(strike_digits)) / STRIKE_SCALE
        try:
            return cls(underlying.rstrip(), expiration_date, right, strike)
        except (InvalidUnderlyingError, InvalidStrikePriceError) as e:
            raise MalformedOptionSymbolError(f"Malformed option symbol {symbol!r}: {e}") from e


def encode_option_symbol(
    underlying: str,
    expiration_date: Union[date, datetime, str],
    contract_type: Union[ContractType, str],
    strike: Union[Decimal, int, float, str],
) -> str:
    """
    Build a 21-character option symbol from its fields.

    Raises:
        InvalidContractTypeError: If contract_type is not C/CALL/P/PUT
        InvalidStrikePriceError: If strike is non-positive, non-numeric or
                                 has more than three decimal places
        InvalidUnderlyingError: If underlying is empty or too long
    """
    return OptionSymbol(underlying, expiration_date, contract_type, strike).build()


def decode_option_symbol(symbol: str) -> OptionSymbol:
    """Parse a 21-character option symbol. See OptionSymbol.parse."""
    return OptionSymbol.parse(symbol)


# Single option templates


def _single_option(
    instruction: OptionInstruction, symbol: str, quantity: int
) -> OrderBuilder:
    return (
        OrderBuilder()
        .set_session(Session.NORMAL)
        .set_duration(Duration.DAY)
        .set_order_strategy_type(OrderStrategyType.SINGLE)
        .add_option_leg(instruction, symbol, quantity)
    )


def option_buy_to_open_market(symbol: str, quantity: int) -> OrderBuilder:
    """Buy to open an option at market."""
    return _single_option(OptionInstruction.BUY_TO_OPEN, symbol, quantity).set_order_type(
        OrderType.MARKET
    )


def option_buy_to_open_limit(symbol: str, quantity: int, price) -> OrderBuilder:
    """Buy to open an option at a limit price."""
    return (
        _single_option(OptionInstruction.BUY_TO_OPEN, symbol, quantity)
        .set_order_type(OrderType.LIMIT)
        .set_price(price)
    )


def option_sell_to_open_market(symbol: str, quantity: int) -> OrderBuilder:
    """Sell to open an option at market."""
    return _single_option(OptionInstruction.SELL_TO_OPEN, symbol, quantity).set_order_type(
        OrderType.MARKET
    )


def option_sell_to_open_limit(symbol: str, quantity: int, price) -> OrderBuilder:
    """Sell to open an option at a limit price."""
    return (
        _single_option(OptionInstruction.SELL_TO_OPEN, symbol, quantity)
        .set_order_type(OrderType.LIMIT)
        .set_price(price)
    )


def option_buy_to_close_market(symbol: str, quantity: int) -> OrderBuilder:
    """Buy to close an option at market."""
    return _single_option(OptionInstruction.BUY_TO_CLOSE, symbol, quantity).set_order_type(
        OrderType.MARKET
    )


def option_buy_to_close_limit(symbol: str, quantity: int, price) -> OrderBuilder:
    """Buy to close an option at a limit price."""
    return (
        _single_option(OptionInstruction.BUY_TO_CLOSE, symbol, quantity)
        .set_order_type(OrderType.LIMIT)
        .set_price(price)
    )


def option_sell_to_close_market(symbol: str, quantity: int) -> OrderBuilder:
    """Sell to close an option at market."""
    return _single_option(OptionInstruction.SELL_TO_CLOSE, symbol, quantity).set_order_type(
        OrderType.MARKET
    )


def option_sell_to_close_limit(symbol: str, quantity: int, price) -> OrderBuilder:
    """Sell to close an option at a limit price."""
    return (
        _single_option(OptionInstruction.SELL_TO_CLOSE, symbol, quantity)
        .set_order_type(OrderType.LIMIT)
        .set_price(price)
    )


# Vertical spreads


def _vertical(
    order_type: OrderType,
    first_instruction: OptionInstruction,
    first_symbol: str,
    second_instruction: OptionInstruction,
    second_symbol: str,
    quantity: int,
    price,
) -> OrderBuilder:
    return (
        OrderBuilder()
        .set_order_type(order_type)
        .set_session(Session.NORMAL)
        .set_duration(Duration.DAY)
        .set_order_strategy_type(OrderStrategyType.SINGLE)
        .set_complex_order_strategy_type(ComplexOrderStrategyType.VERTICAL)
        .set_quantity(quantity)
        .set_price(price)
        .add_option_leg(first_instruction, first_symbol, quantity)
        .add_option_leg(second_instruction, second_symbol, quantity)
    )


def bull_call_vertical_open(
    long_call_symbol: str, short_call_symbol: str, quantity: int, net_debit
) -> OrderBuilder:
    """
    Open a bull call vertical.

    Buys the lower-strike call and sells the higher-strike call for a
    net debit.
    """
    return _vertical(
        OrderType.NET_DEBIT,
        OptionInstruction.BUY_TO_OPEN,
        long_call_symbol,
        OptionInstruction.SELL_TO_OPEN,
        short_call_symbol,
        quantity,
        net_debit,
    )


def bull_call_vertical_close(
    long_call_symbol: str, short_call_symbol: str, quantity: int, net_credit
) -> OrderBuilder:
    """Close a bull call vertical for a net credit."""
    return _vertical(
        OrderType.NET_CREDIT,
        OptionInstruction.SELL_TO_CLOSE,
        long_call_symbol,
        OptionInstruction.BUY_TO_CLOSE,
        short_call_symbol,
        quantity,
        net_credit,
    )


def bear_call_vertical_open(
    short_call_symbol: str, long_call_symbol: str, quantity: int, net_credit
) -> OrderBuilder:
    """
    Open a bear call vertical.

    Sells the lower-strike call and buys the higher-strike call for a
    net credit.
    """
    return _vertical(
        OrderType.NET_CREDIT,
        OptionInstruction.SELL_TO_OPEN,
        short_call_symbol,
        OptionInstruction.BUY_TO_OPEN,
        long_call_symbol,
        quantity,
        net_credit,
    )


def bear_call_vertical_close(
    short_call_symbol: str, long_call_symbol: str, quantity: int, net_debit
) -> OrderBuilder:
    """Close a bear call vertical for a net debit."""
    return _vertical(
        OrderType.NET_DEBIT,
        OptionInstruction.BUY_TO_CLOSE,
        short_call_symbol,
        OptionInstruction.SELL_TO_CLOSE,
        long_call_symbol,
        quantity,
        net_debit,
    )


def bull_put_vertical_open(
    long_put_symbol: str, short_put_symbol: str, quantity: int, net_credit
) -> OrderBuilder:
    """
    Open a bull put vertical.

    Buys the lower-strike put and sells the higher-strike put for a net
    credit.
    """
    return _vertical(
        OrderType.NET_CREDIT,
        OptionInstruction.BUY_TO_OPEN,
        long_put_symbol,
        OptionInstruction.SELL_TO_OPEN,
        short_put_symbol,
        quantity,
        net_credit,
    )


def bull_put_vertical_close(
    long_put_symbol: str, short_put_symbol: str, quantity: int, net_debit
) -> OrderBuilder:
    """Close a bull put vertical for a net debit."""
    return _vertical(
        OrderType.NET_DEBIT,
        OptionInstruction.SELL_TO_CLOSE,
        long_put_symbol,
        OptionInstruction.BUY_TO_CLOSE,
        short_put_symbol,
        quantity,
        net_debit,
    )


def bear_put_vertical_open(
    short_put_symbol: str, long_put_symbol: str, quantity: int, net_debit
) -> OrderBuilder:
    """
    Open a bear put vertical.

    Sells the lower-strike put and buys the higher-strike put for a net
    debit.
    """
    return _vertical(
        OrderType.NET_DEBIT,
        OptionInstruction.SELL_TO_OPEN,
        short_put_symbol,
        OptionInstruction.BUY_TO_OPEN,
        long_put_symbol,
        quantity,
        net_debit,
    )


def bear_put_vertical_close(
    short_put_symbol: str, long_put_symbol: str, quantity: int, net_credit
) -> OrderBuilder:
    """Close a bear put vertical for a net credit."""
    return _vertical(
        OrderType.NET_CREDIT,
        OptionInstruction.BUY_TO_CLOSE,
        short_put_symbol,
        OptionInstruction.SELL_TO_CLOSE,
        long_put_symbol,
        quantity,
        net_credit,
    )

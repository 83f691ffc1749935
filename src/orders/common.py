"""
Enumerations shared by order builders and templates.

Values match the strings accepted by the Schwab Trader API order
endpoints. Builders accept either the enum member or its string value.
"""

from decimal import ROUND_DOWN, Decimal, InvalidOperation
from enum import Enum
from typing import Type, TypeVar, Union

from src.exceptions import SchwabValidationError

from .exceptions import InvalidPriceError

E = TypeVar("E", bound=Enum)


class OrderType(Enum):
    """Order pricing type."""

    MARKET = "MARKET"
    LIMIT = "LIMIT"
    STOP = "STOP"
    STOP_LIMIT = "STOP_LIMIT"
    TRAILING_STOP = "TRAILING_STOP"
    CABINET = "CABINET"
    NON_MARKETABLE = "NON_MARKETABLE"
    MARKET_ON_CLOSE = "MARKET_ON_CLOSE"
    EXERCISE = "EXERCISE"
    TRAILING_STOP_LIMIT = "TRAILING_STOP_LIMIT"
    NET_DEBIT = "NET_DEBIT"
    NET_CREDIT = "NET_CREDIT"
    NET_ZERO = "NET_ZERO"
    LIMIT_ON_CLOSE = "LIMIT_ON_CLOSE"


class Session(Enum):
    """Trading session the order is valid in."""

    NORMAL = "NORMAL"  # Regular hours
    AM = "AM"  # Pre-market
    PM = "PM"  # After hours
    SEAMLESS = "SEAMLESS"  # All of the above


class Duration(Enum):
    """How long the order stays working."""

    DAY = "DAY"
    GOOD_TILL_CANCEL = "GOOD_TILL_CANCEL"
    FILL_OR_KILL = "FILL_OR_KILL"
    IMMEDIATE_OR_CANCEL = "IMMEDIATE_OR_CANCEL"
    END_OF_WEEK = "END_OF_WEEK"
    END_OF_MONTH = "END_OF_MONTH"
    NEXT_END_OF_MONTH = "NEXT_END_OF_MONTH"
    UNKNOWN = "UNKNOWN"


class OrderStrategyType(Enum):
    """
    Top-level order strategy.

    OCO and TRIGGER orders carry child order strategies; every other
    strategy type is a plain order with legs.
    """

    SINGLE = "SINGLE"
    CANCEL = "CANCEL"
    RECALL = "RECALL"
    PAIR = "PAIR"
    FLATTEN = "FLATTEN"
    TWO_DAY_SWAP = "TWO_DAY_SWAP"
    BLAST_ALL = "BLAST_ALL"
    OCO = "OCO"
    TRIGGER = "TRIGGER"


# Strategies whose payload is defined by childOrderStrategies
COMPOSITE_STRATEGIES = frozenset({OrderStrategyType.OCO, OrderStrategyType.TRIGGER})


class ComplexOrderStrategyType(Enum):
    """Multi-leg option strategy explicitly declared to the broker."""

    NONE = "NONE"
    COVERED = "COVERED"
    VERTICAL = "VERTICAL"
    BACK_RATIO = "BACK_RATIO"
    CALENDAR = "CALENDAR"
    DIAGONAL = "DIAGONAL"
    STRADDLE = "STRADDLE"
    STRANGLE = "STRANGLE"
    COLLAR_SYNTHETIC = "COLLAR_SYNTHETIC"
    BUTTERFLY = "BUTTERFLY"
    CONDOR = "CONDOR"
    IRON_CONDOR = "IRON_CONDOR"
    VERTICAL_ROLL = "VERTICAL_ROLL"
    COLLAR_WITH_STOCK = "COLLAR_WITH_STOCK"
    DOUBLE_DIAGONAL = "DOUBLE_DIAGONAL"
    UNBALANCED_BUTTERFLY = "UNBALANCED_BUTTERFLY"
    UNBALANCED_CONDOR = "UNBALANCED_CONDOR"
    UNBALANCED_IRON_CONDOR = "UNBALANCED_IRON_CONDOR"
    UNBALANCED_VERTICAL_ROLL = "UNBALANCED_VERTICAL_ROLL"
    MUTUAL_FUND_SWAP = "MUTUAL_FUND_SWAP"
    CUSTOM = "CUSTOM"


class AssetType(Enum):
    """Asset class of an order leg."""

    EQUITY = "EQUITY"
    OPTION = "OPTION"


class EquityInstruction(Enum):
    """Instructions valid for equity legs."""

    BUY = "BUY"
    SELL = "SELL"
    SELL_SHORT = "SELL_SHORT"
    BUY_TO_COVER = "BUY_TO_COVER"


class OptionInstruction(Enum):
    """Instructions valid for option legs."""

    BUY_TO_OPEN = "BUY_TO_OPEN"
    SELL_TO_CLOSE = "SELL_TO_CLOSE"
    SELL_TO_OPEN = "SELL_TO_OPEN"
    BUY_TO_CLOSE = "BUY_TO_CLOSE"


class StopPriceLinkBasis(Enum):
    """Reference price a trailing stop is measured from."""

    MANUAL = "MANUAL"
    BASE = "BASE"
    TRIGGER = "TRIGGER"
    LAST = "LAST"
    BID = "BID"
    ASK = "ASK"
    ASK_BID = "ASK_BID"
    MARK = "MARK"
    AVERAGE = "AVERAGE"


class StopPriceLinkType(Enum):
    """Unit of a trailing stop offset."""

    VALUE = "VALUE"
    PERCENT = "PERCENT"
    TICK = "TICK"


class StopType(Enum):
    """Price used to trigger a stop."""

    STANDARD = "STANDARD"
    BID = "BID"
    ASK = "ASK"
    LAST = "LAST"
    MARK = "MARK"


class PriceLinkBasis(Enum):
    """Reference price a linked limit price is measured from."""

    MANUAL = "MANUAL"
    BASE = "BASE"
    TRIGGER = "TRIGGER"
    LAST = "LAST"
    BID = "BID"
    ASK = "ASK"
    ASK_BID = "ASK_BID"
    MARK = "MARK"
    AVERAGE = "AVERAGE"


class PriceLinkType(Enum):
    """Unit of a linked limit price offset."""

    VALUE = "VALUE"
    PERCENT = "PERCENT"
    TICK = "TICK"


class SpecialInstruction(Enum):
    """Execution constraints on the order."""

    ALL_OR_NONE = "ALL_OR_NONE"
    DO_NOT_REDUCE = "DO_NOT_REDUCE"
    ALL_OR_NONE_DO_NOT_REDUCE = "ALL_OR_NONE_DO_NOT_REDUCE"


class Destination(Enum):
    """Requested routing destination."""

    INET = "INET"
    ECN_ARCA = "ECN_ARCA"
    CBOE = "CBOE"
    AMEX = "AMEX"
    PHLX = "PHLX"
    ISE = "ISE"
    BOX = "BOX"
    NYSE = "NYSE"
    NASDAQ = "NASDAQ"
    BATS = "BATS"
    C2 = "C2"
    AUTO = "AUTO"


def coerce_enum(enum_type: Type[E], value: Union[E, str], field_name: str) -> E:
    """
    Convert a string or enum member into a member of enum_type.

    Args:
        enum_type: Target enum class
        value: Enum member or its string value (case-insensitive)
        field_name: Field being set, used in the error message

    Returns:
        Member of enum_type

    Raises:
        SchwabValidationError: If the value is not a member of enum_type
    """
    if isinstance(value, enum_type):
        return value

    if isinstance(value, Enum):
        raise SchwabValidationError(
            f"{field_name} must be a {enum_type.__name__}, got {type(value).__name__}.{value.name}"
        )

    try:
        return enum_type(str(value).upper())
    except ValueError:
        valid = ", ".join(member.value for member in enum_type)
        raise SchwabValidationError(
            f"Invalid {field_name} '{value}'. Expected one of: {valid}"
        ) from None


def truncate_price(price) -> str:
    """
    Format a price the way the order endpoints expect it.

    Prices of at least one dollar keep two decimals, prices below one
    dollar keep four. Extra digits are truncated, not rounded.

    Args:
        price: int, float, Decimal or numeric string

    Returns:
        Price as a decimal string (e.g., "150.25", "0.0525")

    Raises:
        InvalidPriceError: If price is not numeric or is negative
    """
    try:
        value = Decimal(str(price))
    except (InvalidOperation, ValueError):
        raise InvalidPriceError(f"Price must be numeric, got {price!r}") from None

    if not value.is_finite():
        raise InvalidPriceError(f"Price must be finite, got {price!r}")
    if value < 0:
        raise InvalidPriceError(f"Price cannot be negative, got {price!r}")

    places = Decimal("0.01") if value >= 1 else Decimal("0.0001")
    return str(value.quantize(places, rounding=ROUND_DOWN))

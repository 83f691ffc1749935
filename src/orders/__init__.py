"""
Order construction for the Schwab Trader API.

This module builds the JSON payloads accepted by the order endpoints:

- OrderBuilder: Fluent builder for any order, producing a dict via build()
- Equity and option templates: Pre-filled builders for common orders
- Strategy combinators: OCO, TRIGGER and bracket (TRIGGER -> OCO) trees
- OptionSymbol: Codec for the 21-character option symbol format

Example:
    from src.orders import equity_buy_limit, equity_sell_limit, equity_sell_stop
    from src.orders import one_triggers_oco

    order = one_triggers_oco(
        equity_buy_limit("AAPL", 10, 150.00),
        equity_sell_limit("AAPL", 10, 165.00),
        equity_sell_stop("AAPL", 10, 140.00),
    ).build()
"""

from .common import (
    AssetType,
    ComplexOrderStrategyType,
    Destination,
    Duration,
    EquityInstruction,
    OptionInstruction,
    OrderStrategyType,
    OrderType,
    PriceLinkBasis,
    PriceLinkType,
    Session,
    SpecialInstruction,
    StopPriceLinkBasis,
    StopPriceLinkType,
    StopType,
)
from .equities import (
    equity_buy_limit,
    equity_buy_market,
    equity_buy_stop,
    equity_buy_stop_limit,
    equity_buy_to_cover_limit,
    equity_buy_to_cover_market,
    equity_sell_limit,
    equity_sell_market,
    equity_sell_short_limit,
    equity_sell_short_market,
    equity_sell_stop,
    equity_sell_stop_limit,
    equity_sell_trailing_stop,
)
from .exceptions import (
    IncompleteOrderError,
    InvalidContractTypeError,
    InvalidPriceError,
    InvalidQuantityError,
    InvalidStrikePriceError,
    InvalidUnderlyingError,
    MalformedOptionSymbolError,
    MissingOrderStrategyTypeError,
    UnknownLegTypeError,
    UnsupportedChildStrategyError,
)
from .generic import OrderBuilder, OrderLeg
from .options import (
    ContractType,
    OptionSymbol,
    bear_call_vertical_close,
    bear_call_vertical_open,
    bear_put_vertical_close,
    bear_put_vertical_open,
    bull_call_vertical_close,
    bull_call_vertical_open,
    bull_put_vertical_close,
    bull_put_vertical_open,
    decode_option_symbol,
    encode_option_symbol,
    option_buy_to_close_limit,
    option_buy_to_close_market,
    option_buy_to_open_limit,
    option_buy_to_open_market,
    option_sell_to_close_limit,
    option_sell_to_close_market,
    option_sell_to_open_limit,
    option_sell_to_open_market,
)
from .strategies import first_triggers_second, one_cancels_other, one_triggers_oco

__all__ = [
    # Builder
    "OrderBuilder",
    "OrderLeg",
    # Enums
    "AssetType",
    "ComplexOrderStrategyType",
    "Destination",
    "Duration",
    "EquityInstruction",
    "OptionInstruction",
    "OrderStrategyType",
    "OrderType",
    "PriceLinkBasis",
    "PriceLinkType",
    "Session",
    "SpecialInstruction",
    "StopPriceLinkBasis",
    "StopPriceLinkType",
    "StopType",
    # Option symbols
    "ContractType",
    "OptionSymbol",
    "encode_option_symbol",
    "decode_option_symbol",
    # Equity templates
    "equity_buy_market",
    "equity_buy_limit",
    "equity_sell_market",
    "equity_sell_limit",
    "equity_sell_short_market",
    "equity_sell_short_limit",
    "equity_buy_to_cover_market",
    "equity_buy_to_cover_limit",
    "equity_buy_stop",
    "equity_sell_stop",
    "equity_buy_stop_limit",
    "equity_sell_stop_limit",
    "equity_sell_trailing_stop",
    # Option templates
    "option_buy_to_open_market",
    "option_buy_to_open_limit",
    "option_sell_to_open_market",
    "option_sell_to_open_limit",
    "option_buy_to_close_market",
    "option_buy_to_close_limit",
    "option_sell_to_close_market",
    "option_sell_to_close_limit",
    "bull_call_vertical_open",
    "bull_call_vertical_close",
    "bear_call_vertical_open",
    "bear_call_vertical_close",
    "bull_put_vertical_open",
    "bull_put_vertical_close",
    "bear_put_vertical_open",
    "bear_put_vertical_close",
    # Strategies
    "one_cancels_other",
    "first_triggers_second",
    "one_triggers_oco",
    # Exceptions
    "IncompleteOrderError",
    "InvalidContractTypeError",
    "InvalidPriceError",
    "InvalidQuantityError",
    "InvalidStrikePriceError",
    "InvalidUnderlyingError",
    "MalformedOptionSymbolError",
    "MissingOrderStrategyTypeError",
    "UnknownLegTypeError",
    "UnsupportedChildStrategyError",
]

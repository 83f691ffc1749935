"""
Equity order templates.

Each template returns an OrderBuilder preset with SINGLE strategy,
NORMAL session and DAY duration. Callers can override any field
before calling build().
"""

from .common import (
    Duration,
    EquityInstruction,
    OrderStrategyType,
    OrderType,
    Session,
    StopPriceLinkBasis,
    StopPriceLinkType,
)
from .generic import OrderBuilder


def _equity_base(instruction: EquityInstruction, symbol: str, quantity: int) -> OrderBuilder:
    return (
        OrderBuilder()
        .set_session(Session.NORMAL)
        .set_duration(Duration.DAY)
        .set_order_strategy_type(OrderStrategyType.SINGLE)
        .add_equity_leg(instruction, symbol, quantity)
    )


def _market(instruction: EquityInstruction, symbol: str, quantity: int) -> OrderBuilder:
    return _equity_base(instruction, symbol, quantity).set_order_type(OrderType.MARKET)


def _limit(instruction: EquityInstruction, symbol: str, quantity: int, price) -> OrderBuilder:
    return (
        _equity_base(instruction, symbol, quantity)
        .set_order_type(OrderType.LIMIT)
        .set_price(price)
    )


def equity_buy_market(symbol: str, quantity: int) -> OrderBuilder:
    """Buy shares at market."""
    return _market(EquityInstruction.BUY, symbol, quantity)


def equity_buy_limit(symbol: str, quantity: int, price) -> OrderBuilder:
    """Buy shares at a limit price."""
    return _limit(EquityInstruction.BUY, symbol, quantity, price)


def equity_sell_market(symbol: str, quantity: int) -> OrderBuilder:
    """Sell shares at market."""
    return _market(EquityInstruction.SELL, symbol, quantity)


def equity_sell_limit(symbol: str, quantity: int, price) -> OrderBuilder:
    """Sell shares at a limit price."""
    return _limit(EquityInstruction.SELL, symbol, quantity, price)


def equity_sell_short_market(symbol: str, quantity: int) -> OrderBuilder:
    """Sell shares short at market."""
    return _market(EquityInstruction.SELL_SHORT, symbol, quantity)


def equity_sell_short_limit(symbol: str, quantity: int, price) -> OrderBuilder:
    """Sell shares short at a limit price."""
    return _limit(EquityInstruction.SELL_SHORT, symbol, quantity, price)


def equity_buy_to_cover_market(symbol: str, quantity: int) -> OrderBuilder:
    """Buy to cover a short position at market."""
    return _market(EquityInstruction.BUY_TO_COVER, symbol, quantity)


def equity_buy_to_cover_limit(symbol: str, quantity: int, price) -> OrderBuilder:
    """Buy to cover a short position at a limit price."""
    return _limit(EquityInstruction.BUY_TO_COVER, symbol, quantity, price)


def equity_buy_stop(symbol: str, quantity: int, stop_price) -> OrderBuilder:
    """Buy at market once the stop price trades."""
    return (
        _equity_base(EquityInstruction.BUY, symbol, quantity)
        .set_order_type(OrderType.STOP)
        .set_stop_price(stop_price)
    )


def equity_sell_stop(symbol: str, quantity: int, stop_price) -> OrderBuilder:
    """Sell at market once the stop price trades."""
    return (
        _equity_base(EquityInstruction.SELL, symbol, quantity)
        .set_order_type(OrderType.STOP)
        .set_stop_price(stop_price)
    )


def equity_buy_stop_limit(symbol: str, quantity: int, stop_price, limit_price) -> OrderBuilder:
    """Place a buy limit order once the stop price trades."""
    return (
        _equity_base(EquityInstruction.BUY, symbol, quantity)
        .set_order_type(OrderType.STOP_LIMIT)
        .set_stop_price(stop_price)
        .set_price(limit_price)
    )


def equity_sell_stop_limit(symbol: str, quantity: int, stop_price, limit_price) -> OrderBuilder:
    """Place a sell limit order once the stop price trades."""
    return (
        _equity_base(EquityInstruction.SELL, symbol, quantity)
        .set_order_type(OrderType.STOP_LIMIT)
        .set_stop_price(stop_price)
        .set_price(limit_price)
    )


def equity_sell_trailing_stop(
    symbol: str, quantity: int, offset: float, percent: bool = False
) -> OrderBuilder:
    """
    Sell with a stop that trails the bid.

    Args:
        symbol: Ticker to sell
        quantity: Number of shares
        offset: Distance of the stop below the bid
        percent: Interpret offset as a percentage instead of dollars

    Returns:
        OrderBuilder with TRAILING_STOP order type
    """
    link_type = StopPriceLinkType.PERCENT if percent else StopPriceLinkType.VALUE
    return (
        _equity_base(EquityInstruction.SELL, symbol, quantity)
        .set_order_type(OrderType.TRAILING_STOP)
        .set_stop_price_link_basis(StopPriceLinkBasis.BID)
        .set_stop_price_link_type(link_type)
        .set_stop_price_offset(offset)
    )

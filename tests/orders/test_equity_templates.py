"""Tests for equity order templates."""

import pytest

from src.orders.equities import (
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
from src.orders.generic import OrderBuilder


def equity_leg(instruction: str, symbol: str, quantity: int) -> dict:
    return {
        "legId": 1,
        "orderLegType": "EQUITY",
        "instruction": instruction,
        "quantity": quantity,
        "instrument": {"symbol": symbol, "assetType": "EQUITY"},
    }


class TestMarketTemplates:
    """Tests for market order templates."""

    @pytest.mark.parametrize(
        "template,instruction",
        [
            (equity_buy_market, "BUY"),
            (equity_sell_market, "SELL"),
            (equity_sell_short_market, "SELL_SHORT"),
            (equity_buy_to_cover_market, "BUY_TO_COVER"),
        ],
    )
    def test_market_order(self, template, instruction) -> None:
        """Market templates have no price and a single leg."""
        assert template("GOOG", 10).build() == {
            "orderType": "MARKET",
            "session": "NORMAL",
            "duration": "DAY",
            "orderStrategyType": "SINGLE",
            "orderLegCollection": [equity_leg(instruction, "GOOG", 10)],
        }


class TestLimitTemplates:
    """Tests for limit order templates."""

    @pytest.mark.parametrize(
        "template,instruction",
        [
            (equity_buy_limit, "BUY"),
            (equity_sell_limit, "SELL"),
            (equity_sell_short_limit, "SELL_SHORT"),
            (equity_buy_to_cover_limit, "BUY_TO_COVER"),
        ],
    )
    def test_limit_order(self, template, instruction) -> None:
        """Limit templates carry a truncated price."""
        payload = template("GOOG", 10, 1234.5678).build()

        assert payload["orderType"] == "LIMIT"
        assert payload["price"] == "1234.56"
        assert payload["orderLegCollection"] == [equity_leg(instruction, "GOOG", 10)]

    def test_templates_can_be_customized(self) -> None:
        """Templates return builders that can be changed before building."""
        builder = equity_buy_limit("GOOG", 10, 100).set_duration("GOOD_TILL_CANCEL")

        assert isinstance(builder, OrderBuilder)
        assert builder.build()["duration"] == "GOOD_TILL_CANCEL"


class TestStopTemplates:
    """Tests for stop and trailing stop templates."""

    def test_buy_stop(self) -> None:
        payload = equity_buy_stop("AAPL", 5, 180).build()

        assert payload["orderType"] == "STOP"
        assert payload["stopPrice"] == "180.00"
        assert "price" not in payload

    def test_sell_stop(self) -> None:
        payload = equity_sell_stop("AAPL", 5, 0.55555).build()

        assert payload["stopPrice"] == "0.5555"
        assert payload["orderLegCollection"][0]["instruction"] == "SELL"

    def test_stop_limits(self) -> None:
        """Stop limit templates set both prices."""
        buy = equity_buy_stop_limit("AAPL", 5, 180, 181.5).build()
        sell = equity_sell_stop_limit("AAPL", 5, 170, 169.5).build()

        assert (buy["orderType"], buy["stopPrice"], buy["price"]) == ("STOP_LIMIT", "180.00", "181.50")
        assert (sell["stopPrice"], sell["price"]) == ("170.00", "169.50")
        assert sell["orderLegCollection"][0]["instruction"] == "SELL"

    def test_trailing_stop_by_value(self) -> None:
        """Trailing stops trail the bid by a dollar amount."""
        payload = equity_sell_trailing_stop("AAPL", 5, 2.5).build()

        assert payload["orderType"] == "TRAILING_STOP"
        assert payload["stopPriceLinkBasis"] == "BID"
        assert payload["stopPriceLinkType"] == "VALUE"
        assert payload["stopPriceOffset"] == 2.5

    def test_trailing_stop_by_percent(self) -> None:
        payload = equity_sell_trailing_stop("AAPL", 5, 3, percent=True).build()

        assert payload["stopPriceLinkType"] == "PERCENT"
        assert payload["stopPriceLinkBasis"] == "BID"
        assert payload["stopPriceOffset"] == 3

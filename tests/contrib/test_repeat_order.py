"""Tests for repeat-order reconstruction and code generation."""

import pytest

from src.contrib.orders import code_for_builder, construct_repeat_order
from src.exceptions import MalformedInputError, UnsupportedOperationError
from src.orders.equities import equity_buy_limit, equity_sell_limit, equity_sell_stop
from src.orders.exceptions import (
    MissingOrderStrategyTypeError,
    UnknownLegTypeError,
    UnsupportedChildStrategyError,
)
from src.orders.generic import OrderBuilder
from src.orders.options import bull_call_vertical_open
from src.orders.strategies import one_cancels_other


def historical_equity_order() -> dict:
    """Order as returned by get_order, including status fields."""
    return {
        "session": "NORMAL",
        "duration": "DAY",
        "orderType": "LIMIT",
        "complexOrderStrategyType": "NONE",
        "quantity": 10.0,
        "filledQuantity": 10.0,
        "remainingQuantity": 0.0,
        "requestedDestination": "AUTO",
        "destinationLinkName": "NITE",
        "price": 150.1,
        "orderLegCollection": [
            {
                "orderLegType": "EQUITY",
                "legId": 1,
                "instrument": {"assetType": "EQUITY", "cusip": "037833100", "symbol": "AAPL"},
                "instruction": "BUY",
                "positionEffect": "OPENING",
                "quantity": 10.0,
            }
        ],
        "orderStrategyType": "SINGLE",
        "orderId": 1000000001,
        "cancelable": False,
        "editable": False,
        "status": "FILLED",
        "enteredTime": "2024-03-01T15:00:00+0000",
        "closeTime": "2024-03-01T15:00:01+0000",
        "accountNumber": 12345678,
    }


class TestConstructRepeatOrder:
    """Tests for construct_repeat_order."""

    def test_equity_order(self) -> None:
        """Order fields and legs are copied, status fields are dropped."""
        payload = construct_repeat_order(historical_equity_order()).build()

        assert payload == {
            "orderType": "LIMIT",
            "session": "NORMAL",
            "duration": "DAY",
            "orderStrategyType": "SINGLE",
            "complexOrderStrategyType": "NONE",
            "quantity": 10,
            "price": "150.1",
            "orderLegCollection": [
                {
                    "legId": 1,
                    "orderLegType": "EQUITY",
                    "instruction": "BUY",
                    "quantity": 10,
                    "instrument": {"symbol": "AAPL", "assetType": "EQUITY"},
                }
            ],
        }

    def test_requested_destination_is_not_copied(self) -> None:
        payload = construct_repeat_order(historical_equity_order()).build()

        assert "requestedDestination" not in payload

    def test_option_order(self) -> None:
        """Option legs map to add_option_leg."""
        original = bull_call_vertical_open(
            "AAPL  240315C00150000", "AAPL  240315C00160000", 2, 3.5
        ).build()

        repeated = construct_repeat_order(original).build()

        assert repeated == original

    def test_stop_order(self) -> None:
        """Stop prices are copied."""
        original = equity_sell_stop("AAPL", 5, 0.4321).build()

        assert construct_repeat_order(original).build()["stopPrice"] == "0.4321"

    def test_activation_price_is_copied_verbatim(self) -> None:
        """Activation prices are not truncated when an order is repeated."""
        order = historical_equity_order()
        order.update(
            orderType="TRAILING_STOP",
            stopPriceLinkBasis="BID",
            stopPriceLinkType="VALUE",
            stopPriceOffset=2.5,
            activationPrice=101.2375,
        )
        del order["price"]

        repeated = construct_repeat_order(order)

        assert repeated.build()["activationPrice"] == "101.2375"
        assert "    .copy_activation_price('101.2375')\n" in code_for_builder(repeated)

    def test_missing_strategy_type_raises(self) -> None:
        order = historical_equity_order()
        del order["orderStrategyType"]

        with pytest.raises(MissingOrderStrategyTypeError):
            construct_repeat_order(order)

    def test_unknown_leg_type_raises(self) -> None:
        order = historical_equity_order()
        order["orderLegCollection"][0]["orderLegType"] = "MUTUAL_FUND"

        with pytest.raises(UnknownLegTypeError, match="MUTUAL_FUND"):
            construct_repeat_order(order)

    def test_child_strategies_are_unsupported(self) -> None:
        """Orders with child strategies are rejected, not silently flattened."""
        oco = one_cancels_other(
            equity_sell_limit("AAPL", 1, 200), equity_sell_stop("AAPL", 1, 150)
        ).build()

        with pytest.raises(UnsupportedChildStrategyError):
            construct_repeat_order(oco)

    def test_error_types(self) -> None:
        """Malformed records are input errors, child strategies are unsupported operations."""
        assert issubclass(MissingOrderStrategyTypeError, MalformedInputError)
        assert issubclass(UnknownLegTypeError, MalformedInputError)
        assert issubclass(UnsupportedChildStrategyError, UnsupportedOperationError)


class TestCodeForBuilder:
    """Tests for code_for_builder."""

    def test_equity_order_code(self) -> None:
        """Generated code lists imports, then one chained builder expression."""
        code = code_for_builder(equity_buy_limit("AAPL", 10, 150.25))

        assert code == (
            "from src.orders.common import Duration, EquityInstruction, "
            "OrderStrategyType, OrderType, Session\n"
            "from src.orders.generic import OrderBuilder\n"
            "\n"
            "builder = (\n"
            "    OrderBuilder()\n"
            "    .set_order_type(OrderType.LIMIT)\n"
            "    .set_session(Session.NORMAL)\n"
            "    .set_duration(Duration.DAY)\n"
            "    .set_order_strategy_type(OrderStrategyType.SINGLE)\n"
            "    .copy_price('150.25')\n"
            "    .add_equity_leg(EquityInstruction.BUY, 'AAPL', 10)\n"
            ")\n"
        )

    def test_custom_variable_name(self) -> None:
        code = code_for_builder(equity_buy_limit("AAPL", 10, 150), var_name="order")

        assert "\norder = (\n" in code

    def test_children_are_rendered_first(self) -> None:
        """Child strategies become separate variables attached to the parent."""
        oco = one_cancels_other(
            equity_sell_limit("AAPL", 1, 200), equity_sell_stop("AAPL", 1, 150)
        )

        code = code_for_builder(oco)

        assert code.index("builder_child_1 = (") < code.index("builder_child_2 = (")
        assert code.index("builder_child_2 = (") < code.index("\nbuilder = (")
        assert "    .add_child_order_strategy(builder_child_1)\n" in code
        assert "    .add_child_order_strategy(builder_child_2)\n" in code

    def test_generated_code_recreates_builder(self) -> None:
        """Executing the generated code yields a builder with the same payload."""
        original = bull_call_vertical_open(
            "AAPL  240315C00150000", "AAPL  240315C00160000", 2, 3.5
        )
        namespace: dict = {}

        exec(code_for_builder(original), namespace)

        assert isinstance(namespace["builder"], OrderBuilder)
        assert namespace["builder"].build() == original.build()

    def test_repeat_order_code_round_trip(self) -> None:
        """Code for a repeated historical order rebuilds the same payload."""
        repeated = construct_repeat_order(historical_equity_order())
        namespace: dict = {}

        exec(code_for_builder(repeated), namespace)

        assert namespace["builder"].build() == repeated.build()

"""
Generic order builder.

OrderBuilder accumulates the fields of a single order through chained
setters and produces the JSON payload accepted by the Schwab order
endpoints via build(). Child order strategies are held as builders and
serialized recursively, so an OCO or TRIGGER tree is only flattened to
JSON when build() is called.

Example:
    order = (
        OrderBuilder()
        .set_order_type(OrderType.LIMIT)
        .set_session(Session.NORMAL)
        .set_duration(Duration.DAY)
        .set_order_strategy_type(OrderStrategyType.SINGLE)
        .set_price("150.25")
        .add_equity_leg(EquityInstruction.BUY, "AAPL", 10)
        .build()
    )
"""

import copy
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from src.exceptions import SchwabValidationError

from .common import (
    COMPOSITE_STRATEGIES,
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
    coerce_enum,
    truncate_price,
)
from .exceptions import IncompleteOrderError, InvalidQuantityError, InvalidPriceError

logger = logging.getLogger(__name__)


def _validate_quantity(quantity: Any) -> int:
    """Return quantity as an int, raising InvalidQuantityError unless it is positive."""
    if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
        raise InvalidQuantityError(f"Quantity must be a number, got {quantity!r}")
    if quantity <= 0:
        raise InvalidQuantityError(f"Quantity must be positive, got {quantity}")
    if int(quantity) != quantity:
        raise InvalidQuantityError(f"Quantity must be a whole number, got {quantity}")
    return int(quantity)


@dataclass(frozen=True)
class OrderLeg:
    """
    A single leg of an order.

    Attributes:
        leg_id: Position of the leg in the order, starting at 1
        instruction: Equity or option instruction (must match asset_type)
        asset_type: Asset class of the instrument
        symbol: Ticker for equities, 21-character symbol for options
        quantity: Number of shares or contracts (positive)
    """

    leg_id: int
    instruction: Union[EquityInstruction, OptionInstruction]
    asset_type: AssetType
    symbol: str
    quantity: int

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the orderLegCollection entry format.

        Returns:
            Dictionary representation of the leg
        """
        if self.asset_type is AssetType.EQUITY:
            instrument = {"symbol": self.symbol, "assetType": AssetType.EQUITY.value}
        elif self.asset_type is AssetType.OPTION:
            instrument = {"symbol": self.symbol, "assetType": AssetType.OPTION.value}
        else:
            raise AssertionError(f"Unhandled asset type: {self.asset_type}")

        return {
            "legId": self.leg_id,
            "orderLegType": self.asset_type.value,
            "instruction": self.instruction.value,
            "quantity": self.quantity,
            "instrument": instrument,
        }


class OrderBuilder:
    """
    Fluent builder for Schwab order payloads.

    Every setter returns the builder itself. build() is the only way to
    obtain a payload and returns a new, independent dictionary on every
    call, so payloads never alias the builder's internal state.

    Leg IDs are assigned sequentially starting at 1 in the order legs are
    added. IDs are never reused, even after clear_order_legs().
    """

    def __init__(self) -> None:
        self._order_type: Optional[OrderType] = None
        self._session: Optional[Session] = None
        self._duration: Optional[Duration] = None
        self._order_strategy_type: Optional[OrderStrategyType] = None
        self._complex_order_strategy_type: Optional[ComplexOrderStrategyType] = None
        self._quantity: Optional[int] = None
        self._price: Optional[str] = None
        self._stop_price: Optional[str] = None
        self._stop_price_link_basis: Optional[StopPriceLinkBasis] = None
        self._stop_price_link_type: Optional[StopPriceLinkType] = None
        self._stop_price_offset: Optional[float] = None
        self._stop_type: Optional[StopType] = None
        self._price_link_basis: Optional[PriceLinkBasis] = None
        self._price_link_type: Optional[PriceLinkType] = None
        self._activation_price: Optional[str] = None
        self._special_instruction: Optional[SpecialInstruction] = None
        self._requested_destination: Optional[Destination] = None
        self._legs: List[OrderLeg] = []
        self._next_leg_id = 1
        self._child_order_strategies: List[Union["OrderBuilder", Dict[str, Any]]] = []

    # Order type

    def set_order_type(self, order_type: Union[OrderType, str]) -> "OrderBuilder":
        """Set the order type (MARKET, LIMIT, NET_DEBIT, ...)."""
        self._order_type = coerce_enum(OrderType, order_type, "order_type")
        return self

    def clear_order_type(self) -> "OrderBuilder":
        self._order_type = None
        return self

    # Session

    def set_session(self, session: Union[Session, str]) -> "OrderBuilder":
        """Set the trading session."""
        self._session = coerce_enum(Session, session, "session")
        return self

    def clear_session(self) -> "OrderBuilder":
        self._session = None
        return self

    # Duration

    def set_duration(self, duration: Union[Duration, str]) -> "OrderBuilder":
        """Set how long the order remains working."""
        self._duration = coerce_enum(Duration, duration, "duration")
        return self

    def clear_duration(self) -> "OrderBuilder":
        self._duration = None
        return self

    # Strategy type

    def set_order_strategy_type(
        self, order_strategy_type: Union[OrderStrategyType, str]
    ) -> "OrderBuilder":
        """Set the order strategy (SINGLE, OCO, TRIGGER, ...)."""
        self._order_strategy_type = coerce_enum(
            OrderStrategyType, order_strategy_type, "order_strategy_type"
        )
        return self

    def clear_order_strategy_type(self) -> "OrderBuilder":
        self._order_strategy_type = None
        return self

    def set_complex_order_strategy_type(
        self, complex_order_strategy_type: Union[ComplexOrderStrategyType, str]
    ) -> "OrderBuilder":
        """Declare a multi-leg option strategy (VERTICAL, IRON_CONDOR, ...)."""
        self._complex_order_strategy_type = coerce_enum(
            ComplexOrderStrategyType,
            complex_order_strategy_type,
            "complex_order_strategy_type",
        )
        return self

    def clear_complex_order_strategy_type(self) -> "OrderBuilder":
        self._complex_order_strategy_type = None
        return self

    # Quantity

    def set_quantity(self, quantity: int) -> "OrderBuilder":
        """
        Set the order-level quantity.

        Raises:
            InvalidQuantityError: If quantity is not a positive whole number
        """
        self._quantity = _validate_quantity(quantity)
        return self

    def clear_quantity(self) -> "OrderBuilder":
        self._quantity = None
        return self

    # Prices

    def set_price(self, price: Union[float, str]) -> "OrderBuilder":
        """
        Set the limit price.

        Prices are stored as strings truncated to two decimals (four
        below one dollar).

        Raises:
            InvalidPriceError: If price is negative or not numeric
        """
        self._price = truncate_price(price)
        return self

    def copy_price(self, price: str) -> "OrderBuilder":
        """Set the limit price verbatim, without truncation."""
        self._price = str(price)
        return self

    def clear_price(self) -> "OrderBuilder":
        self._price = None
        return self

    def set_stop_price(self, stop_price: Union[float, str]) -> "OrderBuilder":
        """Set the stop trigger price (same formatting as set_price)."""
        self._stop_price = truncate_price(stop_price)
        return self

    def copy_stop_price(self, stop_price: str) -> "OrderBuilder":
        """Set the stop price verbatim, without truncation."""
        self._stop_price = str(stop_price)
        return self

    def clear_stop_price(self) -> "OrderBuilder":
        self._stop_price = None
        return self

    def set_stop_price_link_basis(
        self, basis: Union[StopPriceLinkBasis, str]
    ) -> "OrderBuilder":
        self._stop_price_link_basis = coerce_enum(
            StopPriceLinkBasis, basis, "stop_price_link_basis"
        )
        return self

    def clear_stop_price_link_basis(self) -> "OrderBuilder":
        self._stop_price_link_basis = None
        return self

    def set_stop_price_link_type(
        self, link_type: Union[StopPriceLinkType, str]
    ) -> "OrderBuilder":
        self._stop_price_link_type = coerce_enum(
            StopPriceLinkType, link_type, "stop_price_link_type"
        )
        return self

    def clear_stop_price_link_type(self) -> "OrderBuilder":
        self._stop_price_link_type = None
        return self

    def set_stop_price_offset(self, offset: float) -> "OrderBuilder":
        """
        Set the trailing stop offset.

        The offset is signed: negative values trail below the reference price.
        """
        if isinstance(offset, bool) or not isinstance(offset, (int, float)):
            raise InvalidPriceError(f"Stop price offset must be numeric, got {offset!r}")
        self._stop_price_offset = offset
        return self

    def clear_stop_price_offset(self) -> "OrderBuilder":
        self._stop_price_offset = None
        return self

    def set_stop_type(self, stop_type: Union[StopType, str]) -> "OrderBuilder":
        self._stop_type = coerce_enum(StopType, stop_type, "stop_type")
        return self

    def clear_stop_type(self) -> "OrderBuilder":
        self._stop_type = None
        return self

    def set_price_link_basis(self, basis: Union[PriceLinkBasis, str]) -> "OrderBuilder":
        self._price_link_basis = coerce_enum(PriceLinkBasis, basis, "price_link_basis")
        return self

    def clear_price_link_basis(self) -> "OrderBuilder":
        self._price_link_basis = None
        return self

    def set_price_link_type(self, link_type: Union[PriceLinkType, str]) -> "OrderBuilder":
        self._price_link_type = coerce_enum(PriceLinkType, link_type, "price_link_type")
        return self

    def clear_price_link_type(self) -> "OrderBuilder":
        self._price_link_type = None
        return self

    def set_activation_price(self, activation_price: Union[float, str]) -> "OrderBuilder":
        """Set the activation price of a trailing order."""
        self._activation_price = truncate_price(activation_price)
        return self

    def copy_activation_price(self, activation_price: str) -> "OrderBuilder":
        """Set the activation price verbatim, without truncation."""
        self._activation_price = str(activation_price)
        return self

    def clear_activation_price(self) -> "OrderBuilder":
        self._activation_price = None
        return self

    # Routing and handling

    def set_special_instruction(
        self, special_instruction: Union[SpecialInstruction, str]
    ) -> "OrderBuilder":
        self._special_instruction = coerce_enum(
            SpecialInstruction, special_instruction, "special_instruction"
        )
        return self

    def clear_special_instruction(self) -> "OrderBuilder":
        self._special_instruction = None
        return self

    def set_requested_destination(
        self, destination: Union[Destination, str]
    ) -> "OrderBuilder":
        self._requested_destination = coerce_enum(
            Destination, destination, "requested_destination"
        )
        return self

    def clear_requested_destination(self) -> "OrderBuilder":
        self._requested_destination = None
        return self

    # Legs

    def _add_leg(
        self,
        asset_type: AssetType,
        instruction: Union[EquityInstruction, OptionInstruction],
        symbol: str,
        quantity: int,
    ) -> "OrderBuilder":
        if not symbol:
            raise SchwabValidationError("Leg symbol cannot be empty")

        leg = OrderLeg(
            leg_id=self._next_leg_id,
            instruction=instruction,
            asset_type=asset_type,
            symbol=symbol,
            quantity=_validate_quantity(quantity),
        )
        self._next_leg_id += 1
        self._legs.append(leg)
        return self

    def add_equity_leg(
        self, instruction: Union[EquityInstruction, str], symbol: str, quantity: int
    ) -> "OrderBuilder":
        """
        Add an equity leg.

        Args:
            instruction: BUY, SELL, SELL_SHORT or BUY_TO_COVER
            symbol: Equity ticker
            quantity: Number of shares (must be positive)

        Raises:
            InvalidQuantityError: If quantity is not a positive whole number
            SchwabValidationError: If instruction is not an equity instruction
        """
        instruction = coerce_enum(EquityInstruction, instruction, "equity instruction")
        return self._add_leg(AssetType.EQUITY, instruction, symbol, quantity)

    def add_option_leg(
        self, instruction: Union[OptionInstruction, str], symbol: str, quantity: int
    ) -> "OrderBuilder":
        """
        Add an option leg.

        Args:
            instruction: BUY_TO_OPEN, SELL_TO_CLOSE, SELL_TO_OPEN or BUY_TO_CLOSE
            symbol: 21-character option symbol (see OptionSymbol)
            quantity: Number of contracts (must be positive)

        Raises:
            InvalidQuantityError: If quantity is not a positive whole number
            SchwabValidationError: If instruction is not an option instruction
        """
        instruction = coerce_enum(OptionInstruction, instruction, "option instruction")
        return self._add_leg(AssetType.OPTION, instruction, symbol, quantity)

    def clear_order_legs(self) -> "OrderBuilder":
        """Remove all legs. Leg IDs keep counting from where they left off."""
        self._legs = []
        return self

    @property
    def legs(self) -> List[OrderLeg]:
        """Legs added so far, in order."""
        return list(self._legs)

    # Child strategies

    def add_child_order_strategy(
        self, child: Union["OrderBuilder", Dict[str, Any]]
    ) -> "OrderBuilder":
        """
        Add a child order strategy.

        Args:
            child: Builder or already-built payload. Builders are built when
                   this builder is built, so later changes to them are seen.

        Raises:
            SchwabValidationError: If child is neither a builder nor a dict
        """
        if not isinstance(child, (OrderBuilder, dict)):
            raise SchwabValidationError(
                f"Child order strategy must be an OrderBuilder or dict, got {type(child).__name__}"
            )
        self._child_order_strategies.append(child)
        return self

    def clear_child_order_strategies(self) -> "OrderBuilder":
        self._child_order_strategies = []
        return self

    # Build

    def _validate(self) -> None:
        strategy = self._order_strategy_type

        if self._child_order_strategies and strategy not in COMPOSITE_STRATEGIES:
            raise IncompleteOrderError(
                "childOrderStrategies are only allowed on OCO and TRIGGER orders"
            )

        if strategy in COMPOSITE_STRATEGIES and not self._child_order_strategies:
            raise IncompleteOrderError(
                f"{strategy.value} orders require at least one child order strategy"
            )

        if strategy is OrderStrategyType.SINGLE and not self._legs:
            raise IncompleteOrderError("SINGLE orders require at least one leg")

    def build(self) -> Dict[str, Any]:
        """
        Build the order payload.

        Unset fields are omitted. Child strategies are built recursively.

        Returns:
            New dictionary in the Schwab order JSON format

        Raises:
            IncompleteOrderError: If the strategy type and the presence of
                                  legs or child strategies disagree
        """
        self._validate()

        scalar_fields = [
            ("orderType", self._order_type),
            ("session", self._session),
            ("duration", self._duration),
            ("orderStrategyType", self._order_strategy_type),
            ("complexOrderStrategyType", self._complex_order_strategy_type),
            ("quantity", self._quantity),
            ("price", self._price),
            ("stopPrice", self._stop_price),
            ("stopPriceLinkBasis", self._stop_price_link_basis),
            ("stopPriceLinkType", self._stop_price_link_type),
            ("stopPriceOffset", self._stop_price_offset),
            ("stopType", self._stop_type),
            ("priceLinkBasis", self._price_link_basis),
            ("priceLinkType", self._price_link_type),
            ("activationPrice", self._activation_price),
            ("specialInstruction", self._special_instruction),
            ("requestedDestination", self._requested_destination),
        ]

        payload: Dict[str, Any] = {}
        for key, value in scalar_fields:
            if value is None:
                continue
            payload[key] = value.value if isinstance(value, Enum) else value

        if self._legs:
            payload["orderLegCollection"] = [leg.to_dict() for leg in self._legs]

        if self._child_order_strategies:
            payload["childOrderStrategies"] = [
                child.build() if isinstance(child, OrderBuilder) else copy.deepcopy(child)
                for child in self._child_order_strategies
            ]

        logger.debug(
            f"Built order: strategy={payload.get('orderStrategyType')}, "
            f"legs={len(self._legs)}, children={len(self._child_order_strategies)}"
        )
        return payload

    def copy(self) -> "OrderBuilder":
        """Return an independent copy of this builder, including leg ID state."""
        return copy.deepcopy(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OrderBuilder):
            return NotImplemented
        return vars(self) == vars(other)

    def __repr__(self) -> str:
        strategy = self._order_strategy_type.value if self._order_strategy_type else None
        return (
            f"OrderBuilder(strategy={strategy}, legs={len(self._legs)}, "
            f"children={len(self._child_order_strategies)})"
        )

"""
Composite order strategies.

Combinators nest orders into the trees the order endpoints accept:

    one_cancels_other(a, b)          OCO  -> [a, b]
    first_triggers_second(a, b)      a (as TRIGGER) -> [b]
    one_triggers_oco(e, l1, l2)      e (as TRIGGER) -> [OCO -> [l1, l2]]

Children are snapshotted with build() when they are combined, so
changing an input builder afterwards does not change the result.
"""

import copy
import logging
from typing import Any, Dict, Union

from src.exceptions import SchwabValidationError

from .common import OrderStrategyType
from .generic import OrderBuilder

logger = logging.getLogger(__name__)

OrderLike = Union[OrderBuilder, Dict[str, Any]]


def _as_payload(order: OrderLike) -> Dict[str, Any]:
    if isinstance(order, OrderBuilder):
        return order.build()
    if isinstance(order, dict):
        return copy.deepcopy(order)
    raise SchwabValidationError(
        f"Expected an OrderBuilder or order dict, got {type(order).__name__}"
    )


def one_cancels_other(order1: OrderLike, order2: OrderLike) -> OrderBuilder:
    """
    Combine two orders so that filling one cancels the other.

    Args:
        order1: First child order (builder or built payload)
        order2: Second child order (builder or built payload)

    Returns:
        OrderBuilder with OCO strategy, no legs and the two children in
        argument order
    """
    children = [_as_payload(order1), _as_payload(order2)]

    builder = OrderBuilder().set_order_strategy_type(OrderStrategyType.OCO)
    for child in children:
        builder.add_child_order_strategy(child)

    logger.debug("Composed OCO order")
    return builder


def first_triggers_second(first: OrderBuilder, second: OrderLike) -> OrderBuilder:
    """
    Make the second order contingent on the first one filling.

    The result is a copy of the first order with TRIGGER strategy and
    the second order as its only child. The first builder is left
    unchanged.

    Args:
        first: Triggering order
        second: Order released when the first fills

    Returns:
        OrderBuilder with TRIGGER strategy

    Raises:
        SchwabValidationError: If first is not an OrderBuilder
    """
    if not isinstance(first, OrderBuilder):
        raise SchwabValidationError(
            f"Triggering order must be an OrderBuilder, got {type(first).__name__}"
        )

    child = _as_payload(second)
    builder = (
        first.copy()
        .set_order_strategy_type(OrderStrategyType.TRIGGER)
        .add_child_order_strategy(child)
    )

    logger.debug("Composed TRIGGER order")
    return builder


def one_triggers_oco(
    entry: OrderBuilder, order1: OrderLike, order2: OrderLike
) -> OrderBuilder:
    """
    Bracket an entry order with two mutually exclusive exits.

    Typically order1 is a take-profit limit and order2 a protective stop.

    Returns:
        TRIGGER order whose single child is an OCO of order1 and order2
    """
    return first_triggers_second(entry, one_cancels_other(order1, order2))

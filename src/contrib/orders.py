"""
Repeat-order reconstruction and builder code generation.

construct_repeat_order() turns an order returned by the order endpoints
back into an OrderBuilder so it can be submitted again.
code_for_builder() renders Python source that recreates a builder,
which is what the schwab-orders-codegen script prints.
"""

import logging
from typing import Any, Dict, List, Optional, Set

from src.orders.common import (
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
from src.orders.exceptions import (
    MissingOrderStrategyTypeError,
    UnknownLegTypeError,
    UnsupportedChildStrategyError,
)
from src.orders.generic import OrderBuilder

logger = logging.getLogger(__name__)

# (payload key, builder setter, enum type or None for plain values)
_SCALAR_FIELDS = [
    ("orderType", "set_order_type", OrderType),
    ("session", "set_session", Session),
    ("duration", "set_duration", Duration),
    ("orderStrategyType", "set_order_strategy_type", OrderStrategyType),
    ("complexOrderStrategyType", "set_complex_order_strategy_type", ComplexOrderStrategyType),
    ("quantity", "set_quantity", None),
    ("price", "copy_price", None),
    ("stopPrice", "copy_stop_price", None),
    ("stopPriceLinkBasis", "set_stop_price_link_basis", StopPriceLinkBasis),
    ("stopPriceLinkType", "set_stop_price_link_type", StopPriceLinkType),
    ("stopPriceOffset", "set_stop_price_offset", None),
    ("stopType", "set_stop_type", StopType),
    ("priceLinkBasis", "set_price_link_basis", PriceLinkBasis),
    ("priceLinkType", "set_price_link_type", PriceLinkType),
    ("activationPrice", "copy_activation_price", None),
    ("specialInstruction", "set_special_instruction", SpecialInstruction),
    ("requestedDestination", "set_requested_destination", Destination),
]

# Routing is left to the broker when an order is repeated
_NOT_REPEATED = {"requestedDestination"}

_LEG_TYPES = {
    "EQUITY": ("add_equity_leg", EquityInstruction),
    "OPTION": ("add_option_leg", OptionInstruction),
}


def _leg_spec(leg: Dict[str, Any]):
    leg_type = leg.get("orderLegType")
    if leg_type not in _LEG_TYPES:
        raise UnknownLegTypeError(f"Unknown orderLegType: {leg_type!r}")
    return _LEG_TYPES[leg_type]


def construct_repeat_order(historical_order: Dict[str, Any]) -> OrderBuilder:
    """
    Build an order equivalent to one returned by the API.

    Order type, session, duration, strategy types, quantity, prices,
    stop settings and legs are copied, prices verbatim. Status, fill and
    activity fields are ignored. The requested destination is not copied.

    Args:
        historical_order: Order JSON as returned by get_order or
                          get_orders_for_account

    Returns:
        OrderBuilder that reproduces the order

    Raises:
        MissingOrderStrategyTypeError: If orderStrategyType is absent
        UnknownLegTypeError: If a leg is neither EQUITY nor OPTION
        UnsupportedChildStrategyError: If the order has child strategies
    """
    if not historical_order.get("orderStrategyType"):
        raise MissingOrderStrategyTypeError(
            "Historical order is missing orderStrategyType"
        )

    if historical_order.get("childOrderStrategies"):
        raise UnsupportedChildStrategyError(
            "Orders with childOrderStrategies cannot be reconstructed"
        )

    builder = OrderBuilder()
    for key, setter, _ in _SCALAR_FIELDS:
        if key in _NOT_REPEATED:
            continue
        value = historical_order.get(key)
        if value is not None:
            getattr(builder, setter)(value)

    for leg in historical_order.get("orderLegCollection", []):
        add_leg, _ = _leg_spec(leg)
        getattr(builder, add_leg)(
            leg["instruction"], leg["instrument"]["symbol"], leg["quantity"]
        )

    logger.debug(
        f"Reconstructed order {historical_order.get('orderId')} with "
        f"{len(builder.legs)} legs"
    )
    return builder


def _format_value(enum_type, value: Any, imports: Set[str]) -> str:
    if enum_type is None:
        return repr(value)
    member = enum_type(value)
    imports.add(enum_type.__name__)
    return f"{enum_type.__name__}.{member.name}"


def _render_payload(
    payload: Dict[str, Any], var_name: str, imports: Set[str], blocks: List[str]
) -> None:
    children = payload.get("childOrderStrategies", [])
    child_names = []
    for index, child in enumerate(children, start=1):
        child_name = f"{var_name}_child_{index}"
        _render_payload(child, child_name, imports, blocks)
        child_names.append(child_name)

    calls = []
    for key, setter, enum_type in _SCALAR_FIELDS:
        if key in payload:
            calls.append(f".{setter}({_format_value(enum_type, payload[key], imports)})")

    for leg in payload.get("orderLegCollection", []):
        add_leg, instruction_type = _leg_spec(leg)
        instruction = _format_value(instruction_type, leg["instruction"], imports)
        symbol = leg["instrument"]["symbol"]
        calls.append(f".{add_leg}({instruction}, {symbol!r}, {leg['quantity']!r})")

    for child_name in child_names:
        calls.append(f".add_child_order_strategy({child_name})")

    lines = [f"{var_name} = (", "    OrderBuilder()"]
    lines.extend(f"    {call}" for call in calls)
    lines.append(")")
    blocks.append("\n".join(lines))


def code_for_builder(builder: OrderBuilder, var_name: Optional[str] = None) -> str:
    """
    Generate Python code that recreates a builder.

    Child strategies are emitted first as separate variables named
    <var_name>_child_<n> and attached with add_child_order_strategy().

    Args:
        builder: Builder to render
        var_name: Variable the builder is assigned to (default "builder")

    Returns:
        Python source, including the required imports
    """
    var_name = var_name or "builder"
    payload = builder.build()

    imports: Set[str] = set()
    blocks: List[str] = []
    _render_payload(payload, var_name, imports, blocks)

    header = ["from src.orders.generic import OrderBuilder"]
    if imports:
        header.insert(0, f"from src.orders.common import {', '.join(sorted(imports))}")

    return "\n".join(header) + "\n\n" + "\n\n".join(blocks) + "\n"

"""
Request and response helpers for SchwabClient.

Query parameters are plain strings on the wire. The helpers here convert
Python values to the formats the endpoints expect and drop parameters
that were not supplied.
"""

import logging
import re
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Union

import requests

from src.exceptions import SchwabValidationError

logger = logging.getLogger(__name__)

_ORDER_LOCATION = re.compile(r"/accounts/(?P<account_hash>[^/]+)/orders/(?P<order_id>\d+)")


def format_enum(value: Union[Enum, str, int]) -> Any:
    """Return the wire value of an enum member, passing strings through."""
    return value.value if isinstance(value, Enum) else value


def format_list(values: Union[str, Enum, Iterable[Any]]) -> str:
    """Join values with commas. A single string or enum is returned as-is."""
    if isinstance(values, (str, Enum)):
        return str(format_enum(values))
    return ",".join(str(format_enum(value)) for value in values)


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def format_iso_datetime(value: datetime, name: str) -> str:
    """
    Format a datetime as ISO-8601 with milliseconds and a Z suffix.

    Aware datetimes are converted to UTC. Naive datetimes are taken as UTC.

    Example:
        datetime(2024, 3, 15, 9, 30) -> "2024-03-15T09:30:00.000Z"
    """
    if not isinstance(value, datetime):
        raise SchwabValidationError(
            f"{name} must be a datetime, got {type(value).__name__}"
        )
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="milliseconds") + "Z"


def format_epoch_millis(value: datetime, name: str) -> int:
    """Format a datetime as milliseconds since the epoch. Naive datetimes are taken as UTC."""
    if not isinstance(value, datetime):
        raise SchwabValidationError(
            f"{name} must be a datetime, got {type(value).__name__}"
        )
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def format_date(value: Union[date, datetime], name: str) -> str:
    """Format a date (or the date part of a datetime) as YYYY-MM-DD."""
    if isinstance(value, datetime):
        value = value.date()
    if not isinstance(value, date):
        raise SchwabValidationError(f"{name} must be a date, got {type(value).__name__}")
    return value.strftime("%Y-%m-%d")


def build_params(**params: Any) -> Dict[str, Any]:
    """
    Build a query parameter dict, skipping None values.

    Booleans become "true"/"false", enums become their values, lists are
    comma-joined.
    """
    query: Dict[str, Any] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            query[key] = format_bool(value)
        elif isinstance(value, (list, tuple, set, frozenset)):
            query[key] = format_list(value)
        else:
            query[key] = format_enum(value)
    return query


def require(value: Any, name: str) -> None:
    """Raise SchwabValidationError if a required parameter is missing or empty."""
    if value is None or (isinstance(value, (str, list, tuple, set)) and not value):
        raise SchwabValidationError(f"{name} is required")


def extract_order_id(
    response: requests.Response, account_hash: Optional[str] = None
) -> Optional[int]:
    """
    Extract the order ID from a place_order or replace_order response.

    The order endpoints return the new order's URL in the Location header,
    e.g. ".../accounts/<hash>/orders/1234567890".

    Args:
        response: Response to the order request
        account_hash: If given, the Location header must refer to this account

    Returns:
        Order ID, or None when the header is missing or does not match

    Raises:
        SchwabValidationError: If the Location header refers to another account
    """
    location = response.headers.get("Location")
    if not location:
        logger.debug("Order response has no Location header")
        return None

    match = _ORDER_LOCATION.search(location)
    if not match:
        logger.warning(f"Unexpected Location header format: {location}")
        return None

    if account_hash is not None and match.group("account_hash") != account_hash:
        raise SchwabValidationError("Order response refers to a different account")

    return int(match.group("order_id"))

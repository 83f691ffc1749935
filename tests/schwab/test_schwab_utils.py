"""Tests for Schwab client helpers."""

from datetime import date, datetime, timedelta, timezone
from unittest import mock

import pytest

from src.exceptions import SchwabValidationError
from src.schwab.enums import Market, OrderStatus
from src.schwab.utils import (
    build_params,
    extract_order_id,
    format_date,
    format_epoch_millis,
    format_iso_datetime,
    format_list,
    require,
)

ACCOUNT_HASH = "E5B9F0A1C2D3"


def location_response(location):
    response = mock.Mock()
    response.headers = {"Location": location} if location is not None else {}
    return response


class TestFormatting:
    """Tests for query parameter formatting."""

    def test_format_iso_datetime_naive_is_utc(self):
        assert format_iso_datetime(datetime(2024, 3, 15, 9, 30), "d") == "2024-03-15T09:30:00.000Z"

    def test_format_iso_datetime_converts_to_utc(self):
        eastern = timezone(timedelta(hours=-5))
        value = datetime(2024, 3, 15, 9, 30, 0, 123456, tzinfo=eastern)

        assert format_iso_datetime(value, "d") == "2024-03-15T14:30:00.123Z"

    def test_format_iso_datetime_rejects_date(self):
        with pytest.raises(SchwabValidationError, match="start"):
            format_iso_datetime(date(2024, 3, 15), "start")

    def test_format_epoch_millis(self):
        assert format_epoch_millis(datetime(1970, 1, 2, tzinfo=timezone.utc), "d") == 86400000

    def test_format_epoch_millis_naive_is_utc(self):
        """Naive datetimes give the same instant as format_iso_datetime."""
        value = datetime(2024, 1, 1)

        assert format_epoch_millis(value, "d") == 1704067200000
        assert format_iso_datetime(value, "d") == "2024-01-01T00:00:00.000Z"

    def test_format_date(self):
        assert format_date(date(2024, 3, 5), "d") == "2024-03-05"
        assert format_date(datetime(2024, 3, 5, 23, 59), "d") == "2024-03-05"

    def test_format_date_rejects_string(self):
        with pytest.raises(SchwabValidationError, match="market_date"):
            format_date("2024-03-05", "market_date")

    def test_format_list(self):
        assert format_list(["AAPL", "MSFT"]) == "AAPL,MSFT"
        assert format_list([Market.EQUITY, "option"]) == "equity,option"
        assert format_list("AAPL,MSFT") == "AAPL,MSFT"
        assert format_list(Market.BOND) == "bond"

    def test_build_params_skips_none(self):
        """Parameters that were not supplied are never sent."""
        assert build_params(a=None, b=0, c="") == {"b": 0, "c": ""}

    def test_build_params_formats_values(self):
        params = build_params(flag=True, other=False, status=OrderStatus.FILLED, items=("x", "y"))

        assert params == {"flag": "true", "other": "false", "status": "FILLED", "items": "x,y"}


class TestRequire:
    """Tests for require."""

    @pytest.mark.parametrize("value", [None, "", [], ()])
    def test_missing_values_raise(self, value):
        with pytest.raises(SchwabValidationError, match="symbol is required"):
            require(value, "symbol")

    @pytest.mark.parametrize("value", ["AAPL", ["AAPL"], 0, Market.EQUITY])
    def test_present_values_pass(self, value):
        require(value, "symbol")


class TestExtractOrderId:
    """Tests for extract_order_id."""

    def test_extracts_id(self):
        response = location_response(
            f"https://api.schwabapi.com/trader/v1/accounts/{ACCOUNT_HASH}/orders/1234567890"
        )

        assert extract_order_id(response) == 1234567890
        assert extract_order_id(response, ACCOUNT_HASH) == 1234567890

    def test_missing_header_returns_none(self):
        assert extract_order_id(location_response(None)) is None

    def test_unexpected_header_returns_none(self):
        assert extract_order_id(location_response("https://example.com/elsewhere")) is None

    def test_other_account_raises(self):
        response = location_response("/trader/v1/accounts/OTHERHASH/orders/1")

        with pytest.raises(SchwabValidationError, match="different account"):
            extract_order_id(response, ACCOUNT_HASH)

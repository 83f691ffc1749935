"""Tests for the schwab-orders-codegen script."""

import json
from unittest import mock

import pytest

from src.oauth.exceptions import StaleTokenFormatError, TokenNotAvailableError
from src.schwab.client import SchwabClient
from src.schwab.exceptions import SchwabAPIError
from src.scripts.orders_codegen import build_parser, latest_order_main, main

ACCOUNT_HASH = "E5B9F0A1C2D3"
BASE_ARGS = ["--token_file", "token.json", "--api_key", "key", "--app_secret", "secret"]


def historical_order(order_id, symbol="AAPL", **extra):
    order = {
        "session": "NORMAL",
        "duration": "DAY",
        "orderType": "LIMIT",
        "price": 150.25,
        "orderStrategyType": "SINGLE",
        "orderId": order_id,
        "status": "FILLED",
        "orderLegCollection": [
            {
                "orderLegType": "EQUITY",
                "legId": 1,
                "instrument": {"assetType": "EQUITY", "symbol": symbol},
                "instruction": "BUY",
                "quantity": 10.0,
            }
        ],
    }
    order.update(extra)
    return order


@pytest.fixture
def client():
    return mock.Mock(spec=SchwabClient)


@pytest.fixture
def client_factory(client):
    with mock.patch(
        "src.scripts.orders_codegen.client_from_token_file", return_value=client
    ) as factory:
        yield factory


class TestArgumentParsing:
    """Tests for build_parser."""

    def test_required_arguments(self):
        args = build_parser().parse_args(BASE_ARGS)

        assert args.token_file == "token.json"
        assert args.api_key == "key"
        assert args.app_secret == "secret"
        assert args.account_id is None
        assert args.account_hash is None

    def test_missing_required_argument_exits(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--api_key", "key", "--app_secret", "secret"])

        assert exc_info.value.code == 2
        assert "--token_file" in capsys.readouterr().err

    def test_account_options_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(BASE_ARGS + ["--account_id", "1", "--account_hash", "H"])


class TestLatestOrderMain:
    """Tests for latest_order_main."""

    def test_client_created_from_arguments(self, client, client_factory):
        client.get_orders_for_all_linked_accounts.return_value = []

        latest_order_main(BASE_ARGS)

        client_factory.assert_called_once_with("token.json", "key", "secret")

    def test_no_orders(self, client, client_factory, capsys):
        """An empty order list is not an error."""
        client.get_orders_for_all_linked_accounts.return_value = []

        assert latest_order_main(BASE_ARGS) == 0
        assert "No recent orders found" in capsys.readouterr().out

    def test_latest_order_code_for_all_accounts(self, client, client_factory, capsys):
        """The order with the highest ID is rendered."""
        client.get_orders_for_all_linked_accounts.return_value = [
            historical_order(100, "MSFT"),
            historical_order(300, "AAPL"),
            historical_order(200, "GOOG"),
        ]

        assert latest_order_main(BASE_ARGS) == 0

        out = capsys.readouterr().out
        assert out.startswith("# Order ID 300\n")
        assert "from src.orders.generic import OrderBuilder" in out
        assert ".add_equity_leg(EquityInstruction.BUY, 'AAPL', 10)" in out
        assert ".copy_price('150.25')" in out
        assert "MSFT" not in out
        client.get_orders_for_account.assert_not_called()

    def test_account_hash(self, client, client_factory, capsys):
        client.get_orders_for_account.return_value = [historical_order(1)]

        assert latest_order_main(BASE_ARGS + ["--account_hash", ACCOUNT_HASH]) == 0

        client.get_orders_for_account.assert_called_once_with(ACCOUNT_HASH)
        client.get_account_numbers.assert_not_called()

    def test_account_id_is_resolved(self, client, client_factory, capsys):
        """An account number is looked up to its hash first."""
        client.get_account_numbers.return_value = [
            {"accountNumber": "11111111", "hashValue": "OTHER"},
            {"accountNumber": "12345678", "hashValue": ACCOUNT_HASH},
        ]
        client.get_orders_for_account.return_value = [historical_order(1)]

        assert latest_order_main(BASE_ARGS + ["--account_id", "12345678"]) == 0

        client.get_orders_for_account.assert_called_once_with(ACCOUNT_HASH)
        assert "# Order ID 1" in capsys.readouterr().out

    def test_unknown_account_id(self, client, client_factory, capsys):
        """An unknown account number fails and lists the linked accounts."""
        client.get_account_numbers.return_value = [
            {"accountNumber": "11111111", "hashValue": "OTHER"}
        ]

        assert latest_order_main(BASE_ARGS + ["--account_id", "12345678"]) == -1

        err = capsys.readouterr().err
        assert "Failed to find account hash for account ID 12345678" in err
        assert '"accountNumber": "11111111"' in err
        client.get_orders_for_account.assert_not_called()

    def test_http_error_with_account(self, client, client_factory, capsys):
        client.get_orders_for_account.side_effect = SchwabAPIError(
            "bad", status_code=400, body="{}"
        )

        assert latest_order_main(BASE_ARGS + ["--account_hash", "WRONG"]) == -1

        err = capsys.readouterr().err
        assert "Returned HTTP status code 400." in err
        assert "invalid account ID or hash" in err

    def test_http_error_without_account(self, client, client_factory, capsys):
        client.get_orders_for_all_linked_accounts.side_effect = SchwabAPIError(
            "bad", status_code=500, body=""
        )

        assert latest_order_main(BASE_ARGS) == -1

        err = capsys.readouterr().err
        assert "Returned HTTP status code 500." in err
        assert "invalid account" not in err

    def test_error_body(self, client, client_factory, capsys):
        """An error object in a successful response is reported."""
        client.get_orders_for_account.return_value = {"error": "Invalid account"}

        assert latest_order_main(BASE_ARGS + ["--account_hash", ACCOUNT_HASH]) == -1

        assert 'Schwab returned error: "Invalid account"' in capsys.readouterr().err

    def test_destination_warnings(self, client, client_factory, capsys):
        """Non-default routing fields produce warnings and are omitted."""
        client.get_orders_for_all_linked_accounts.return_value = [
            historical_order(1, requestedDestination="NYSE", destinationLinkName="ETMM")
        ]

        assert latest_order_main(BASE_ARGS) == 0

        captured = capsys.readouterr()
        assert 'non-"AUTO" value of "requestedDestination" ("NYSE")' in captured.err
        assert 'non-"AutoRoute" value of "destinationLinkName" ("ETMM")' in captured.err
        assert "set_requested_destination" not in captured.out

    def test_default_destinations_do_not_warn(self, client, client_factory, capsys):
        client.get_orders_for_all_linked_accounts.return_value = [
            historical_order(1, requestedDestination="AUTO", destinationLinkName="AutoRoute")
        ]

        latest_order_main(BASE_ARGS)

        assert "Warning" not in capsys.readouterr().err

    def test_unsupported_order(self, client, client_factory, capsys):
        """Orders that cannot be reconstructed fail with a message."""
        client.get_orders_for_all_linked_accounts.return_value = [
            historical_order(7, childOrderStrategies=[historical_order(8)])
        ]

        assert latest_order_main(BASE_ARGS) == -1

        assert "Cannot generate code for order 7" in capsys.readouterr().err

    def test_stale_token_file(self, capsys):
        """A token file without a creation timestamp fails with guidance."""
        with mock.patch(
            "src.scripts.orders_codegen.client_from_token_file",
            side_effect=StaleTokenFormatError("Token file is in an older format"),
        ):
            assert latest_order_main(BASE_ARGS) == -1

        assert "older format" in capsys.readouterr().err

    def test_missing_token_file(self, capsys):
        with mock.patch(
            "src.scripts.orders_codegen.client_from_token_file",
            side_effect=TokenNotAvailableError("No tokens stored"),
        ):
            assert latest_order_main(BASE_ARGS) == -1

        assert "Could not load token file token.json" in capsys.readouterr().err

    def test_main_uses_sys_argv(self, client, client_factory, capsys):
        client.get_orders_for_all_linked_accounts.return_value = []

        with mock.patch("sys.argv", ["schwab-orders-codegen"] + BASE_ARGS):
            assert main() == 0


class TestClientFromTokenFile:
    """Tests for loading a client from a real token file."""

    def test_legacy_token_file_is_stale(self, tmp_path, capsys):
        """A token file without creation_timestamp is rejected before any request."""
        token_file = tmp_path / "token.json"
        token_file.write_text(
            json.dumps({"access_token": "a", "refresh_token": "r", "expires_in": 1800})
        )
        args = ["--token_file", str(token_file), "--api_key", "key", "--app_secret", "secret"]

        with mock.patch("src.schwab.client.requests.Session.request") as mock_request:
            assert latest_order_main(args) == -1

        mock_request.assert_not_called()
        assert capsys.readouterr().err

    def test_missing_token_file(self, tmp_path, capsys):
        args = [
            "--token_file", str(tmp_path / "missing.json"),
            "--api_key", "key",
            "--app_secret", "secret",
        ]

        assert latest_order_main(args) == -1
        assert "Could not load token file" in capsys.readouterr().err

"""Tests for log redaction."""

import logging

from src.schwab.debug import LogRedactor, RedactingFilter, register_redactions


class TestLogRedactor:
    """Tests for LogRedactor."""

    def test_redact_registered_value(self):
        redactor = LogRedactor()
        redactor.register("12345678", "accountNumber")

        assert redactor.redact("account 12345678 filled") == (
            "account <REDACTED accountNumber> filled"
        )

    def test_unregistered_text_is_unchanged(self):
        assert LogRedactor().redact("nothing to hide") == "nothing to hide"

    def test_shared_label_is_numbered(self):
        """Values registered under the same label get numbered placeholders."""
        redactor = LogRedactor()
        redactor.register("111", "orderId")
        redactor.register("222", "orderId")

        assert redactor.redact("111 222") == "<REDACTED orderId-1> <REDACTED orderId-2>"

    def test_duplicate_registration_is_ignored(self):
        redactor = LogRedactor()
        redactor.register("111", "orderId")
        redactor.register("111", "orderId")

        assert len(redactor) == 1
        assert redactor.redact("111") == "<REDACTED orderId>"

    def test_longer_values_replaced_first(self):
        """A value containing another registered value is replaced whole."""
        redactor = LogRedactor()
        redactor.register("1234", "short")
        redactor.register("12345678", "long")

        assert redactor.redact("12345678") == "<REDACTED long>"

    def test_empty_value_is_ignored(self):
        redactor = LogRedactor()
        redactor.register("", "empty")

        assert len(redactor) == 0


class TestRegisterRedactions:
    """Tests for register_redactions."""

    def test_sensitive_keys_are_registered(self):
        """Values under keys containing id, key, token, auth are registered."""
        redactor = LogRedactor()
        register_redactions(
            {
                "accountId": "ACCT1",
                "accessToken": "TOKEN1",
                "apiKey": "KEY123",
                "authorizedUser": "USER1",
                "type": "MARGIN",
            },
            redactor,
        )

        assert redactor.redact("ACCT1 TOKEN1 KEY123 USER1 MARGIN") == (
            "<REDACTED accountId> <REDACTED accessToken> <REDACTED apiKey> "
            "<REDACTED authorizedUser> MARGIN"
        )

    def test_whitelisted_keys_are_not_registered(self):
        redactor = LogRedactor()
        register_redactions({"legId": 1, "requestId": "r1", "token_type": "Bearer"}, redactor)

        assert len(redactor) == 0

    def test_nested_paths_include_list_indices(self):
        """Labels are key paths joined with dashes."""
        redactor = LogRedactor()
        register_redactions([{"orderId": 1001}, {"orderId": 1002}], redactor)

        assert redactor.redact("1001 1002") == "<REDACTED 0-orderId> <REDACTED 1-orderId>"

    def test_booleans_and_none_are_skipped(self):
        redactor = LogRedactor()
        register_redactions({"isDayTraderId": True, "displayName": None}, redactor)

        assert len(redactor) == 0

    def test_short_values_and_prices_are_skipped(self):
        """Short scalars and fractional prices under sensitive keys are not registered."""
        redactor = LogRedactor()
        register_redactions({"accountId": 7, "orderId": "12", "bookId": 101.75}, redactor)

        assert len(redactor) == 0

    def test_quote_response_leaves_other_messages_intact(self):
        """Registering a quote does not garble unrelated log lines."""
        redactor = LogRedactor()
        register_redactions(
            {
                "AAPL": {
                    "quote": {
                        "bidPrice": 150.25,
                        "bidSize": 0,
                        "bidTime": 1710511200000,
                        "bidMICId": "XNAS",
                        "askPrice": 150.3,
                    }
                }
            },
            redactor,
        )

        assert len(redactor) == 0
        assert redactor.redact("Response: 200 for order 1000") == (
            "Response: 200 for order 1000"
        )

    def test_custom_patterns(self):
        redactor = LogRedactor()
        register_redactions(
            {"nickname": "Trading", "accountId": "ACCT1"}, redactor, bad_patterns=("nick",)
        )

        assert redactor.redact("Trading ACCT1") == "<REDACTED nickname> ACCT1"


class TestRedactingFilter:
    """Tests for RedactingFilter."""

    def test_filter_redacts_formatted_message(self):
        """Arguments are merged into the message before redaction."""
        redactor = LogRedactor()
        redactor.register("12345678", "accountNumber")
        record = logging.LogRecord(
            "src.schwab", logging.INFO, __file__, 1, "account %s", ("12345678",), None
        )

        assert RedactingFilter(redactor).filter(record) is True
        assert record.getMessage() == "account <REDACTED accountNumber>"

    def test_filter_on_logger(self, caplog):
        redactor = LogRedactor()
        redactor.register("secret-token", "access_token")
        logger = logging.getLogger("tests.redaction")
        logger.addFilter(RedactingFilter(redactor))

        try:
            with caplog.at_level(logging.INFO, logger="tests.redaction"):
                logger.info("using secret-token")
        finally:
            logger.filters.clear()

        assert caplog.records[-1].getMessage() == "using <REDACTED access_token>"

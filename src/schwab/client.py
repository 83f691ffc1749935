"""
Schwab API client with OAuth authentication.

This module provides an authenticated HTTP client for Schwab's Trading and
Market Data APIs. It handles:

- Bearer token injection via the OAuth coordinator (which refreshes tokens)
- Query parameter formatting (booleans, lists, enums, datetimes)
- Error handling and logging
- 401 response handling with clear re-authorization guidance

Each method issues exactly one request. Non-success responses raise
SchwabAPIError (or a subclass) carrying the status code and the response
body verbatim; nothing is retried. Successful responses are returned as
decoded JSON without further validation.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

import requests

from src.exceptions import SchwabValidationError
from src.oauth.coordinator import OAuthCoordinator
from src.oauth.exceptions import TokenNotAvailableError
from src.orders.generic import OrderBuilder

from . import endpoints
from .debug import LogRedactor, register_redactions
from .enums import AccountField, TransactionType
from .exceptions import (
    SchwabAPIError,
    SchwabAuthenticationError,
    SchwabInvalidSymbolError,
    SchwabRateLimitError,
)
from .models import AccountNumberMapping, SchwabAccount
from .parsers import parse_account_numbers, parse_schwab_account
from .utils import (
    build_params,
    extract_order_id,
    format_date,
    format_enum,
    format_epoch_millis,
    format_iso_datetime,
    format_list,
    require,
)

logger = logging.getLogger(__name__)

# Order and transaction queries default to this window ending now
DEFAULT_LOOKBACK_DAYS = 60

OrderLike = Union[OrderBuilder, Dict[str, Any]]


def _order_payload(order: OrderLike) -> Dict[str, Any]:
    if isinstance(order, OrderBuilder):
        return order.build()
    if not isinstance(order, dict):
        raise SchwabValidationError(
            f"Order must be an OrderBuilder or dict, got {type(order).__name__}"
        )
    require(order, "order")
    return order


class SchwabClient:
    """
    Authenticated HTTP client for Schwab APIs.

    Example:
        from src.oauth.coordinator import OAuthCoordinator
        from src.orders import equity_buy_limit
        from src.schwab.client import SchwabClient

        oauth = OAuthCoordinator()
        client = SchwabClient(oauth, timeout=30)

        account_hash = client.get_account_numbers()[0]["hashValue"]
        order_id = client.place_order(account_hash, equity_buy_limit("AAPL", 10, 150.00))

        quote = client.get_quote("AAPL")
        chain = client.get_option_chain("AAPL", contract_type="CALL", strike_count=10)
    """

    # Schwab API base URL
    BASE_URL = "https://api.schwabapi.com"

    def __init__(
        self,
        oauth_coordinator: Optional[OAuthCoordinator] = None,
        session: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        redactor: Optional[LogRedactor] = None,
    ):
        """
        Initialize Schwab API client.

        Args:
            oauth_coordinator: OAuth coordinator for authentication
                              (creates default if not provided)
            session: HTTP session to send requests through
            base_url: API base URL (default: production API)
            timeout: Seconds to wait for each request, passed to requests
                     (None waits indefinitely)
            redactor: If given, sensitive values in successful responses
                      are registered for log redaction
        """
        self.oauth = oauth_coordinator or OAuthCoordinator()
        self.session = session or requests.Session()
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self.redactor = redactor

        logger.info("SchwabClient initialized")

    def _get_full_url(self, endpoint: str) -> str:
        """
        Construct full API URL from endpoint path.

        Args:
            endpoint: API endpoint path (e.g., "/marketdata/v1/quotes")

        Returns:
            Full URL with base URL (endpoints already include version)
        """
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"
        return f"{self.base_url}{endpoint}"

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """
        Make authenticated HTTP request to Schwab API.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            endpoint: API endpoint path
            params: Query parameters
            json_data: JSON request body

        Returns:
            Response object

        Raises:
            SchwabAuthenticationError: If no token is available or the API returns 401
            SchwabRateLimitError: If rate limit exceeded (429)
            SchwabInvalidSymbolError: If symbol or resource not found (404)
            SchwabAPIError: For other non-success responses and network errors
        """
        try:
            headers = self.oauth.get_authorization_header()
        except TokenNotAvailableError as e:
            logger.error(f"Not authorized: {e}")
            raise SchwabAuthenticationError(
                "No valid OAuth tokens available. "
                "Run the authorization script: python scripts/authorize_schwab.py"
            ) from e

        headers.update({"Accept": "application/json"})
        if json_data is not None:
            headers["Content-Type"] = "application/json"

        url = self._get_full_url(endpoint)

        # Log request (excluding sensitive headers)
        logger.debug(f"{method} {url}")
        if params:
            logger.debug(f"  Params: {params}")

        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                params=params,
                json=json_data,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Network error on {method} {endpoint}: {e}")
            raise SchwabAPIError(f"Network error: {e}") from e

        status = response.status_code
        body = response.text

        if status == 401:
            logger.error(f"Authentication failed (401): {body}")
            raise SchwabAuthenticationError(
                "Authentication failed. OAuth token may be expired or revoked. "
                "Re-authorize: python scripts/authorize_schwab.py",
                status_code=status,
                body=body,
            )

        if status == 429:
            logger.warning("Rate limit exceeded (429)")
            raise SchwabRateLimitError(
                "Schwab API rate limit exceeded", status_code=status, body=body
            )

        if status == 404:
            logger.warning(f"Resource not found (404): {url}")
            raise SchwabInvalidSymbolError(
                f"Resource not found. Check symbol or endpoint: {endpoint}",
                status_code=status,
                body=body,
            )

        if not response.ok:
            logger.error(f"API error ({status}): {body}")
            raise SchwabAPIError(
                f"Schwab API error ({status}): {body}", status_code=status, body=body
            )

        logger.debug(f"Response: {status}")
        return response

    def _decode(self, response: requests.Response) -> Any:
        """Decode a JSON body, registering redactions. Empty bodies decode to None."""
        if not response.content:
            return None

        data = response.json()
        if self.redactor is not None:
            register_redactions(data, self.redactor)
        return data

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Make authenticated GET request.

        Args:
            endpoint: API endpoint path
            params: Query parameters

        Returns:
            Decoded JSON response
        """
        return self._decode(self._request("GET", endpoint, params=params))

    def post(
        self,
        endpoint: str,
        json_data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make authenticated POST request and decode the JSON response."""
        return self._decode(
            self._request("POST", endpoint, params=params, json_data=json_data)
        )

    # Accounts

    def get_account_numbers(self) -> List[Dict[str, str]]:
        """
        Get the mapping of plain account numbers to account hashes.

        Account hashes, not account numbers, identify accounts in every
        other account and order request.

        Returns:
            List of {"accountNumber": ..., "hashValue": ...}
        """
        logger.info("Fetching account numbers")
        return self.get(endpoints.ACCOUNT_NUMBERS)

    def get_account_hash(self, account_number: str) -> Optional[str]:
        """
        Look up the hash for a plain account number.

        Returns:
            Account hash, or None if the account is not linked
        """
        require(account_number, "account_number")
        mappings: List[AccountNumberMapping] = parse_account_numbers(
            self.get_account_numbers()
        )
        for mapping in mappings:
            if mapping.account_number == str(account_number):
                return mapping.hash_value
        return None

    def get_accounts(
        self, fields: Optional[List[Union[AccountField, str]]] = None
    ) -> List[Dict[str, Any]]:
        """
        Get balances (and optionally positions) of all linked accounts.

        Args:
            fields: Optional sections to include, e.g. [AccountField.POSITIONS]

        Returns:
            List of account objects
        """
        logger.info("Fetching accounts")

        try:
            return self.get(endpoints.ACCOUNTS, params=build_params(fields=fields))
        except SchwabAPIError as e:
            logger.error(f"Failed to fetch accounts: {e}")
            raise

    def get_account(
        self,
        account_hash: str,
        fields: Optional[List[Union[AccountField, str]]] = None,
    ) -> Dict[str, Any]:
        """Get balances (and optionally positions) of one account."""
        require(account_hash, "account_hash")

        endpoint = endpoints.ACCOUNT_DETAILS.format(accountHash=account_hash)
        return self.get(endpoint, params=build_params(fields=fields))

    def get_account_positions(self, account_hash: str) -> SchwabAccount:
        """
        Get account details including positions for a specific account.

        Args:
            account_hash: Account hash from get_account_numbers()

        Returns:
            SchwabAccount object with positions

        Example:
            account_hash = client.get_account_numbers()[0]["hashValue"]
            account = client.get_account_positions(account_hash)
            print(f"Found {len(account.positions)} positions")
        """
        logger.info("Fetching account positions")

        try:
            response_data = self.get_account(account_hash, fields=[AccountField.POSITIONS])
            account = parse_schwab_account(response_data)

            logger.info(f"Retrieved {len(account.positions)} position(s)")
            return account

        except SchwabAPIError as e:
            logger.error(f"Failed to fetch positions: {e}")
            raise

    # Orders

    def _order_query_params(
        self,
        max_results: Optional[int],
        from_entered_datetime: Optional[datetime],
        to_entered_datetime: Optional[datetime],
        status: Any,
    ) -> Dict[str, Any]:
        if to_entered_datetime is None:
            to_entered_datetime = datetime.now(timezone.utc)
        if from_entered_datetime is None:
            from_entered_datetime = to_entered_datetime - timedelta(days=DEFAULT_LOOKBACK_DAYS)

        return build_params(
            maxResults=max_results,
            fromEnteredTime=format_iso_datetime(from_entered_datetime, "from_entered_datetime"),
            toEnteredTime=format_iso_datetime(to_entered_datetime, "to_entered_datetime"),
            status=status,
        )

    def get_order(self, order_id: Union[int, str], account_hash: str) -> Dict[str, Any]:
        """Get a specific order by ID."""
        require(order_id, "order_id")
        require(account_hash, "account_hash")

        endpoint = endpoints.ORDER_DETAILS.format(accountHash=account_hash, orderId=order_id)
        return self.get(endpoint)

    def cancel_order(self, order_id: Union[int, str], account_hash: str) -> None:
        """
        Cancel a working order.

        Raises:
            SchwabAPIError: If the order cannot be canceled
        """
        require(order_id, "order_id")
        require(account_hash, "account_hash")

        logger.info(f"Canceling order {order_id}")
        endpoint = endpoints.ORDER_DETAILS.format(accountHash=account_hash, orderId=order_id)
        self._request("DELETE", endpoint)

    def get_orders_for_account(
        self,
        account_hash: str,
        max_results: Optional[int] = None,
        from_entered_datetime: Optional[datetime] = None,
        to_entered_datetime: Optional[datetime] = None,
        status: Any = None,
    ) -> List[Dict[str, Any]]:
        """
        Get orders for one account.

        Args:
            account_hash: Account hash
            max_results: Maximum number of orders to return
            from_entered_datetime: Earliest entry time (default: 60 days before
                                   to_entered_datetime)
            to_entered_datetime: Latest entry time (default: now)
            status: Only return orders with this OrderStatus

        Returns:
            List of order objects
        """
        require(account_hash, "account_hash")

        params = self._order_query_params(
            max_results, from_entered_datetime, to_entered_datetime, status
        )
        endpoint = endpoints.ORDERS.format(accountHash=account_hash)
        return self.get(endpoint, params=params)

    def get_orders_for_all_linked_accounts(
        self,
        max_results: Optional[int] = None,
        from_entered_datetime: Optional[datetime] = None,
        to_entered_datetime: Optional[datetime] = None,
        status: Any = None,
    ) -> List[Dict[str, Any]]:
        """Get orders for all linked accounts. Filters as in get_orders_for_account."""
        params = self._order_query_params(
            max_results, from_entered_datetime, to_entered_datetime, status
        )
        return self.get(endpoints.ALL_ORDERS, params=params)

    def place_order(self, account_hash: str, order: OrderLike) -> Optional[int]:
        """
        Place an order.

        Args:
            account_hash: Account hash
            order: OrderBuilder or order payload dict

        Returns:
            ID of the new order, parsed from the Location header
            (None if the response carries no Location header)
        """
        require(account_hash, "account_hash")
        payload = _order_payload(order)

        logger.info(f"Placing {payload.get('orderStrategyType')} order")
        endpoint = endpoints.ORDERS.format(accountHash=account_hash)
        response = self._request("POST", endpoint, json_data=payload)

        order_id = extract_order_id(response, account_hash)
        logger.info(f"Order placed: {order_id}")
        return order_id

    def replace_order(
        self, account_hash: str, order_id: Union[int, str], order: OrderLike
    ) -> Optional[int]:
        """
        Replace a working order. The old order is canceled and a new one created.

        Returns:
            ID of the replacement order, parsed from the Location header
        """
        require(account_hash, "account_hash")
        require(order_id, "order_id")
        payload = _order_payload(order)

        logger.info(f"Replacing order {order_id}")
        endpoint = endpoints.ORDER_DETAILS.format(accountHash=account_hash, orderId=order_id)
        response = self._request("PUT", endpoint, json_data=payload)
        return extract_order_id(response, account_hash)

    def preview_order(self, account_hash: str, order: OrderLike) -> Dict[str, Any]:
        """Ask the API to validate an order and estimate commissions without placing it."""
        require(account_hash, "account_hash")
        payload = _order_payload(order)

        endpoint = endpoints.ORDER_PREVIEW.format(accountHash=account_hash)
        return self.post(endpoint, json_data=payload)

    # Transactions

    def get_transactions(
        self,
        account_hash: str,
        start_datetime: Optional[datetime] = None,
        end_datetime: Optional[datetime] = None,
        transaction_types: Optional[List[Union[TransactionType, str]]] = None,
        symbol: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Get transactions for an account.

        Args:
            account_hash: Account hash
            start_datetime: Start of range (default: 60 days before end_datetime)
            end_datetime: End of range (default: now)
            transaction_types: Types to include (default: all types)
            symbol: Only return transactions for this symbol

        Returns:
            List of transaction objects
        """
        require(account_hash, "account_hash")

        if end_datetime is None:
            end_datetime = datetime.now(timezone.utc)
        if start_datetime is None:
            start_datetime = end_datetime - timedelta(days=DEFAULT_LOOKBACK_DAYS)
        if transaction_types is None:
            transaction_types = list(TransactionType)

        params = build_params(
            startDate=format_iso_datetime(start_datetime, "start_datetime"),
            endDate=format_iso_datetime(end_datetime, "end_datetime"),
            types=format_list(transaction_types),
            symbol=symbol,
        )
        endpoint = endpoints.TRANSACTIONS.format(accountHash=account_hash)
        return self.get(endpoint, params=params)

    def get_transaction(
        self, account_hash: str, transaction_id: Union[int, str]
    ) -> Dict[str, Any]:
        require(account_hash, "account_hash")
        require(transaction_id, "transaction_id")

        endpoint = endpoints.TRANSACTION_DETAILS.format(
            accountHash=account_hash, transactionId=transaction_id
        )
        return self.get(endpoint)

    # User preferences

    def get_user_preferences(self) -> Dict[str, Any]:
        """Get user preferences, including streamer connection info."""
        return self.get(endpoints.USER_PREFERENCE)

    # Market data

    def get_quote(self, symbol: str, fields: Optional[List[Any]] = None) -> Dict[str, Any]:
        """
        Get a quote for a single symbol.

        Args:
            symbol: Equity ticker, index ("$SPX") or option symbol
            fields: Quote sections to return (QuoteField members)

        Returns:
            {symbol: {"quote": {...}, "fundamental": {...}, ...}}

        Raises:
            SchwabInvalidSymbolError: If symbol not found
        """
        require(symbol, "symbol")

        logger.info(f"Fetching quote for {symbol}")
        endpoint = endpoints.MARKETDATA_QUOTE.format(symbol=quote(symbol, safe=""))
        return self.get(endpoint, params=build_params(fields=fields))

    def get_quotes(
        self,
        symbols: Union[str, List[str]],
        fields: Optional[List[Any]] = None,
        indicative: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """
        Get quotes for several symbols in one request.

        Args:
            symbols: Symbols to quote
            fields: Quote sections to return (QuoteField members)
            indicative: Include indicative quotes for ETFs

        Returns:
            Mapping of symbol to quote object
        """
        require(symbols, "symbols")

        params = build_params(
            symbols=format_list(symbols), fields=fields, indicative=indicative
        )
        return self.get(endpoints.MARKETDATA_QUOTES, params=params)

    def get_option_chain(
        self,
        symbol: str,
        contract_type: Any = None,
        strike_count: Optional[int] = None,
        include_underlying_quote: Optional[bool] = None,
        strategy: Any = None,
        interval: Optional[float] = None,
        strike: Optional[float] = None,
        strike_range: Any = None,
        from_date: Optional[Union[date, datetime]] = None,
        to_date: Optional[Union[date, datetime]] = None,
        volatility: Optional[float] = None,
        underlying_price: Optional[float] = None,
        interest_rate: Optional[float] = None,
        days_to_expiration: Optional[int] = None,
        exp_month: Any = None,
        option_type: Optional[str] = None,
        entitlement: Any = None,
    ) -> Dict[str, Any]:
        """
        Get the option chain for an underlying.

        Args:
            symbol: Underlying symbol (e.g., "AAPL")
            contract_type: OptionChainContractType (CALL, PUT or ALL)
            strike_count: Number of strikes above and below the money
            include_underlying_quote: Include the underlying quote
            strategy: OptionChainStrategy; non-SINGLE strategies use
                      interval, volatility, underlying_price, interest_rate
                      and days_to_expiration
            strike: Only return this strike
            strike_range: OptionChainRange
            from_date: Earliest expiration date
            to_date: Latest expiration date
            exp_month: ExpirationMonth
            option_type: Option type filter
            entitlement: Entitlement of the requesting user

        Returns:
            Chain with "callExpDateMap" and "putExpDateMap" keyed by
            "YYYY-MM-DD:days" then strike

        Example:
            chain = client.get_option_chain("AAPL", contract_type="CALL", strike_count=10)
        """
        require(symbol, "symbol")

        params = build_params(
            symbol=symbol,
            contractType=contract_type,
            strikeCount=strike_count,
            includeUnderlyingQuote=include_underlying_quote,
            strategy=strategy,
            interval=interval,
            strike=strike,
            range=strike_range,
            fromDate=format_date(from_date, "from_date") if from_date is not None else None,
            toDate=format_date(to_date, "to_date") if to_date is not None else None,
            volatility=volatility,
            underlyingPrice=underlying_price,
            interestRate=interest_rate,
            daysToExpiration=days_to_expiration,
            expMonth=exp_month,
            optionType=option_type,
            entitlement=entitlement,
        )

        logger.info(f"Fetching options chain for {symbol}")
        return self.get(endpoints.MARKETDATA_OPTION_CHAINS, params=params)

    def get_option_expiration_chain(self, symbol: str) -> Dict[str, Any]:
        """Get the expiration dates listed for an underlying."""
        require(symbol, "symbol")
        return self.get(endpoints.MARKETDATA_OPTION_EXPIRATION, params={"symbol": symbol})

    def get_price_history(
        self,
        symbol: str,
        period_type: Any = None,
        period: Optional[int] = None,
        frequency_type: Any = None,
        frequency: Optional[int] = None,
        start_datetime: Optional[datetime] = None,
        end_datetime: Optional[datetime] = None,
        need_extended_hours_data: Optional[bool] = None,
        need_previous_close: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """
        Get historical candles for a symbol.

        Args:
            symbol: Symbol (e.g., "AAPL")
            period_type: PeriodType (day, month, year, ytd)
            period: Number of periods
            frequency_type: FrequencyType (minute, daily, weekly, monthly)
            frequency: Candle size in frequency_type units
            start_datetime: Start of range, overrides period
            end_datetime: End of range
            need_extended_hours_data: Include extended hours candles
            need_previous_close: Include the previous close

        Returns:
            {"symbol": ..., "candles": [{"open", "high", "low", "close",
            "volume", "datetime"}], "empty": bool}
        """
        require(symbol, "symbol")

        params = build_params(
            symbol=symbol,
            periodType=period_type,
            period=period,
            frequencyType=frequency_type,
            frequency=frequency,
            startDate=(
                format_epoch_millis(start_datetime, "start_datetime")
                if start_datetime is not None
                else None
            ),
            endDate=(
                format_epoch_millis(end_datetime, "end_datetime")
                if end_datetime is not None
                else None
            ),
            needExtendedHoursData=need_extended_hours_data,
            needPreviousClose=need_previous_close,
        )

        logger.info(f"Fetching price history for {symbol}")
        return self.get(endpoints.MARKETDATA_PRICE_HISTORY, params=params)

    def get_movers(
        self, index: Any, sort_order: Any = None, frequency: Any = None
    ) -> Dict[str, Any]:
        """
        Get the top movers of an index.

        Args:
            index: MoversIndex (e.g., MoversIndex.SPX)
            sort_order: MoversSort
            frequency: MoversFrequency, minimum percent change
        """
        require(index, "index")

        endpoint = endpoints.MARKETDATA_MOVERS.format(
            index=quote(str(format_enum(index)), safe="")
        )
        return self.get(endpoint, params=build_params(sort=sort_order, frequency=frequency))

    def get_market_hours(
        self, markets: Any, market_date: Optional[Union[date, datetime]] = None
    ) -> Dict[str, Any]:
        """
        Get market hours for one or more markets.

        Args:
            markets: Market or list of Markets
            market_date: Day to query (default: today)
        """
        require(markets, "markets")

        params = build_params(
            markets=format_list(markets),
            date=format_date(market_date, "market_date") if market_date is not None else None,
        )
        return self.get(endpoints.MARKETDATA_MARKET_HOURS, params=params)

    def get_instruments(
        self, symbols: Union[str, List[str]], projection: Any
    ) -> Dict[str, Any]:
        """
        Search for instruments.

        Args:
            symbols: Symbol, list of symbols or search pattern
            projection: InstrumentProjection
        """
        require(symbols, "symbols")
        require(projection, "projection")

        params = build_params(symbol=format_list(symbols), projection=projection)
        return self.get(endpoints.MARKETDATA_INSTRUMENTS, params=params)

    def get_instrument_by_cusip(self, cusip: str) -> Dict[str, Any]:
        """Get an instrument by CUSIP."""
        require(cusip, "cusip")
        return self.get(endpoints.MARKETDATA_INSTRUMENT.format(cusip=cusip))

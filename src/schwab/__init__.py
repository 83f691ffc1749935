"""
Schwab API client module.

This module provides integration with Charles Schwab's Trading and Market Data APIs
using OAuth 2.0 authentication. It includes:

- SchwabClient: Authenticated HTTP client for API calls
- Account, order, transaction and user preference endpoints
- Market data endpoints: quotes, option chains, price history, movers,
  market hours, instruments
- Data models: SchwabAccount, SchwabPosition, AccountNumberMapping
- LogRedactor: masks secrets and account identifiers in log output

Authentication is handled automatically via the OAuth module.
"""

from .client import SchwabClient
from .debug import LogRedactor, RedactingFilter, register_redactions
from .exceptions import (
    SchwabAPIError,
    SchwabAuthenticationError,
    SchwabInvalidSymbolError,
    SchwabRateLimitError,
)
from .models import (
    AccountNumberMapping,
    SchwabAccount,
    SchwabAccountBalances,
    SchwabPosition,
)
from .utils import extract_order_id

__all__ = [
    "SchwabClient",
    "LogRedactor",
    "RedactingFilter",
    "register_redactions",
    "extract_order_id",
    "SchwabAPIError",
    "SchwabAuthenticationError",
    "SchwabInvalidSymbolError",
    "SchwabRateLimitError",
    "AccountNumberMapping",
    "SchwabAccount",
    "SchwabAccountBalances",
    "SchwabPosition",
]

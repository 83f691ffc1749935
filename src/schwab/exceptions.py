"""Exceptions for Schwab API client."""

from typing import Optional

from src.exceptions import SchwabError


class SchwabAPIError(SchwabError):
    """
    Non-success response from the Schwab API.

    Attributes:
        status_code: HTTP status code (None when no response was received)
        body: Raw response body text, verbatim
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class SchwabAuthenticationError(SchwabAPIError):
    """
    Authentication failure with Schwab API.

    Raised for 401 responses and when no access token is available.
    The OAuth token is invalid, expired, or revoked and the user needs
    to re-authorize the application.

    Resolution:
        1. Run: python scripts/authorize_schwab.py
        2. Complete the authorization flow in your browser
        3. Try again
    """

    pass


class SchwabRateLimitError(SchwabAPIError):
    """API rate limit exceeded (429)."""

    pass


class SchwabInvalidSymbolError(SchwabAPIError):
    """Unknown symbol or resource (404)."""

    pass

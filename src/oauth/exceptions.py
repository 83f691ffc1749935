"""
OAuth exception classes for Schwab API integration.

This module defines the exception hierarchy for all OAuth-related errors,
providing clear error messages and recovery guidance.
"""

from src.exceptions import MalformedInputError, SchwabError


class SchwabOAuthError(SchwabError):
    """Base exception for all Schwab OAuth errors."""

    pass


class ConfigurationError(SchwabOAuthError):
    """OAuth configuration error (missing or invalid configuration)."""

    pass


class AuthorizationError(SchwabOAuthError):
    """OAuth authorization flow error."""

    pass


class TokenExchangeError(SchwabOAuthError):
    """Failed to exchange authorization code for tokens."""

    pass


class TokenRefreshError(SchwabOAuthError):
    """Failed to refresh access token using refresh token."""

    pass


class TokenNotAvailableError(SchwabOAuthError):
    """No valid tokens available (need to authorize first)."""

    pass


class TokenStorageError(SchwabOAuthError):
    """Token storage operation failed (file I/O error)."""

    pass


class StaleTokenFormatError(SchwabOAuthError, MalformedInputError):
    """
    Token file predates creation timestamps.

    The token age cannot be determined, so the file must be deleted and
    the application re-authorized.
    """

    pass

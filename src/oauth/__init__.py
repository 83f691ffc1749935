"""
OAuth 2.0 module for Schwab API integration.

This module provides the OAuth 2.0 Authorization Code flow for
authenticating with Charles Schwab's Trading and Market Data APIs.

Tokens are stored in a JSON file together with the time they were first
obtained. Refresh tokens expire after 7 days, so the coordinator re-runs
the login flow once the token file is older than max_token_age.

Public API:
    SchwabOAuthConfig: OAuth configuration management
    TokenData: Token data structure
    TokenMetadata: Token plus creation timestamp
    TokenStorage: File-based token persistence
    TokenManager: Token lifecycle management
    OAuthCoordinator: High-level OAuth interface

Exceptions:
    SchwabOAuthError: Base exception
    ConfigurationError: Configuration error
    AuthorizationError: Authorization flow error
    TokenExchangeError: Token exchange failed
    TokenRefreshError: Token refresh failed
    TokenNotAvailableError: No valid tokens
    TokenStorageError: Storage operation failed
    StaleTokenFormatError: Token file written by an older version
"""

from .auth_server import (
    AuthorizationResult,
    OAuthCallbackServer,
    generate_authorization_url,
    parse_redirect_url,
    run_authorization_flow,
    run_manual_flow,
)
from .config import SchwabOAuthConfig
from .coordinator import OAuthCoordinator
from .exceptions import (
    AuthorizationError,
    ConfigurationError,
    SchwabOAuthError,
    StaleTokenFormatError,
    TokenExchangeError,
    TokenNotAvailableError,
    TokenRefreshError,
    TokenStorageError,
)
from .token_manager import TokenManager
from .token_storage import TokenData, TokenMetadata, TokenStorage

__all__ = [
    # Configuration
    "SchwabOAuthConfig",
    # Token Storage
    "TokenData",
    "TokenMetadata",
    "TokenStorage",
    # Token Manager
    "TokenManager",
    # Login flows
    "OAuthCallbackServer",
    "AuthorizationResult",
    "generate_authorization_url",
    "parse_redirect_url",
    "run_authorization_flow",
    "run_manual_flow",
    # Coordinator
    "OAuthCoordinator",
    # Exceptions
    "SchwabOAuthError",
    "ConfigurationError",
    "AuthorizationError",
    "TokenExchangeError",
    "TokenRefreshError",
    "TokenNotAvailableError",
    "TokenStorageError",
    "StaleTokenFormatError",
]

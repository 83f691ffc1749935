"""
Token manager for Schwab OAuth integration.

This module manages the OAuth token lifecycle including:
- Token exchange (authorization code → access/refresh tokens)
- Token refresh (refresh token → new access token)
- Automatic refresh before expiry
- Token age and status checks

Each exchange or refresh is a single request to the token endpoint;
failures are raised to the caller without retrying. Refreshes are
serialized so that concurrent callers of get_valid_access_token()
trigger at most one refresh request.
"""

import logging
import threading
import time
from base64 import b64encode
from typing import Any, Dict, Optional

import requests

from .config import SchwabOAuthConfig
from .exceptions import TokenExchangeError, TokenNotAvailableError, TokenRefreshError
from .token_storage import TokenData, TokenMetadata, TokenStorage

logger = logging.getLogger(__name__)


class TokenManager:
    """
    Manages OAuth token lifecycle.

    Responsibilities:
    - Exchange authorization codes for tokens
    - Refresh access tokens before expiry, keeping the creation timestamp
    - Provide valid access tokens to API clients
    - Track token status and age
    """

    def __init__(self, config: SchwabOAuthConfig, storage: Optional[TokenStorage] = None):
        """
        Initialize token manager.

        Args:
            config: OAuth configuration
            storage: Token storage (creates default if not provided)
        """
        self.config = config
        self.storage = storage or TokenStorage(config.token_file)
        self._cached: Optional[TokenMetadata] = None
        self._refresh_lock = threading.Lock()

    def _auth_headers(self) -> Dict[str, str]:
        credentials = f"{self.config.api_key}:{self.config.app_secret}"
        auth_header = b64encode(credentials.encode()).decode()
        return {
            "Authorization": f"Basic {auth_header}",
            "Content-Type": "application/x-www-form-urlencoded",
        }

    def exchange_code_for_tokens(self, authorization_code: str) -> TokenData:
        """
        Exchange authorization code for access and refresh tokens.

        This is called once after the user authorizes the application.
        The new token file is stamped with the current time.

        Args:
            authorization_code: Code received from OAuth callback

        Returns:
            TokenData with access and refresh tokens

        Raises:
            TokenExchangeError: If exchange fails
        """
        logger.info("Exchanging authorization code for tokens")

        try:
            response = requests.post(
                self.config.token_url,
                headers=self._auth_headers(),
                data={
                    "grant_type": "authorization_code",
                    "code": authorization_code,
                    "redirect_uri": self.config.callback_url,
                },
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Network error during token exchange: {e}")
            raise TokenExchangeError(f"Network error during token exchange: {e}") from e

        if response.status_code != 200:
            logger.error(f"Token exchange failed: {response.status_code} - {response.text}")
            raise TokenExchangeError(
                f"Token exchange failed with status {response.status_code}. "
                f"Check that your api_key, app_secret and callback_url are correct."
            )

        try:
            token_data = TokenData.from_dict(response.json())
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Invalid response from token endpoint: {e}")
            raise TokenExchangeError(f"Invalid response from token endpoint: {e}") from e

        metadata = TokenMetadata.create(token_data)
        self.storage.save(metadata)
        self._cached = metadata

        logger.info("Successfully obtained and saved tokens")
        return token_data

    def refresh_tokens(self) -> TokenData:
        """
        Refresh access token using refresh token.

        The refreshed token is written with the original creation
        timestamp.

        Returns:
            New TokenData with fresh access token

        Raises:
            TokenRefreshError: If refresh fails
            TokenNotAvailableError: If no refresh token available
        """
        with self._refresh_lock:
            return self._refresh_locked()

    def _refresh_locked(self) -> TokenData:
        metadata = self._get_current_metadata()
        if not metadata:
            raise TokenNotAvailableError(
                "No refresh token available. Run authorization flow first."
            )

        current_token = metadata.token
        logger.info("Refreshing access token")

        try:
            response = requests.post(
                self.config.token_url,
                headers=self._auth_headers(),
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": current_token.refresh_token,
                },
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Network error during token refresh: {e}")
            raise TokenRefreshError(f"Network error during token refresh: {e}") from e

        if response.status_code != 200:
            logger.error(f"Token refresh failed: {response.status_code} - {response.text}")
            raise TokenRefreshError(
                f"Token refresh failed with status {response.status_code}. "
                f"Your refresh token may have expired. "
                f"Please run the authorization flow again."
            )

        try:
            data = response.json()
            # Refresh token may or may not be returned; keep existing if not
            data.setdefault("refresh_token", current_token.refresh_token)
            data.setdefault("scope", current_token.scope)
            token_data = TokenData.from_dict(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Invalid response from token endpoint: {e}")
            raise TokenRefreshError(f"Invalid response from token endpoint: {e}") from e

        refreshed = metadata.with_token(token_data)
        self.storage.save(refreshed)
        self._cached = refreshed

        logger.info("Successfully refreshed tokens")
        return token_data

    def get_valid_access_token(self) -> str:
        """
        Get a valid access token, refreshing if necessary.

        This is the main method used by API clients. It automatically:
        - Loads tokens from storage
        - Checks expiry
        - Refreshes if needed (once, however many threads are waiting)
        - Returns valid access token

        Returns:
            Valid access token string

        Raises:
            TokenNotAvailableError: If no valid token and can't refresh
                                   (need to run authorization flow)
        """
        metadata = self._get_current_metadata()
        if not metadata:
            raise TokenNotAvailableError("No tokens available. Run authorization flow first.")

        buffer = self.config.refresh_buffer_seconds
        if not metadata.token.expires_within(buffer):
            return metadata.token.access_token

        with self._refresh_lock:
            # Another thread may have refreshed while we waited
            metadata = self._get_current_metadata()
            if metadata and not metadata.token.expires_within(buffer):
                return metadata.token.access_token

            logger.info(f"Token expires soon (within {buffer}s), refreshing...")
            return self._refresh_locked().access_token

    def get_token_age(self) -> Optional[int]:
        """
        Seconds since the stored token was first obtained.

        Returns:
            Token age, or None if there is no token
        """
        metadata = self._get_current_metadata()
        return metadata.token_age() if metadata else None

    def is_authorized(self) -> bool:
        """
        Check if we have valid (or refreshable) tokens.

        Returns:
            True if authorized (have tokens), False otherwise
        """
        return self._get_current_metadata() is not None

    def get_token_status(self) -> Dict[str, Any]:
        """
        Get current token status for diagnostics.

        Returns:
            Dictionary with token status information:
            - authorized: Whether we have tokens
            - expired: Whether access token is expired (if authorized)
            - expires_at: When access token expires (if authorized)
            - expires_in_seconds: Seconds until expiry (if authorized)
            - token_age_seconds: Seconds since authorization (if authorized)
            - scope: OAuth scopes granted (if authorized)
        """
        metadata = self._get_current_metadata()

        if not metadata:
            return {"authorized": False, "message": "No tokens stored"}

        token = metadata.token
        return {
            "authorized": True,
            "expired": token.is_expired,
            "expires_at": token.expires_at_datetime.isoformat(),
            "expires_in_seconds": max(0, token.expires_at - time.time()),
            "creation_timestamp": metadata.creation_timestamp,
            "token_age_seconds": metadata.token_age(),
            "scope": token.scope,
        }

    def revoke(self) -> None:
        """
        Delete stored tokens (local revocation).

        This removes tokens from local storage. It does NOT revoke
        tokens on Schwab's servers.

        After revocation, authorization flow must be run again.
        """
        self.storage.delete()
        self._cached = None
        logger.info("Tokens revoked (local)")

    def _get_current_metadata(self) -> Optional[TokenMetadata]:
        """
        Get current token metadata from cache or storage.

        Raises:
            StaleTokenFormatError: If the token file has no creation timestamp
        """
        if self._cached:
            return self._cached

        self._cached = self.storage.load()
        return self._cached

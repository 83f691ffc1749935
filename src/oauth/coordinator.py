"""
OAuth coordinator for high-level OAuth operations.

This module provides the main interface for OAuth operations in the
application. It coordinates the login flows, token management and token
age checks, and provides simple methods for obtaining valid access tokens.
"""

import logging
from typing import Optional

from .auth_server import AuthorizationResult, run_authorization_flow, run_manual_flow
from .config import SchwabOAuthConfig
from .exceptions import StaleTokenFormatError
from .token_manager import TokenManager
from .token_storage import TokenStorage

logger = logging.getLogger(__name__)


class OAuthCoordinator:
    """
    High-level coordinator for OAuth operations.

    Example:
        coordinator = OAuthCoordinator()
        if coordinator.ensure_authorized():
            headers = coordinator.get_authorization_header()
    """

    def __init__(
        self,
        config: Optional[SchwabOAuthConfig] = None,
        token_manager: Optional[TokenManager] = None,
    ):
        """
        Initialize OAuth coordinator.

        Args:
            config: OAuth configuration (loads from environment if not provided)
            token_manager: Token manager (created from config if not provided)
        """
        self.config = config or SchwabOAuthConfig.from_env()
        if token_manager is None:
            token_manager = TokenManager(self.config, TokenStorage(self.config.token_file))
        self.token_manager = token_manager

    def needs_authorization(self) -> bool:
        """
        Check whether the login flow has to run before API calls.

        True when there is no token, the token file predates creation
        timestamps, or the token is at least max_token_age seconds old.
        """
        try:
            age = self.token_manager.get_token_age()
        except StaleTokenFormatError:
            logger.warning("Token file has an outdated format, re-authorization required")
            return True

        if age is None:
            return True

        max_age = self.config.max_token_age
        if max_age is not None and age >= max_age:
            logger.info(f"Token is {age}s old (limit {max_age}s), re-authorization required")
            return True

        return False

    def ensure_authorized(self, auto_open_browser: bool = True, manual: bool = False) -> bool:
        """
        Ensure we have usable authorization, running a login flow if needed.

        Args:
            auto_open_browser: Whether to auto-open browser for auth
            manual: Use the copy-and-paste flow instead of the callback server

        Returns:
            True if authorized (or authorization succeeded), False if failed
        """
        if not self.needs_authorization():
            logger.info("Already authorized")
            return True

        logger.info("Starting authorization flow")
        return self.run_authorization_flow(open_browser=auto_open_browser, manual=manual)

    def run_authorization_flow(self, open_browser: bool = True, manual: bool = False) -> bool:
        """
        Run a login flow and exchange the resulting code for tokens.

        Args:
            open_browser: Whether to automatically open browser
            manual: Use the copy-and-paste flow instead of the callback server

        Returns:
            True if authorization succeeded, False otherwise
        """
        if manual:
            result: AuthorizationResult = run_manual_flow(self.config)
        else:
            result = run_authorization_flow(self.config, open_browser=open_browser, timeout=300)

        if not result.success:
            logger.error(
                f"Authorization failed: {result.error} - {result.error_description}"
            )
            return False

        self.token_manager.exchange_code_for_tokens(result.authorization_code)
        logger.info("Authorization complete, tokens saved")
        return True

    def get_access_token(self) -> str:
        """
        Get a valid access token for API calls.

        Raises:
            TokenNotAvailableError: If not authorized
        """
        return self.token_manager.get_valid_access_token()

    def get_authorization_header(self) -> dict:
        """
        Get Authorization header dict for API requests.

        Returns:
            Dict with Authorization header: {"Authorization": "Bearer <token>"}

        Raises:
            TokenNotAvailableError: If not authorized
        """
        token = self.get_access_token()
        return {"Authorization": f"Bearer {token}"}

    def is_authorized(self) -> bool:
        return self.token_manager.is_authorized()

    def get_status(self) -> dict:
        """
        Get current authorization status for diagnostics.

        Adds max_token_age and needs_reauthorization to the token
        manager's status.
        """
        status = self.token_manager.get_token_status()
        if status.get("authorized"):
            status["max_token_age"] = self.config.max_token_age
            status["needs_reauthorization"] = self.needs_authorization()
        return status

    def revoke(self) -> None:
        """
        Revoke current authorization.

        This deletes the locally stored tokens. It does NOT revoke the
        tokens on Schwab's servers.
        """
        self.token_manager.revoke()
        logger.info("Authorization revoked locally. Re-authorization required.")

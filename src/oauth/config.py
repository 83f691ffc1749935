"""
OAuth configuration for Schwab API integration.

This module provides configuration management for OAuth 2.0 authentication
with Charles Schwab's APIs. Configuration can be loaded from environment
variables or provided programmatically.
"""

import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from .exceptions import ConfigurationError

# Refresh tokens expire after 7 days; re-authorize a little before that
DEFAULT_MAX_TOKEN_AGE = int(6.5 * 24 * 60 * 60)

DEFAULT_CALLBACK_URL = "https://127.0.0.1:8182"
DEFAULT_TOKEN_FILE = ".schwab_token.json"


@dataclass
class SchwabOAuthConfig:
    """
    Configuration for Schwab OAuth 2.0.

    Attributes:
        api_key: App key from the Schwab Developer Portal
        app_secret: App secret from the Schwab Developer Portal
        callback_url: Callback URL registered for the app (must be https)
        authorization_url: Schwab OAuth authorization endpoint
        token_url: Schwab OAuth token endpoint
        token_file: Path to the token file
        ssl_cert_path: Certificate for the local callback server
                       (None uses a generated self-signed certificate)
        ssl_key_path: Private key matching ssl_cert_path
        refresh_buffer_seconds: Refresh access tokens this many seconds before expiry
        max_token_age: Re-authorize when the token file is older than this
                       many seconds (None disables the check)
        timeout: Seconds to wait for token endpoint requests (None waits indefinitely)
    """

    # Required - from Schwab Dev Portal
    api_key: str
    app_secret: str

    callback_url: str = DEFAULT_CALLBACK_URL

    # Schwab OAuth endpoints
    authorization_url: str = "https://api.schwabapi.com/v1/oauth/authorize"
    token_url: str = "https://api.schwabapi.com/v1/oauth/token"

    token_file: str = DEFAULT_TOKEN_FILE

    # Callback server TLS
    ssl_cert_path: Optional[str] = None
    ssl_key_path: Optional[str] = None

    refresh_buffer_seconds: int = 300  # Refresh 5 min before expiry
    max_token_age: Optional[int] = DEFAULT_MAX_TOKEN_AGE
    timeout: Optional[float] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.api_key:
            raise ConfigurationError("api_key cannot be empty")

        if not self.app_secret:
            raise ConfigurationError("app_secret cannot be empty")

        parsed = urlparse(self.callback_url)
        if parsed.scheme != "https" or not parsed.hostname:
            raise ConfigurationError(
                f"callback_url must be an https URL, got {self.callback_url!r}"
            )

        if bool(self.ssl_cert_path) != bool(self.ssl_key_path):
            raise ConfigurationError(
                "ssl_cert_path and ssl_key_path must be set together"
            )

        if self.refresh_buffer_seconds < 0:
            raise ConfigurationError("refresh_buffer_seconds cannot be negative")

        if self.max_token_age is not None and self.max_token_age <= 0:
            raise ConfigurationError(
                f"max_token_age must be positive, got {self.max_token_age}"
            )

    @property
    def callback_host(self) -> str:
        return urlparse(self.callback_url).hostname

    @property
    def callback_port(self) -> int:
        """Callback port (443 when the URL has none)."""
        return urlparse(self.callback_url).port or 443

    @property
    def callback_path(self) -> str:
        return urlparse(self.callback_url).path or "/"

    @classmethod
    def from_env(cls) -> "SchwabOAuthConfig":
        """
        Load configuration from environment variables.

        Required environment variables:
            SCHWAB_API_KEY: App key
            SCHWAB_APP_SECRET: App secret

        Optional environment variables:
            SCHWAB_CALLBACK_URL: Callback URL (default: https://127.0.0.1:8182)
            SCHWAB_TOKEN_FILE: Token file path (default: .schwab_token.json)
            SCHWAB_MAX_TOKEN_AGE: Maximum token age in seconds (default: 6.5 days)
            SCHWAB_SSL_CERT_PATH: Callback server certificate
            SCHWAB_SSL_KEY_PATH: Callback server private key

        Returns:
            SchwabOAuthConfig instance

        Raises:
            ConfigurationError: If required environment variables are missing
                                or a value is invalid
        """
        api_key = os.environ.get("SCHWAB_API_KEY")
        app_secret = os.environ.get("SCHWAB_APP_SECRET")

        if not api_key or not app_secret:
            raise ConfigurationError(
                "Missing Schwab OAuth credentials. Set environment variables:\n"
                "  SCHWAB_API_KEY=your_app_key\n"
                "  SCHWAB_APP_SECRET=your_app_secret\n"
                "\n"
                "Get credentials from: https://developer.schwab.com"
            )

        max_token_age = os.environ.get("SCHWAB_MAX_TOKEN_AGE")
        try:
            max_token_age = int(max_token_age) if max_token_age else DEFAULT_MAX_TOKEN_AGE
        except ValueError:
            raise ConfigurationError(
                f"SCHWAB_MAX_TOKEN_AGE must be an integer, got {max_token_age!r}"
            ) from None

        return cls(
            api_key=api_key,
            app_secret=app_secret,
            callback_url=os.environ.get("SCHWAB_CALLBACK_URL", DEFAULT_CALLBACK_URL),
            token_file=os.environ.get("SCHWAB_TOKEN_FILE", DEFAULT_TOKEN_FILE),
            ssl_cert_path=os.environ.get("SCHWAB_SSL_CERT_PATH"),
            ssl_key_path=os.environ.get("SCHWAB_SSL_KEY_PATH"),
            max_token_age=max_token_age,
        )

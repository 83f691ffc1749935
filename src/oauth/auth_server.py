"""
OAuth login flows for Schwab API integration.

Two ways of obtaining an authorization code are provided:

- run_authorization_flow(): starts a temporary HTTPS server on the callback
  URL, opens the browser and waits for Schwab to redirect back.
- run_manual_flow(): prints the authorization URL and asks the user to paste
  the URL they were redirected to. Useful on headless machines.

Both verify the OAuth ``state`` parameter. The callback server only binds to
127.0.0.1, so the registered callback URL must point at that address.
"""

import logging
import secrets
import threading
import time
import webbrowser
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union
from urllib.parse import parse_qs, urlencode, urlparse

from flask import Flask, Response, request

from .config import SchwabOAuthConfig
from .exceptions import AuthorizationError, ConfigurationError

logger = logging.getLogger(__name__)

CALLBACK_HOST = "127.0.0.1"

_PAGE = """<html>
<head><title>{title}</title></head>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 50px auto; padding: 20px;">
    <h1>{title}</h1>
    <p>{message}</p>
    <p style="margin-top: 30px; color: #666;">You can close this window.</p>
</body>
</html>"""


@dataclass
class AuthorizationResult:
    """
    Result of OAuth authorization flow.

    Attributes:
        success: Whether authorization succeeded
        authorization_code: Authorization code from callback (if successful)
        error: Error code from OAuth provider (if failed)
        error_description: Human-readable error description (if failed)
    """

    success: bool
    authorization_code: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None


def generate_authorization_url(config: SchwabOAuthConfig, state: str) -> str:
    """
    Generate the Schwab authorization URL.

    Args:
        config: OAuth configuration
        state: Opaque value echoed back on the redirect

    Returns:
        Complete authorization URL with query parameters
    """
    params = {
        "response_type": "code",
        "client_id": config.api_key,
        "redirect_uri": config.callback_url,
        "state": state,
    }
    return f"{config.authorization_url}?{urlencode(params)}"


def parse_redirect_url(redirect_url: str, expected_state: str) -> AuthorizationResult:
    """
    Extract the authorization code from the URL Schwab redirected to.

    Args:
        redirect_url: Full redirected URL, including the query string
        expected_state: State sent with the authorization request

    Returns:
        AuthorizationResult with code or error
    """
    query = parse_qs(urlparse(redirect_url.strip()).query)

    def first(name: str) -> Optional[str]:
        values = query.get(name)
        return values[0] if values else None

    return _result_from_params(first("code"), first("state"), first("error"),
                               first("error_description"), expected_state)


def _result_from_params(
    code: Optional[str],
    state: Optional[str],
    error: Optional[str],
    error_description: Optional[str],
    expected_state: str,
) -> AuthorizationResult:
    if error:
        return AuthorizationResult(
            success=False,
            error=error,
            error_description=error_description or "Unknown error",
        )

    if state != expected_state:
        return AuthorizationResult(
            success=False,
            error="state_mismatch",
            error_description="OAuth state did not match the authorization request",
        )

    if not code:
        return AuthorizationResult(
            success=False,
            error="missing_code",
            error_description="No authorization code received",
        )

    return AuthorizationResult(success=True, authorization_code=code)


class OAuthCallbackServer:
    """
    Local HTTPS server to handle the OAuth callback.

    The server:
    1. Starts an HTTPS listener on the callback port of 127.0.0.1
    2. Waits for Schwab's redirect carrying the authorization code
    3. Records the result and signals waiters

    TLS uses the configured certificate, or a generated self-signed one when
    none is configured (the browser will warn about it once).
    """

    def __init__(self, config: SchwabOAuthConfig, state: Optional[str] = None):
        """
        Initialize callback server.

        Args:
            config: OAuth configuration
            state: OAuth state to expect (random if not given)

        Raises:
            ConfigurationError: If the callback URL does not point at 127.0.0.1
        """
        if config.callback_host != CALLBACK_HOST:
            raise ConfigurationError(
                f"The callback server only listens on {CALLBACK_HOST}; "
                f"callback_url must use that host, got {config.callback_url!r}"
            )

        self.config = config
        self.state = state or secrets.token_urlsafe(16)
        self.app = Flask(__name__)
        self.app.logger.setLevel(logging.WARNING)  # Suppress Flask logs
        self.server: Optional[threading.Thread] = None
        self.result: Optional[AuthorizationResult] = None
        self._shutdown_event = threading.Event()

        self.app.add_url_rule(
            self.config.callback_path,
            "oauth_callback",
            self._handle_callback,
            methods=["GET"],
        )

    @property
    def ssl_context(self) -> Union[str, Tuple[str, str]]:
        if self.config.ssl_cert_path:
            return (self.config.ssl_cert_path, self.config.ssl_key_path)
        return "adhoc"

    def _handle_callback(self) -> Response:
        """Handle OAuth callback from Schwab."""
        logger.info("Received OAuth callback")

        self.result = _result_from_params(
            request.args.get("code"),
            request.args.get("state"),
            request.args.get("error"),
            request.args.get("error_description"),
            self.state,
        )
        self._shutdown_event.set()

        if not self.result.success:
            logger.error(
                f"OAuth error: {self.result.error} - {self.result.error_description}"
            )
            return Response(
                _PAGE.format(
                    title="Authorization Failed",
                    message=self.result.error_description,
                ),
                status=400,
                content_type="text/html",
            )

        logger.info("Authorization code received successfully")
        return Response(
            _PAGE.format(
                title="Authorization Successful",
                message="Return to the terminal to finish logging in.",
            ),
            status=200,
            content_type="text/html",
        )

    def generate_authorization_url(self) -> str:
        return generate_authorization_url(self.config, self.state)

    def start(self) -> None:
        """Start the callback server in a background thread."""
        logger.info(
            f"Starting OAuth callback server on {CALLBACK_HOST}:{self.config.callback_port}"
        )

        def run_server():
            try:
                self.app.run(
                    host=CALLBACK_HOST,
                    port=self.config.callback_port,
                    ssl_context=self.ssl_context,
                    debug=False,
                    use_reloader=False,
                    threaded=True,
                )
            except Exception as e:
                logger.error(f"Server error: {e}")
                self.result = AuthorizationResult(
                    success=False,
                    error="server_error",
                    error_description=f"Server failed to start: {e}",
                )
                self._shutdown_event.set()

        self.server = threading.Thread(target=run_server, daemon=True)
        self.server.start()

        # Give server a moment to start
        time.sleep(1)

    def wait_for_callback(self, timeout: int = 300) -> AuthorizationResult:
        """
        Wait for OAuth callback.

        Args:
            timeout: Maximum seconds to wait (default: 300 = 5 minutes)

        Returns:
            AuthorizationResult with code or error
        """
        logger.info(f"Waiting for OAuth callback (timeout: {timeout}s)")

        if self._shutdown_event.wait(timeout=timeout):
            return self.result or AuthorizationResult(
                success=False,
                error="unknown",
                error_description="Server shutdown without result",
            )

        logger.warning(f"Timeout waiting for callback after {timeout}s")
        return AuthorizationResult(
            success=False,
            error="timeout",
            error_description=f"No callback received within {timeout} seconds. "
            f"Please ensure you completed the authorization in your browser.",
        )

    def stop(self) -> None:
        """
        Stop the callback server.

        Flask's development server has no graceful shutdown; the daemon
        thread ends with the main process.
        """
        if self.server:
            logger.info("OAuth callback server shutting down")
            self._shutdown_event.set()


def run_authorization_flow(
    config: SchwabOAuthConfig, open_browser: bool = True, timeout: int = 300
) -> AuthorizationResult:
    """
    Run the browser-based OAuth authorization flow.

    Args:
        config: OAuth configuration
        open_browser: Whether to automatically open browser (default: True)
        timeout: Seconds to wait for callback (default: 300)

    Returns:
        AuthorizationResult with authorization code or error

    Raises:
        ConfigurationError: If the callback URL is not on 127.0.0.1
    """
    server = OAuthCallbackServer(config)

    try:
        server.start()
        auth_url = server.generate_authorization_url()

        print("\n" + "=" * 70)
        print("SCHWAB OAUTH AUTHORIZATION")
        print("=" * 70)
        print("Please authorize the application by visiting:")
        print(f"\n  {auth_url}\n")

        if open_browser:
            try:
                webbrowser.open(auth_url)
            except webbrowser.Error as e:
                logger.warning(f"Could not open browser automatically: {e}")
                print("Please copy the URL above and paste it in your browser.")

        if not config.ssl_cert_path:
            print("The callback uses a self-signed certificate; accept the")
            print("browser warning when you are redirected.")
        print("=" * 70 + "\n")

        result = server.wait_for_callback(timeout)
        _log_result(result)
        return result

    finally:
        server.stop()


def run_manual_flow(
    config: SchwabOAuthConfig, input_func: Callable[[str], str] = input
) -> AuthorizationResult:
    """
    Run the copy-and-paste OAuth authorization flow.

    Args:
        config: OAuth configuration
        input_func: Prompt function used to read the redirected URL

    Returns:
        AuthorizationResult with authorization code or error
    """
    state = secrets.token_urlsafe(16)
    auth_url = generate_authorization_url(config, state)

    print("\n" + "=" * 70)
    print("SCHWAB OAUTH AUTHORIZATION (manual)")
    print("=" * 70)
    print("Open this URL in a browser and log in:")
    print(f"\n  {auth_url}\n")
    print("After authorizing, the browser is redirected to a page that may")
    print("fail to load. Copy the full URL from the address bar.")
    print("=" * 70 + "\n")

    redirect_url = input_func("Redirect URL> ")
    if not redirect_url.strip().startswith(config.callback_url):
        raise AuthorizationError(
            f"Redirect URL must start with the callback URL {config.callback_url}"
        )

    result = parse_redirect_url(redirect_url, state)
    _log_result(result)
    return result


def _log_result(result: AuthorizationResult) -> None:
    if result.success:
        logger.info("Authorization flow completed successfully")
    else:
        logger.error(
            f"Authorization flow failed: {result.error} - {result.error_description}"
        )

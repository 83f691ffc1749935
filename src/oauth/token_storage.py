"""
Token file format and storage.

The token file wraps the token endpoint response with the time the
token was first obtained:

    {
        "creation_timestamp": 1710500000,
        "token": {
            "access_token": "...",
            "refresh_token": "...",
            "token_type": "Bearer",
            "expires_in": 1800,
            "scope": "api",
            "expires_at": 1710501800
        }
    }

The creation timestamp is set once, when the authorization code is
exchanged, and is carried over unchanged every time a refreshed token is
written. It dates the refresh token, which Schwab expires after 7 days.
"""

import json
import logging
import os
import time
from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import StaleTokenFormatError, TokenStorageError

logger = logging.getLogger(__name__)


@dataclass
class TokenData:
    """
    OAuth token as returned by the token endpoint.

    Attributes:
        access_token: Short-lived access token for API calls
        refresh_token: Long-lived token for obtaining new access tokens
        token_type: Token type (typically "Bearer")
        expires_in: Access token lifetime in seconds from issue time
        scope: Granted OAuth scopes
        expires_at: Epoch seconds when the access token expires
    """

    access_token: str
    refresh_token: str
    token_type: str  # "Bearer"
    expires_in: int  # seconds from issue
    scope: str = ""
    expires_at: Optional[float] = None

    def __post_init__(self) -> None:
        if self.expires_at is None:
            self.expires_at = time.time() + self.expires_in

    @property
    def expires_at_datetime(self) -> datetime:
        """Access token expiry as a timezone-aware UTC datetime."""
        return datetime.fromtimestamp(self.expires_at, tz=timezone.utc)

    @property
    def is_expired(self) -> bool:
        """
        Check if access token is expired.

        Returns:
            True if token has expired, False otherwise
        """
        return time.time() >= self.expires_at

    def expires_within(self, seconds: int) -> bool:
        """
        Check if token expires within given seconds.

        Useful for proactive token refresh (e.g., refresh if expires within 5 minutes).

        Args:
            seconds: Number of seconds to check

        Returns:
            True if token will expire within the specified time, False otherwise
        """
        return time.time() + seconds >= self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary representation of token data
        """
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenData":
        """
        Create TokenData from a token endpoint response or stored token.

        Fields the endpoint sends that are not modeled here (e.g. id_token)
        are ignored.

        Raises:
            KeyError: If required fields are missing
        """
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass
class TokenMetadata:
    """
    A token together with the time it was first obtained.

    Attributes:
        token: Current token
        creation_timestamp: Epoch seconds of the original authorization
    """

    token: TokenData
    creation_timestamp: int

    @classmethod
    def create(cls, token: TokenData) -> "TokenMetadata":
        """Wrap a freshly exchanged token, stamping it with the current time."""
        return cls(token=token, creation_timestamp=int(time.time()))

    @classmethod
    def from_loaded_token(cls, data: Dict[str, Any]) -> "TokenMetadata":
        """
        Build metadata from the contents of a token file.

        Raises:
            StaleTokenFormatError: If the file has no creation timestamp
                                   (written by an older version)
            KeyError: If required token fields are missing
        """
        if "creation_timestamp" not in data or "token" not in data:
            raise StaleTokenFormatError(
                "Token format has changed since this token was created. "
                "Delete the token file and re-authorize."
            )
        return cls(
            token=TokenData.from_dict(data["token"]),
            creation_timestamp=int(data["creation_timestamp"]),
        )

    def token_age(self) -> int:
        """Seconds since the token was first obtained."""
        return int(time.time()) - self.creation_timestamp

    def with_token(self, token: TokenData) -> "TokenMetadata":
        """Return metadata for a refreshed token, keeping the creation timestamp."""
        return TokenMetadata(token=token, creation_timestamp=self.creation_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "creation_timestamp": self.creation_timestamp,
            "token": self.token.to_dict(),
        }


class TokenStorage:
    """
    Reads and writes the token file.

    The file is plaintext JSON readable only by the owner (mode 0600).
    Writes go to a sibling temporary file that replaces the token file
    in one step, so a crash never leaves a half-written token behind.
    """

    def __init__(self, token_file: str):
        """
        Args:
            token_file: Path of the token file ("~" is expanded). Missing
                        parent directories are created.
        """
        self.token_file = Path(token_file).expanduser()
        self.token_file.parent.mkdir(parents=True, exist_ok=True)

    def save(self, metadata: TokenMetadata) -> None:
        """
        Write a token and its creation timestamp.

        Raises:
            TokenStorageError: If the file cannot be written
        """
        tmp_file = self.token_file.with_name(f".{self.token_file.name}.tmp")
        try:
            fd = os.open(tmp_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                json.dump(metadata.to_dict(), f, indent=2)
            os.chmod(tmp_file, 0o600)
            os.replace(tmp_file, self.token_file)
        except OSError as e:
            logger.error(f"Could not write token file {self.token_file}: {e}")
            raise TokenStorageError(f"Could not write token file: {e}") from e

        logger.info(f"Token written to {self.token_file}")

    def load(self) -> Optional[TokenMetadata]:
        """
        Read the token file.

        Returns:
            TokenMetadata, or None when the file is missing, unreadable or
            not a token file (the user has to authorize again)

        Raises:
            StaleTokenFormatError: If the file predates creation timestamps
        """
        if not self.token_file.exists():
            logger.debug(f"No token file at {self.token_file}")
            return None

        try:
            data = json.loads(self.token_file.read_text())
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable token file {self.token_file}: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Ignoring token file {self.token_file}: not a JSON object")
            return None

        try:
            metadata = TokenMetadata.from_loaded_token(data)
        except StaleTokenFormatError:
            logger.error(f"Token file {self.token_file} has no creation timestamp")
            raise
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring incomplete token file {self.token_file}: {e}")
            return None

        logger.debug(f"Token read from {self.token_file}")
        return metadata

    def delete(self) -> bool:
        """
        Remove the token file.

        Returns:
            True if a file was removed, False if there was none

        Raises:
            TokenStorageError: If the file exists but cannot be removed
        """
        try:
            self.token_file.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Could not remove token file {self.token_file}: {e}")
            raise TokenStorageError(f"Could not remove token file: {e}") from e

        logger.info(f"Removed token file {self.token_file}")
        return True

    def exists(self) -> bool:
        return self.token_file.exists()

"""Tests for OAuth token storage module."""

import json
import tempfile
import time
from pathlib import Path

import pytest

from src.exceptions import MalformedInputError
from src.oauth.exceptions import StaleTokenFormatError
from src.oauth.token_storage import TokenData, TokenMetadata, TokenStorage


def make_token(**overrides):
    values = {
        "access_token": "access_token_123",
        "refresh_token": "refresh_token_456",
        "token_type": "Bearer",
        "expires_in": 1800,
        "scope": "api",
    }
    values.update(overrides)
    return TokenData(**values)


class TestTokenData:
    """Tests for TokenData class."""

    def test_token_data_creation(self):
        """TokenData can be created with all required fields."""
        token = make_token(expires_at=1_710_501_800)

        assert token.access_token == "access_token_123"
        assert token.refresh_token == "refresh_token_456"
        assert token.token_type == "Bearer"
        assert token.expires_in == 1800
        assert token.scope == "api"
        assert token.expires_at == 1_710_501_800

    def test_expires_at_defaults_to_now_plus_expires_in(self):
        """expires_at is computed from expires_in when not given."""
        before = time.time()
        token = make_token(expires_in=1800)

        assert before + 1800 <= token.expires_at <= time.time() + 1800

    def test_is_expired(self):
        """is_expired compares expires_at to the current time."""
        assert make_token(expires_at=time.time() - 1).is_expired is True
        assert make_token(expires_at=time.time() + 600).is_expired is False

    def test_expires_within(self):
        """expires_within checks for expiry inside a buffer."""
        token = make_token(expires_at=time.time() + 120)

        assert token.expires_within(300) is True
        assert token.expires_within(60) is False

    def test_expires_at_datetime_is_utc(self):
        """expires_at_datetime is timezone-aware."""
        token = make_token(expires_at=0)

        assert token.expires_at_datetime.year == 1970
        assert token.expires_at_datetime.tzinfo is not None

    def test_from_dict_ignores_unknown_fields(self):
        """from_dict skips fields such as id_token."""
        token = TokenData.from_dict(
            {
                "access_token": "a",
                "refresh_token": "r",
                "token_type": "Bearer",
                "expires_in": 1800,
                "id_token": "jwt",
            }
        )

        assert token.access_token == "a"
        assert not hasattr(token, "id_token")

    def test_from_dict_requires_access_token(self):
        """from_dict raises when required fields are missing."""
        with pytest.raises(TypeError):
            TokenData.from_dict({"refresh_token": "r"})


class TestTokenMetadata:
    """Tests for TokenMetadata class."""

    def test_create_stamps_current_time(self):
        """create() sets creation_timestamp to now."""
        before = int(time.time())
        metadata = TokenMetadata.create(make_token())

        assert before <= metadata.creation_timestamp <= int(time.time())

    def test_token_age(self):
        """token_age is seconds since creation."""
        metadata = TokenMetadata(make_token(), creation_timestamp=int(time.time()) - 3600)

        assert 3600 <= metadata.token_age() <= 3601

    def test_with_token_keeps_creation_timestamp(self):
        """with_token replaces the token but not the timestamp."""
        metadata = TokenMetadata(make_token(), creation_timestamp=1_710_500_000)
        refreshed = metadata.with_token(make_token(access_token="new"))

        assert refreshed.token.access_token == "new"
        assert refreshed.creation_timestamp == 1_710_500_000

    def test_from_loaded_token(self):
        """from_loaded_token reads the token file layout."""
        data = {
            "creation_timestamp": 1_710_500_000,
            "token": make_token(expires_at=1_710_501_800).to_dict(),
        }

        metadata = TokenMetadata.from_loaded_token(data)

        assert metadata.creation_timestamp == 1_710_500_000
        assert metadata.token.access_token == "access_token_123"
        assert metadata.token.expires_at == 1_710_501_800

    def test_from_loaded_token_without_timestamp_is_stale(self):
        """Token files without creation_timestamp raise StaleTokenFormatError."""
        legacy = make_token().to_dict()

        with pytest.raises(StaleTokenFormatError):
            TokenMetadata.from_loaded_token(legacy)

    def test_stale_token_error_is_malformed_input(self):
        """StaleTokenFormatError is a MalformedInputError."""
        with pytest.raises(MalformedInputError):
            TokenMetadata.from_loaded_token({"token": make_token().to_dict()})


class TestTokenStorage:
    """Tests for TokenStorage class."""

    @pytest.fixture
    def temp_token_file(self):
        """Create temporary token file path."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield str(Path(tmpdir) / "tokens.json")

    @pytest.fixture
    def metadata(self):
        return TokenMetadata(make_token(expires_at=1_710_501_800), creation_timestamp=1_710_500_000)

    def test_save_and_load(self, temp_token_file, metadata):
        """Saved metadata can be loaded back."""
        storage = TokenStorage(temp_token_file)
        storage.save(metadata)

        loaded = storage.load()

        assert loaded == metadata

    def test_save_writes_expected_layout(self, temp_token_file, metadata):
        """The token file holds creation_timestamp and token."""
        storage = TokenStorage(temp_token_file)
        storage.save(metadata)

        with open(temp_token_file) as f:
            data = json.load(f)

        assert data["creation_timestamp"] == 1_710_500_000
        assert data["token"]["access_token"] == "access_token_123"
        assert data["token"]["refresh_token"] == "refresh_token_456"

    def test_save_sets_user_only_permissions(self, temp_token_file, metadata):
        """The token file is chmod 600."""
        storage = TokenStorage(temp_token_file)
        storage.save(metadata)

        assert Path(temp_token_file).stat().st_mode & 0o777 == 0o600

    def test_save_leaves_no_temporary_file(self, temp_token_file, metadata):
        """Only the token file remains after a save."""
        storage = TokenStorage(temp_token_file)
        storage.save(metadata)
        storage.save(metadata)

        assert [p.name for p in Path(temp_token_file).parent.iterdir()] == [
            Path(temp_token_file).name
        ]

    def test_load_missing_file_returns_none(self, temp_token_file):
        """load() returns None when there is no file."""
        assert TokenStorage(temp_token_file).load() is None

    def test_load_invalid_json_returns_none(self, temp_token_file):
        """load() returns None on corrupted files."""
        Path(temp_token_file).write_text("{not json")

        assert TokenStorage(temp_token_file).load() is None

    def test_load_non_object_returns_none(self, temp_token_file):
        """load() returns None when the file holds a JSON array."""
        Path(temp_token_file).write_text("[]")

        assert TokenStorage(temp_token_file).load() is None

    def test_load_legacy_file_raises_stale_format(self, temp_token_file):
        """load() raises StaleTokenFormatError for files without a timestamp."""
        Path(temp_token_file).write_text(json.dumps(make_token().to_dict()))

        with pytest.raises(StaleTokenFormatError):
            TokenStorage(temp_token_file).load()

    def test_load_incomplete_token_returns_none(self, temp_token_file):
        """load() returns None when the token is missing fields."""
        Path(temp_token_file).write_text(
            json.dumps({"creation_timestamp": 1, "token": {"access_token": "a"}})
        )

        assert TokenStorage(temp_token_file).load() is None

    def test_delete(self, temp_token_file, metadata):
        """delete() removes the file and reports whether it existed."""
        storage = TokenStorage(temp_token_file)
        storage.save(metadata)

        assert storage.exists() is True
        assert storage.delete() is True
        assert storage.exists() is False
        assert storage.delete() is False

    def test_creates_parent_directory(self):
        """TokenStorage creates missing parent directories."""
        with tempfile.TemporaryDirectory() as tmpdir:
            token_file = Path(tmpdir) / "nested" / "dir" / "tokens.json"
            TokenStorage(str(token_file))

            assert token_file.parent.is_dir()

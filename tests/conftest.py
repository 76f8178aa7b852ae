"""Shared test fixtures."""

from pathlib import Path

import pytest
from cryptography.fernet import Fernet

from tests.fixtures.auth import StaticTokens
from whoop_cli.auth.tokens import OAuthTokens, TokenStore
from whoop_cli.core.config import Settings
from whoop_cli.core.security import TokenEncryption
from whoop_cli.services.history import SleepHistoryStore


@pytest.fixture
def history_path(tmp_path: Path) -> Path:
    return tmp_path / "whoop" / "sleep-history.json"


@pytest.fixture
def history_store(history_path: Path) -> SleepHistoryStore:
    """Empty history store in a temp directory."""
    return SleepHistoryStore(history_path)


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at fake WHOOP hosts and a temp config dir."""
    return Settings(
        client_id="test-client-id",
        client_secret="test-client-secret",
        api_url="https://whoop.test/developer",
        oauth_url="https://whoop.test/oauth/oauth2",
        config_dir=tmp_path / "config",
        encryption_key=Fernet.generate_key().decode(),
        callback_port=0,
        callback_timeout_seconds=5,
    )


@pytest.fixture
def token_store(test_settings: Settings) -> TokenStore:
    return TokenStore(
        test_settings.token_file, TokenEncryption(test_settings.get_encryption_key())
    )


@pytest.fixture
def valid_tokens() -> OAuthTokens:
    return OAuthTokens(
        access_token="access-123",
        refresh_token="refresh-456",
        expires_at=4_102_444_800_000,  # 2100-01-01
        token_type="bearer",
        scope="read:sleep read:recovery offline",
    )


@pytest.fixture
def static_tokens(valid_tokens: OAuthTokens) -> StaticTokens:
    return StaticTokens(valid_tokens)

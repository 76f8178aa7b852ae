"""Tests for settings."""

from pathlib import Path

import pytest

from whoop_cli.core.config import Settings
from whoop_cli.core.errors import AuthError


class TestSettings:
    """Tests for Settings."""

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        """Test WHOOP_* environment variables configure the CLI."""
        monkeypatch.setenv("WHOOP_CLIENT_ID", "env-id")
        monkeypatch.setenv("WHOOP_CLIENT_SECRET", "env-secret")
        monkeypatch.setenv("WHOOP_REDIRECT_URI", "http://localhost:8765/callback")
        monkeypatch.setenv("WHOOP_CONFIG_DIR", str(tmp_path))

        config = Settings(_env_file=None)

        assert config.require_client_credentials() == ("env-id", "env-secret")
        assert config.get_redirect_uri() == "http://localhost:8765/callback"
        assert config.history_file == tmp_path / "sleep-history.json"
        assert config.token_file == tmp_path / "tokens.json"

    def test_token_path_alias(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        monkeypatch.delenv("WHOOP_CONFIG_DIR", raising=False)
        monkeypatch.setenv("WHOOP_TOKEN_PATH", str(tmp_path))

        assert Settings(_env_file=None).config_dir == tmp_path

    def test_default_redirect_uses_callback_port(self):
        config = Settings(_env_file=None, redirect_uri=None, callback_port=4000)

        assert config.get_redirect_uri() == "http://localhost:4000/callback"

    def test_oauth_urls(self):
        config = Settings(_env_file=None, oauth_url="https://whoop.test/oauth/oauth2")

        assert config.auth_url == "https://whoop.test/oauth/oauth2/auth"
        assert config.token_url == "https://whoop.test/oauth/oauth2/token"

    def test_missing_credentials(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("WHOOP_CLIENT_ID", raising=False)
        monkeypatch.delenv("WHOOP_CLIENT_SECRET", raising=False)

        with pytest.raises(AuthError, match="WHOOP_CLIENT_ID and WHOOP_CLIENT_SECRET"):
            Settings(_env_file=None).require_client_credentials()

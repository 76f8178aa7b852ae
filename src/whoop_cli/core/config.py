"""Application configuration."""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from whoop_cli.core.errors import AuthError


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="WHOOP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",  # Allow extra env vars without error
    )

    # WHOOP OAuth app credentials (from developer.whoop.com)
    client_id: str | None = Field(
        default=None,
        description="WHOOP OAuth client ID",
    )
    client_secret: str | None = Field(
        default=None,
        description="WHOOP OAuth client secret",
    )
    redirect_uri: str | None = Field(
        default=None,
        description="OAuth redirect URI (defaults to the local callback listener)",
    )

    # Local OAuth callback listener
    callback_port: int = Field(default=3000, description="Port for the OAuth callback")
    callback_timeout_seconds: int = Field(
        default=120,
        description="How long to wait for the browser to hit the callback",
    )

    # API
    api_url: str = Field(
        default="https://api.prod.whoop.com/developer",
        description="WHOOP developer API base URL",
    )
    oauth_url: str = Field(
        default="https://api.prod.whoop.com/oauth/oauth2",
        description="WHOOP OAuth base URL (auth and token endpoints)",
    )
    request_timeout_seconds: float = Field(default=30.0, description="HTTP timeout")

    # Local state (tokens, encryption key, sleep history)
    config_dir: Path = Field(
        default=Path.home() / ".whoop-cli",
        validation_alias=AliasChoices("whoop_config_dir", "whoop_token_path"),
        description="Directory holding tokens and sleep history",
    )

    # Security
    encryption_key: str | None = Field(
        default=None,
        description="Fernet key for token encryption (generated if not set)",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Log level",
    )

    @property
    def token_file(self) -> Path:
        """Encrypted OAuth token file."""
        return self.config_dir / "tokens.json"

    @property
    def history_file(self) -> Path:
        """Rolling sleep history used by wake detection."""
        return self.config_dir / "sleep-history.json"

    @property
    def auth_url(self) -> str:
        return f"{self.oauth_url}/auth"

    @property
    def token_url(self) -> str:
        return f"{self.oauth_url}/token"

    def get_redirect_uri(self) -> str:
        """Get the OAuth redirect URI, defaulting to the local callback listener."""
        return self.redirect_uri or f"http://localhost:{self.callback_port}/callback"

    def require_client_credentials(self) -> tuple[str, str]:
        """Get OAuth client credentials.

        Raises:
            AuthError: If client ID or secret is not configured
        """
        if not self.client_id or not self.client_secret:
            raise AuthError(
                "WHOOP_CLIENT_ID and WHOOP_CLIENT_SECRET must be set.\n"
                "Get these from: https://developer.whoop.com"
            )
        return self.client_id, self.client_secret

    def get_encryption_key(self) -> bytes:
        """Get encryption key for stored OAuth tokens.

        Generates and persists a key to <config_dir>/encryption.key so tokens
        survive between invocations.
        """
        if self.encryption_key:
            return self.encryption_key.encode()

        from cryptography.fernet import Fernet

        key_file = self.config_dir / "encryption.key"
        key_file.parent.mkdir(parents=True, exist_ok=True)

        if key_file.exists():
            return key_file.read_bytes().strip()

        # Generate new key and persist
        key = Fernet.generate_key()
        key_file.write_bytes(key)
        key_file.chmod(0o600)  # Owner read/write only
        return key


# Global settings instance
settings = Settings()

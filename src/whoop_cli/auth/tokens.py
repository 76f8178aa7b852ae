"""OAuth token storage and refresh."""

import json
import time
from pathlib import Path
from typing import Any

import httpx
import structlog
from cryptography.fernet import InvalidToken
from pydantic import BaseModel, ValidationError

from whoop_cli.core.config import Settings, settings
from whoop_cli.core.errors import AuthError
from whoop_cli.core.security import TokenEncryption

logger = structlog.get_logger()

# Refresh this long before the access token actually expires
EXPIRY_BUFFER_MS = 5 * 60 * 1000

ENVELOPE_VERSION = 1


def _now_ms() -> int:
    return int(time.time() * 1000)


class OAuthTokens(BaseModel):
    """Token set returned by the WHOOP OAuth server."""

    access_token: str
    refresh_token: str
    expires_at: int  # Epoch milliseconds
    token_type: str = "bearer"
    scope: str = ""

    @classmethod
    def from_token_response(cls, data: dict[str, Any], now_ms: int | None = None) -> "OAuthTokens":
        """Build tokens from a token endpoint response (expires_in seconds)."""
        now_ms = _now_ms() if now_ms is None else now_ms
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token", ""),
            expires_at=now_ms + int(data.get("expires_in", 3600)) * 1000,
            token_type=data.get("token_type", "bearer"),
            scope=data.get("scope", ""),
        )

    def is_expired(self, now_ms: int | None = None) -> bool:
        """True if the access token has expired or is about to."""
        now_ms = _now_ms() if now_ms is None else now_ms
        return self.expires_at - EXPIRY_BUFFER_MS <= now_ms


class TokenStore:
    """Encrypted token file on disk."""

    def __init__(self, path: Path, encryption: TokenEncryption) -> None:
        """Initialize token store.

        Args:
            path: Token file location
            encryption: Cipher used for the file payload
        """
        self.path = Path(path)
        self.encryption = encryption

    @property
    def directory(self) -> Path:
        return self.path.parent

    def save(self, tokens: OAuthTokens) -> None:
        """Encrypt and write tokens (owner-only permissions)."""
        self.directory.mkdir(parents=True, exist_ok=True, mode=0o700)
        envelope = {
            "encrypted": self.encryption.encrypt(tokens.model_dump_json()),
            "version": ENVELOPE_VERSION,
        }
        self.path.write_text(json.dumps(envelope, indent=2), encoding="utf-8")
        self.path.chmod(0o600)

    def load(self) -> OAuthTokens | None:
        """Load and decrypt tokens.

        Returns None when there is no file, or when it cannot be decrypted
        (written with a different key, or corrupted).
        """
        if not self.path.exists():
            return None

        try:
            envelope = json.loads(self.path.read_text(encoding="utf-8"))
            if envelope.get("version") != ENVELOPE_VERSION:
                logger.warning("Unsupported token file version", version=envelope.get("version"))
                return None
            return OAuthTokens.model_validate_json(self.encryption.decrypt(envelope["encrypted"]))
        except (OSError, ValueError, KeyError, AttributeError, InvalidToken, ValidationError) as e:
            logger.warning("Stored tokens unreadable", path=str(self.path), error=type(e).__name__)
            return None

    def delete(self) -> None:
        self.path.unlink(missing_ok=True)

    def exists(self) -> bool:
        return self.path.exists()


class TokenManager:
    """Hands out valid access tokens, refreshing them when needed."""

    def __init__(self, store: TokenStore, config: Settings | None = None) -> None:
        """Initialize token manager.

        Args:
            store: Where tokens are persisted
            config: Settings for client credentials and token URL
        """
        self.store = store
        self.config = config or settings
        self.logger = logger.bind(component="token_manager")

    async def refresh(self, tokens: OAuthTokens) -> OAuthTokens:
        """Exchange the refresh token for a new token set and persist it.

        Raises:
            AuthError: If credentials are missing or WHOOP rejects the refresh
        """
        client_id, client_secret = self.config.require_client_credentials()

        self.logger.info("Refreshing access token")
        try:
            async with httpx.AsyncClient(timeout=self.config.request_timeout_seconds) as client:
                response = await client.post(
                    self.config.token_url,
                    data={
                        "grant_type": "refresh_token",
                        "refresh_token": tokens.refresh_token,
                        "client_id": client_id,
                        "client_secret": client_secret,
                        "scope": "offline",
                    },
                )
        except httpx.HTTPError as e:
            raise AuthError(f"Failed to refresh token: {e}") from e

        if response.is_error:
            raise AuthError(f"Failed to refresh token: {response.text}")

        new_tokens = OAuthTokens.from_token_response(response.json())
        self.store.save(new_tokens)
        self.logger.info("Access token refreshed", expires_at=new_tokens.expires_at)
        return new_tokens

    async def get_valid_tokens(self) -> OAuthTokens:
        """Get usable tokens, refreshing if expired.

        Raises:
            AuthError: If not logged in
        """
        tokens = self.store.load()
        if tokens is None:
            raise AuthError("Not authenticated. Run: whoop auth login")

        if tokens.is_expired():
            return await self.refresh(tokens)

        return tokens


def default_token_store(config: Settings | None = None) -> TokenStore:
    """Token store at the configured location with the configured key."""
    config = config or settings
    return TokenStore(config.token_file, TokenEncryption(config.get_encryption_key()))

"""Security utilities for token encryption."""

from cryptography.fernet import Fernet

from whoop_cli.core.config import settings


class TokenEncryption:
    """Encrypt and decrypt OAuth tokens for storage at rest."""

    def __init__(self, key: bytes | None = None) -> None:
        """Initialize encryption.

        Args:
            key: Fernet key (defaults to the key from settings)
        """
        self.cipher = Fernet(key if key is not None else settings.get_encryption_key())

    def encrypt(self, data: str) -> str:
        """Encrypt a payload for disk storage.

        Args:
            data: Plain text payload

        Returns:
            Encrypted payload (base64 encoded)
        """
        return self.cipher.encrypt(data.encode()).decode()

    def decrypt(self, encrypted: str) -> str:
        """Decrypt a payload from disk.

        Args:
            encrypted: Encrypted payload (base64 encoded)

        Returns:
            Plain text payload

        Raises:
            cryptography.fernet.InvalidToken: If the key does not match
        """
        return self.cipher.decrypt(encrypted.encode()).decode()

"""OAuth login, token storage and the local callback listener."""

from whoop_cli.auth.tokens import OAuthTokens, TokenManager, TokenStore, default_token_store

__all__ = [
    "OAuthTokens",
    "TokenManager",
    "TokenStore",
    "default_token_store",
]

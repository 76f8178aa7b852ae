"""Auth test doubles."""

from whoop_cli.auth.tokens import OAuthTokens


class StaticTokens:
    """Token provider that never refreshes."""

    def __init__(self, tokens: OAuthTokens) -> None:
        self.tokens = tokens

    async def get_valid_tokens(self) -> OAuthTokens:
        return self.tokens

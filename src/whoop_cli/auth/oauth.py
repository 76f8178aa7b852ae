"""OAuth2 authorization-code flow against WHOOP."""

import asyncio
import secrets
import webbrowser
from datetime import UTC, datetime
from urllib.parse import urlencode

import httpx
import structlog
import typer

from whoop_cli.auth.server import CallbackServer
from whoop_cli.auth.tokens import OAuthTokens, TokenManager, TokenStore
from whoop_cli.core.config import Settings, settings
from whoop_cli.core.errors import AuthError
from whoop_cli.models.whoop import AuthStatus

logger = structlog.get_logger()

SCOPES = " ".join(
    [
        "read:profile",
        "read:body_measurement",
        "read:recovery",
        "read:sleep",
        "read:workout",
        "read:cycles",
        "offline",
    ]
)


def generate_state() -> str:
    """Random state parameter for CSRF protection."""
    return secrets.token_hex(32)


def build_auth_url(auth_url: str, client_id: str, redirect_uri: str, state: str) -> str:
    """Build the browser authorization URL."""
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": SCOPES,
        "state": state,
    }
    return f"{auth_url}?{urlencode(params)}"


async def exchange_code(
    code: str, redirect_uri: str, config: Settings | None = None
) -> OAuthTokens:
    """Exchange an authorization code for tokens.

    Raises:
        AuthError: If WHOOP rejects the code
    """
    config = config or settings
    client_id, client_secret = config.require_client_credentials()

    try:
        async with httpx.AsyncClient(timeout=config.request_timeout_seconds) as client:
            response = await client.post(
                config.token_url,
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "redirect_uri": redirect_uri,
                },
            )
    except httpx.HTTPError as e:
        raise AuthError(f"Failed to exchange code: {e}") from e

    if response.is_error:
        raise AuthError(f"Failed to exchange code: {response.text}")

    return OAuthTokens.from_token_response(response.json())


async def login(store: TokenStore, config: Settings | None = None) -> OAuthTokens:
    """Run the browser login flow and store the resulting tokens.

    Example:
        tokens = await login(default_token_store())
    """
    config = config or settings
    client_id, _ = config.require_client_credentials()

    redirect_uri = config.get_redirect_uri()
    state = generate_state()
    auth_url = build_auth_url(config.auth_url, client_id, redirect_uri, state)

    typer.echo("Starting OAuth flow...", err=True)
    typer.echo(f"Callback URL: {redirect_uri}", err=True)

    # Listen before opening the browser so the redirect cannot be missed
    server = CallbackServer(state, port=config.callback_port)

    typer.echo("Opening browser for authorization...", err=True)
    if not webbrowser.open(auth_url):
        typer.echo(f"Open this URL to continue:\n{auth_url}", err=True)

    typer.echo("Waiting for authorization...", err=True)
    callback = await asyncio.to_thread(server.wait, config.callback_timeout_seconds)

    typer.echo("Exchanging code for tokens...", err=True)
    tokens = await exchange_code(callback.code, redirect_uri, config)
    store.save(tokens)

    logger.info("Authenticated", token_dir=str(store.directory))
    typer.echo("Successfully authenticated!", err=True)
    typer.echo(f"Tokens stored in: {store.directory}", err=True)
    return tokens


def logout(store: TokenStore) -> bool:
    """Delete stored tokens. Returns False if there were none."""
    if not store.exists():
        typer.echo("No stored tokens found.", err=True)
        return False

    store.delete()
    typer.echo("Logged out. Tokens deleted.", err=True)
    return True


def status(store: TokenStore) -> AuthStatus:
    """Report whether usable tokens are stored."""
    tokens = store.load()

    if tokens is None:
        typer.echo("Not authenticated", err=True)
        typer.echo("Run: whoop auth login", err=True)
        return AuthStatus(authenticated=False)

    expires_at = (
        datetime.fromtimestamp(tokens.expires_at / 1000, tz=UTC)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )

    if tokens.is_expired():
        typer.echo("Access token expired (will auto-refresh on next request)", err=True)
    else:
        typer.echo("Authenticated", err=True)

    typer.echo(f"Expires: {expires_at}", err=True)
    typer.echo(f"Scopes: {tokens.scope}", err=True)
    typer.echo(f"Token dir: {store.directory}", err=True)

    return AuthStatus(authenticated=True, expires_at=expires_at, scopes=tokens.scope.split())


async def refresh(manager: TokenManager) -> OAuthTokens:
    """Force a token refresh.

    Raises:
        AuthError: If not logged in
    """
    tokens = manager.store.load()
    if tokens is None:
        raise AuthError("Not authenticated. Run: whoop auth login")

    typer.echo("Refreshing access token...", err=True)
    new_tokens = await manager.refresh(tokens)
    typer.echo("Token refreshed successfully.", err=True)
    return new_tokens

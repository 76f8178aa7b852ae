"""Tests for the OAuth login flow."""

import threading
from typing import Any
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
import respx

from whoop_cli.auth import oauth
from whoop_cli.auth.server import CallbackResult, CallbackServer
from whoop_cli.auth.tokens import OAuthTokens, TokenManager, TokenStore
from whoop_cli.core.config import Settings
from whoop_cli.core.errors import AuthError, ExitCode

TOKEN_URL = "https://whoop.test/oauth/oauth2/token"

TOKEN_RESPONSE = {
    "access_token": "access-new",
    "refresh_token": "refresh-new",
    "expires_in": 3600,
    "scope": "read:sleep offline",
    "token_type": "bearer",
}


def serve_in_background(
    server: CallbackServer, timeout: float = 5
) -> tuple[threading.Thread, dict[str, Any]]:
    """Run server.wait in a thread, collecting its result or error."""
    outcome: dict[str, Any] = {}

    def target() -> None:
        try:
            outcome["result"] = server.wait(timeout)
        except AuthError as e:
            outcome["error"] = e

    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    return thread, outcome


def browse(port: int, path: str = "/callback", **params: str) -> httpx.Response:
    """Hit the local listener the way the browser redirect would."""
    return httpx.get(f"http://127.0.0.1:{port}{path}", params=params, trust_env=False)


class TestAuthUrl:
    """Tests for the authorization URL."""

    def test_build_auth_url(self):
        url = oauth.build_auth_url(
            "https://whoop.test/oauth/oauth2/auth",
            "client-1",
            "http://localhost:3000/callback",
            "state-xyz",
        )

        parsed = urlparse(url)
        params = parse_qs(parsed.query)
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == (
            "https://whoop.test/oauth/oauth2/auth"
        )
        assert params["client_id"] == ["client-1"]
        assert params["redirect_uri"] == ["http://localhost:3000/callback"]
        assert params["response_type"] == ["code"]
        assert params["state"] == ["state-xyz"]
        assert "offline" in params["scope"][0].split()
        assert "read:sleep" in params["scope"][0].split()

    def test_state_is_random(self):
        assert oauth.generate_state() != oauth.generate_state()
        assert len(oauth.generate_state()) == 64


class TestCallbackServer:
    """Tests for the local callback listener."""

    def test_valid_callback(self):
        """Test a callback with matching state yields the code."""
        server = CallbackServer("state-1", port=0)
        thread, outcome = serve_in_background(server)

        response = browse(server.port, code="abc", state="state-1")
        thread.join(5)

        assert response.status_code == 200
        assert "Authorization Successful" in response.text
        assert outcome["result"] == CallbackResult(code="abc", state="state-1")

    def test_state_mismatch(self):
        """Test a callback with the wrong state fails the flow."""
        server = CallbackServer("state-1", port=0)
        thread, outcome = serve_in_background(server)

        response = browse(server.port, code="abc", state="evil")
        thread.join(5)

        assert response.status_code == 400
        assert "State mismatch" in outcome["error"].message
        assert outcome["error"].exit_code == ExitCode.AUTH_ERROR

    def test_oauth_error_param(self):
        server = CallbackServer("state-1", port=0)
        thread, outcome = serve_in_background(server)

        response = browse(server.port, error="access_denied")
        thread.join(5)

        assert response.status_code == 400
        assert "access_denied" in response.text
        assert outcome["error"].message == "OAuth error: access_denied"

    def test_missing_code(self):
        server = CallbackServer("state-1", port=0)
        thread, outcome = serve_in_background(server)

        browse(server.port, state="state-1")
        thread.join(5)

        assert "Missing code or state" in outcome["error"].message

    def test_other_paths_ignored(self):
        """Test unrelated requests get 404 and the server keeps waiting."""
        server = CallbackServer("state-1", port=0)
        thread, outcome = serve_in_background(server)

        not_found = browse(server.port, "/favicon.ico")
        browse(server.port, code="abc", state="state-1")
        thread.join(5)

        assert not_found.status_code == 404
        assert outcome["result"].code == "abc"

    def test_timeout(self):
        """Test no callback within the timeout raises AuthError."""
        server = CallbackServer("state-1", port=0)

        with pytest.raises(AuthError, match="timed out"):
            server.wait(timeout=0.2)


class TestTokenExchange:
    """Tests for exchanging the authorization code."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_exchange_code(self, test_settings: Settings):
        route = respx.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json=TOKEN_RESPONSE)
        )

        tokens = await oauth.exchange_code("abc", "http://localhost:3000/callback", test_settings)

        body = parse_qs(route.calls.last.request.content.decode())
        assert body["grant_type"] == ["authorization_code"]
        assert body["code"] == ["abc"]
        assert body["client_id"] == ["test-client-id"]
        assert body["redirect_uri"] == ["http://localhost:3000/callback"]
        assert tokens.access_token == "access-new"

    @pytest.mark.asyncio
    @respx.mock
    async def test_exchange_rejected(self, test_settings: Settings):
        respx.post(TOKEN_URL).mock(return_value=httpx.Response(400, text="invalid_grant"))

        with pytest.raises(AuthError, match="Failed to exchange code"):
            await oauth.exchange_code("abc", "http://localhost:3000/callback", test_settings)


class TestLoginFlow:
    """Tests for the end-to-end browser login."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_login_stores_tokens(
        self,
        monkeypatch: pytest.MonkeyPatch,
        token_store: TokenStore,
        test_settings: Settings,
    ):
        """Test login opens the browser, receives the callback and saves tokens."""
        respx.route(host="127.0.0.1").pass_through()
        respx.post(TOKEN_URL).mock(return_value=httpx.Response(200, json=TOKEN_RESPONSE))

        servers: list[CallbackServer] = []

        class RecordingServer(CallbackServer):
            def __init__(self, *args: Any, **kwargs: Any) -> None:
                super().__init__(*args, **kwargs)
                servers.append(self)

        def fake_browser(url: str) -> bool:
            state = parse_qs(urlparse(url).query)["state"][0]
            threading.Thread(
                target=browse,
                args=(servers[0].port,),
                kwargs={"code": "abc", "state": state},
                daemon=True,
            ).start()
            return True

        monkeypatch.setattr(oauth, "CallbackServer", RecordingServer)
        monkeypatch.setattr(oauth.webbrowser, "open", fake_browser)

        tokens = await oauth.login(token_store, test_settings)

        assert tokens.access_token == "access-new"
        assert token_store.load() == tokens

    @pytest.mark.asyncio
    async def test_login_requires_credentials(
        self, token_store: TokenStore, test_settings: Settings
    ):
        config = test_settings.model_copy(update={"client_secret": None})

        with pytest.raises(AuthError, match="WHOOP_CLIENT_SECRET"):
            await oauth.login(token_store, config)


class TestAuthCommands:
    """Tests for logout, status and refresh."""

    def test_logout(self, token_store: TokenStore, valid_tokens: OAuthTokens):
        token_store.save(valid_tokens)

        assert oauth.logout(token_store) is True
        assert not token_store.exists()
        assert oauth.logout(token_store) is False

    def test_status_authenticated(
        self, token_store: TokenStore, valid_tokens: OAuthTokens, capsys: pytest.CaptureFixture
    ):
        token_store.save(valid_tokens)

        status = oauth.status(token_store)

        assert status.authenticated is True
        assert status.expires_at == "2100-01-01T00:00:00.000Z"
        assert status.scopes == ["read:sleep", "read:recovery", "offline"]
        assert "Authenticated" in capsys.readouterr().err

    def test_status_expired(
        self, token_store: TokenStore, valid_tokens: OAuthTokens, capsys: pytest.CaptureFixture
    ):
        token_store.save(valid_tokens.model_copy(update={"expires_at": 0}))

        assert oauth.status(token_store).authenticated is True
        assert "will auto-refresh" in capsys.readouterr().err

    def test_status_not_authenticated(self, token_store: TokenStore):
        assert oauth.status(token_store).authenticated is False

    @pytest.mark.asyncio
    async def test_refresh_not_authenticated(
        self, token_store: TokenStore, test_settings: Settings
    ):
        with pytest.raises(AuthError, match="Not authenticated"):
            await oauth.refresh(TokenManager(token_store, test_settings))

    @pytest.mark.asyncio
    @respx.mock
    async def test_refresh(
        self, token_store: TokenStore, test_settings: Settings, valid_tokens: OAuthTokens
    ):
        token_store.save(valid_tokens)
        respx.post(TOKEN_URL).mock(return_value=httpx.Response(200, json=TOKEN_RESPONSE))

        tokens = await oauth.refresh(TokenManager(token_store, test_settings))

        assert tokens.refresh_token == "refresh-new"
        assert token_store.load().refresh_token == "refresh-new"
